import logging

from django.conf import settings
import redis

logger = logging.getLogger(__name__)


def get_redis_client():
    url = getattr(settings, 'REDIS_URL', None) or getattr(settings, 'CELERY_BROKER_URL', None) or 'redis://localhost:6379/0'
    return redis.from_url(url)


class RedisLock:
    """Simple context-manager for a redis lock (non-blocking acquire).

    Usage:
        with RedisLock(f'badges:user:{user_id}', ttl=120) as acquired:
            if not acquired:
                return
            # do work

    If Redis is unreachable the lock reports ``acquire_on_error`` so callers
    can choose between skipping the work and running unguarded.
    """
    def __init__(self, key, ttl=60, acquire_on_error=False):
        self.key = f'lock:{key}'
        self.ttl = ttl
        self.acquire_on_error = acquire_on_error
        self._client = None
        self.acquired = False
        self._held = False

    def __enter__(self):
        self._client = get_redis_client()
        try:
            self._held = bool(self._client.set(self.key, '1', nx=True, ex=self.ttl))
            self.acquired = self._held
        except redis.RedisError as e:
            logger.warning(f"Redis lock {self.key} unavailable: {e}")
            self.acquired = self.acquire_on_error
        return self.acquired

    def __exit__(self, exc_type, exc, tb):
        if not self._held:
            return
        try:
            self._client.delete(self.key)
        except redis.RedisError as e:
            logger.warning(f"Failed to release redis lock {self.key}: {e}")
