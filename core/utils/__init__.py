from .redis_lock import RedisLock, get_redis_client

__all__ = ['RedisLock', 'get_redis_client']
