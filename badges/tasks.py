"""
Celery tasks for badge evaluation.
"""
import logging

from celery import shared_task
from django.contrib.auth import get_user_model

from core.utils.redis_lock import RedisLock
from .services import BadgeService

logger = logging.getLogger(__name__)


@shared_task
def evaluate_badges_task(user_id, trigger=None):
    """Evaluate and award badges for one user.

    A per-user redis lock keeps two workers from evaluating the same user at
    once. When redis is down the evaluation still runs; the unique
    (user, badge) constraint stops duplicate awards.
    """
    with RedisLock(f'badges:user:{user_id}', ttl=120, acquire_on_error=True) as acquired:
        if not acquired:
            logger.info(f"Badge evaluation already running for user_id={user_id}, skipping")
            return {'status': 'skipped', 'awarded': []}

        user = get_user_model().objects.filter(pk=user_id).first()
        if user is None:
            logger.warning(f"evaluate_badges_task: user_id={user_id} no longer exists")
            return {'status': 'missing_user', 'awarded': []}

        awarded = BadgeService.evaluate_and_award(user)
        slugs = [ub.badge.slug for ub in awarded]
        logger.info(f"evaluate_badges_task: user_id={user_id} trigger={trigger} awarded={slugs}")
        return {'status': 'success', 'awarded': slugs}


def trigger_badge_evaluation(user_id, trigger=None):
    """Queue badge evaluation without letting a broker failure reach the caller.

    Returns True if the task was queued.
    """
    try:
        evaluate_badges_task.delay(user_id, trigger)
        return True
    except Exception as e:
        logger.error(f"Failed to queue badge evaluation for user_id={user_id} (trigger={trigger}): {e}")
        return False
