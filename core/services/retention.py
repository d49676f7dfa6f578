"""Data retention cleanup for user generated content."""
import logging
import time
from datetime import timedelta
from typing import Callable, Dict, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)

DATA_RETENTION_JOB = 'data-retention'


class DataRetentionService:
    """Deletes rows that have outlived their retention period.

    Each category runs independently: a failure in one is reported in the
    result and the remaining categories still run. A failed category rolls
    back only its own deletes.
    """

    @staticmethod
    def retention_periods() -> Dict[str, int]:
        """Retention period in days per category, from settings."""
        return dict(settings.RETENTION_PERIODS)

    @staticmethod
    def cutoff(days: int, now=None):
        return (now or timezone.now()) - timedelta(days=days)

    @staticmethod
    def purge_direct_messages(cutoff) -> int:
        from messaging.models import Message

        deleted, _ = Message.objects.filter(created_at__lt=cutoff).delete()
        return deleted

    @staticmethod
    def purge_activity_feed(cutoff) -> int:
        from activity.models import ActivityFeedItem

        deleted, _ = ActivityFeedItem.objects.filter(created_at__lt=cutoff).delete()
        return deleted

    @staticmethod
    def purge_notifications(cutoff) -> int:
        from activity.models import Notification

        deleted, _ = Notification.objects.filter(created_at__lt=cutoff).delete()
        return deleted

    @staticmethod
    def purge_generation_jobs(cutoff) -> int:
        from coach.models import GenerationJob

        deleted, _ = GenerationJob.objects.filter(
            created_at__lt=cutoff,
            status__in=[GenerationJob.STATUS_COMPLETE, GenerationJob.STATUS_ERROR],
        ).delete()
        return deleted

    @classmethod
    def categories(cls) -> Dict[str, Callable]:
        return {
            'direct_messages': cls.purge_direct_messages,
            'activity_feed': cls.purge_activity_feed,
            'notifications': cls.purge_notifications,
            'generation_jobs': cls.purge_generation_jobs,
        }

    @classmethod
    def run(cls, now=None, periods: Optional[Dict[str, int]] = None) -> Dict:
        """Run every cleanup category and summarise the outcome.

        Args:
            now: Reference time (defaults to timezone.now())
            periods: Override for the retention periods in days

        Returns:
            Dictionary with:
                - retention_policies: category -> "N days"
                - results: category -> {'deleted': int, 'error'?: str}
                - total_deleted: sum of deleted rows
                - elapsed_ms: wall time of the run
        """
        now = now or timezone.now()
        periods = periods or cls.retention_periods()
        start = time.monotonic()
        results = {}

        for category, purge in cls.categories().items():
            days = periods.get(category)
            if days is None:
                continue
            try:
                with transaction.atomic():
                    deleted = purge(cls.cutoff(days, now))
                results[category] = {'deleted': deleted}
                logger.info(f"data retention: {category} removed {deleted} rows older than {days} days")
            except Exception as e:
                logger.exception(f"data retention: {category} failed")
                results[category] = {'deleted': 0, 'error': str(e) or e.__class__.__name__}

        return {
            'retention_policies': {category: f"{periods[category]} days" for category in results},
            'results': results,
            'total_deleted': sum(r['deleted'] for r in results.values()),
            'elapsed_ms': int((time.monotonic() - start) * 1000),
            'timestamp': now.isoformat(),
        }
