from datetime import timedelta

from django.db import models
from django.db.models import Q
from django.utils import timezone


class CronRun(models.Model):
    """
    Persisted last-run marker for a scheduled job.

    One row per job name. Claiming a run is a single conditional UPDATE, so the
    minimum interval between runs holds across processes and restarts.
    """
    name = models.CharField(max_length=64, unique=True, help_text="Job name (e.g., data-retention)")
    last_run_at = models.DateTimeField(null=True, blank=True, help_text="When the job last started")
    last_result = models.JSONField(default=dict, blank=True, help_text="Summary returned by the last run")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Cron Run"
        verbose_name_plural = "Cron Runs"
        ordering = ['name']

    def __str__(self):
        return f"CronRun({self.name}, last_run_at={self.last_run_at})"

    @classmethod
    def try_claim(cls, name, min_interval, now=None):
        """Claim a run of ``name`` if at least ``min_interval`` has passed.

        Returns:
            Tuple of (claimed: bool, retry_after: Optional[timedelta]).
        """
        now = now or timezone.now()
        cls.objects.get_or_create(name=name)
        threshold = now - min_interval
        claimed = cls.objects.filter(
            Q(last_run_at__isnull=True) | Q(last_run_at__lte=threshold),
            name=name,
        ).update(last_run_at=now)
        if claimed:
            return True, None

        last_run_at = cls.objects.filter(name=name).values_list('last_run_at', flat=True).first()
        retry_after = (last_run_at + min_interval) - now if last_run_at else timedelta(0)
        return False, max(retry_after, timedelta(0))

    def record_result(self, result):
        self.last_result = result
        self.save(update_fields=['last_result', 'updated_at'])
