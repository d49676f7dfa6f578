from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone


class GenerationJob(models.Model):
    """
    A background AI generation request.

    Created ``pending`` by the API, moved to ``generating`` by the worker and
    finished as ``complete`` (with ``result_data``) or ``error``.
    """
    STATUS_PENDING = "pending"
    STATUS_GENERATING = "generating"
    STATUS_COMPLETE = "complete"
    STATUS_ERROR = "error"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_GENERATING, "Generating"),
        (STATUS_COMPLETE, "Complete"),
        (STATUS_ERROR, "Error"),
    ]

    JOB_TYPE_CHOICES = [
        ("workout", "Workout"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="generation_jobs")
    job_type = models.CharField(max_length=20, choices=JOB_TYPE_CHOICES, default="workout")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    input_data = models.JSONField(default=dict, blank=True)
    result_data = models.JSONField(null=True, blank=True)
    error = models.TextField(blank=True, default="")
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"GenerationJob {self.pk} ({self.job_type}, {self.status})"

    def is_timed_out(self, now=None):
        """A job still pending after the generation timeout is reported as failed."""
        if self.status != self.STATUS_PENDING:
            return False
        timeout = timedelta(seconds=settings.AI_GENERATION_TIMEOUT_SECONDS)
        return (now or timezone.now()) - self.created_at > timeout
