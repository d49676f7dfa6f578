import logging
import math
from datetime import timedelta

from django.conf import settings
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import RateLimited
from core.models import CronRun
from core.services import DATA_RETENTION_JOB, DataRetentionService
from .authentication import CronSecretAuthentication

logger = logging.getLogger(__name__)


class DataRetentionCronAPIView(APIView):
    """
    Scheduled data retention cleanup. At most one run per CRON_MIN_INTERVAL_MINUTES.
    """
    authentication_classes = [CronSecretAuthentication]
    permission_classes = [AllowAny]

    def get(self, request):
        interval = timedelta(minutes=settings.CRON_MIN_INTERVAL_MINUTES)
        claimed, retry_after = CronRun.try_claim(DATA_RETENTION_JOB, interval)
        if not claimed:
            minutes = max(1, math.ceil(retry_after.total_seconds() / 60))
            raise RateLimited(f"Rate limited. Try again in {minutes} minutes")

        summary = DataRetentionService.run()
        CronRun.objects.get(name=DATA_RETENTION_JOB).record_result(summary)
        logger.info(f"data retention cron removed {summary['total_deleted']} rows in {summary['elapsed_ms']} ms")
        return Response({'success': True, **summary})
