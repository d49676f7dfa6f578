"""
Management command to run the data retention cleanup.

Runs the same cleanup as GET /api/cron/data-retention/ but skips the
minimum-interval check, so it can be used for manual or one-off runs.

Usage:
    python manage.py run_data_retention
    python manage.py run_data_retention --only notifications
"""
import logging
from django.core.management.base import BaseCommand, CommandError
from core.models import CronRun
from core.services import DataRetentionService, DATA_RETENTION_JOB

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Delete messages, feed items, notifications and generation jobs past their retention period'

    def add_arguments(self, parser):
        parser.add_argument(
            '--only',
            action='append',
            default=[],
            help='Restrict the run to a category (may be repeated)'
        )

    def handle(self, *args, **options):
        periods = DataRetentionService.retention_periods()
        only = options.get('only') or []
        unknown = [c for c in only if c not in periods]
        if unknown:
            raise CommandError(f"Unknown retention categories: {', '.join(unknown)}")
        if only:
            periods = {c: d for c, d in periods.items() if c in only}

        summary = DataRetentionService.run(periods=periods)

        run, _ = CronRun.objects.get_or_create(name=DATA_RETENTION_JOB)
        run.record_result(summary)

        for category, result in summary['results'].items():
            if 'error' in result:
                self.stdout.write(self.style.ERROR(f"  {category}: failed ({result['error']})"))
            else:
                self.stdout.write(f"  {category}: deleted {result['deleted']}")

        self.stdout.write(
            self.style.SUCCESS(
                f"\nRemoved {summary['total_deleted']} rows in {summary['elapsed_ms']} ms."
            )
        )
