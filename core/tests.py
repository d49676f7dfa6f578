"""Unit tests for core services."""
from datetime import timedelta
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from activity.models import ActivityFeedItem, Notification
from circles.models import Circle
from coach.models import GenerationJob
from core.models import CronRun
from core.services import DATA_RETENTION_JOB, DataRetentionService
from messaging.models import Message

User = get_user_model()


class CronRunTests(TestCase):
    """Tests for the persisted cron rate limit."""

    def test_first_claim_succeeds(self):
        claimed, retry_after = CronRun.try_claim('job', timedelta(hours=1))
        self.assertTrue(claimed)
        self.assertIsNone(retry_after)

    def test_second_claim_within_interval_is_refused(self):
        now = timezone.now()
        CronRun.try_claim('job', timedelta(hours=1), now=now)
        claimed, retry_after = CronRun.try_claim('job', timedelta(hours=1), now=now + timedelta(minutes=20))
        self.assertFalse(claimed)
        self.assertEqual(retry_after, timedelta(minutes=40))

    def test_claim_after_interval_succeeds(self):
        now = timezone.now()
        CronRun.try_claim('job', timedelta(hours=1), now=now)
        claimed, _ = CronRun.try_claim('job', timedelta(hours=1), now=now + timedelta(minutes=61))
        self.assertTrue(claimed)

    def test_jobs_are_independent(self):
        CronRun.try_claim('a', timedelta(hours=1))
        claimed, _ = CronRun.try_claim('b', timedelta(hours=1))
        self.assertTrue(claimed)


@override_settings(RETENTION_PERIODS={
    'direct_messages': 365,
    'activity_feed': 730,
    'notifications': 90,
    'generation_jobs': 90,
})
class DataRetentionServiceTests(TestCase):
    """Tests for DataRetentionService."""

    @classmethod
    def setUpTestData(cls):
        cls.alice = User.objects.create_user(email='alice@example.com', password='pass')
        cls.bob = User.objects.create_user(email='bob@example.com', password='pass')
        cls.circle = Circle.objects.create(name='Crew', owner=cls.alice)

    def age(self, model, obj, days):
        model.objects.filter(pk=obj.pk).update(created_at=timezone.now() - timedelta(days=days))

    def test_deletes_only_rows_past_their_period(self):
        old_message = Message.objects.create(circle=self.circle, sender=self.alice, recipient=self.bob, content='old')
        new_message = Message.objects.create(circle=self.circle, sender=self.alice, recipient=self.bob, content='new')
        self.age(Message, old_message, 400)

        old_note = Notification.objects.create(user=self.alice, kind='message', title='old')
        self.age(Notification, old_note, 100)
        Notification.objects.create(user=self.alice, kind='message', title='new')

        old_item = ActivityFeedItem.objects.create(actor=self.alice, verb='joined_circle')
        self.age(ActivityFeedItem, old_item, 800)

        finished = GenerationJob.objects.create(user=self.alice, status=GenerationJob.STATUS_COMPLETE)
        stuck = GenerationJob.objects.create(user=self.alice, status=GenerationJob.STATUS_GENERATING)
        self.age(GenerationJob, finished, 100)
        self.age(GenerationJob, stuck, 100)

        summary = DataRetentionService.run()

        self.assertEqual(summary['results'], {
            'direct_messages': {'deleted': 1},
            'activity_feed': {'deleted': 1},
            'notifications': {'deleted': 1},
            'generation_jobs': {'deleted': 1},
        })
        self.assertEqual(summary['total_deleted'], 4)
        self.assertEqual(summary['retention_policies']['direct_messages'], '365 days')
        self.assertIn('timestamp', summary)
        self.assertTrue(Message.objects.filter(pk=new_message.pk).exists())
        self.assertTrue(GenerationJob.objects.filter(pk=stuck.pk).exists())

    def test_failing_category_does_not_stop_the_others(self):
        old_note = Notification.objects.create(user=self.alice, kind='message', title='old')
        self.age(Notification, old_note, 100)

        with mock.patch.object(DataRetentionService, 'purge_direct_messages', side_effect=RuntimeError('db timeout')):
            summary = DataRetentionService.run()

        self.assertEqual(summary['results']['direct_messages'], {'deleted': 0, 'error': 'db timeout'})
        self.assertEqual(summary['results']['notifications'], {'deleted': 1})
        self.assertFalse(Notification.objects.exists())

    def test_management_command_records_result(self):
        out = StringIO()
        call_command('run_data_retention', '--only', 'notifications', stdout=out)
        run = CronRun.objects.get(name=DATA_RETENTION_JOB)
        self.assertEqual(list(run.last_result['results']), ['notifications'])
        self.assertIn('Removed 0 rows', out.getvalue())
