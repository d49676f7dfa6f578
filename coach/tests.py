from datetime import timedelta
from unittest import mock

import requests
from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone
from kombu.exceptions import OperationalError

from circles.models import Circle, CircleMember
from core.exceptions import NotFound, PermissionDenied, ServiceUnavailable
from .models import GenerationJob
from .services import GenerationService, WorkoutProviderClient, WorkoutProviderError

User = get_user_model()

WORKOUT = {"name": "Full Body", "exercises": [{"name": "Squat", "sets": 3, "reps": "8-12"}]}


class StartGenerationTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(email='coach@example.com', password='pass')
        cls.stranger = User.objects.create_user(email='stranger@example.com', password='pass')
        cls.circle = Circle.objects.create(name='Gym', owner=cls.user)
        cls.member = CircleMember.objects.create(circle=cls.circle, user=cls.user, role=CircleMember.ROLE_OWNER)
        other_circle = Circle.objects.create(name='Elsewhere', owner=cls.stranger)
        cls.outsider = CircleMember.objects.create(circle=other_circle, user=cls.stranger)

    @mock.patch('coach.tasks.generate_workout_task.delay')
    def test_creates_pending_job_and_dispatches(self, delay):
        job = GenerationService.start_workout_generation(self.user, {'member_ids': [self.member.pk], 'focus': 'legs'})
        self.assertEqual(job.status, GenerationJob.STATUS_PENDING)
        delay.assert_called_once_with(job.pk)

    @mock.patch('coach.tasks.generate_workout_task.delay', side_effect=OperationalError('broker down'))
    def test_dispatch_failure_marks_job_error(self, delay):
        with self.assertRaises(ServiceUnavailable):
            GenerationService.start_workout_generation(self.user, {'focus': 'legs'})
        job = GenerationJob.objects.get(user=self.user)
        self.assertEqual(job.status, GenerationJob.STATUS_ERROR)
        self.assertIsNotNone(job.completed_at)

    @mock.patch('coach.tasks.generate_workout_task.delay')
    def test_members_outside_my_circles_are_rejected(self, delay):
        with self.assertRaises(PermissionDenied):
            GenerationService.start_workout_generation(self.user, {'member_ids': [self.outsider.pk]})
        delay.assert_not_called()
        self.assertFalse(GenerationJob.objects.exists())


@override_settings(AI_GENERATION_TIMEOUT_SECONDS=180)
class GenerationStatusTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(email='owner@example.com', password='pass')
        cls.other = User.objects.create_user(email='other@example.com', password='pass')

    def test_owner_only(self):
        job = GenerationJob.objects.create(user=self.user)
        with self.assertRaises(PermissionDenied):
            GenerationService.get_status(self.other, job.pk)
        with self.assertRaises(NotFound):
            GenerationService.get_status(self.user, 999999)

    def test_stale_pending_job_reports_timeout(self):
        job = GenerationJob.objects.create(user=self.user)
        GenerationJob.objects.filter(pk=job.pk).update(created_at=timezone.now() - timedelta(minutes=4))
        status = GenerationService.get_status(self.user, job.pk)
        self.assertEqual(status['status'], GenerationJob.STATUS_ERROR)
        self.assertIn('timed out', status['error'])

    def test_fresh_pending_job(self):
        job = GenerationJob.objects.create(user=self.user)
        self.assertEqual(GenerationService.get_status(self.user, job.pk)['status'], GenerationJob.STATUS_PENDING)

    def test_complete_job_returns_workout(self):
        job = GenerationJob.objects.create(user=self.user, status=GenerationJob.STATUS_COMPLETE, result_data=WORKOUT)
        status = GenerationService.get_status(self.user, job.pk)
        self.assertEqual(status['workout']['name'], 'Full Body')


class RunJobTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(email='runner@example.com', password='pass')

    def test_success_stores_result(self):
        job = GenerationJob.objects.create(user=self.user, input_data={'focus': 'legs'})
        client = mock.Mock()
        client.generate_workout.return_value = WORKOUT

        self.assertEqual(GenerationService.run_job(job.pk, client=client), GenerationJob.STATUS_COMPLETE)
        job.refresh_from_db()
        self.assertEqual(job.result_data, WORKOUT)
        self.assertIsNotNone(job.started_at)
        client.generate_workout.assert_called_once_with({'focus': 'legs'})

    def test_provider_failure_marks_error(self):
        job = GenerationJob.objects.create(user=self.user)
        client = mock.Mock()
        client.generate_workout.side_effect = WorkoutProviderError('Workout provider error 500: down')

        self.assertEqual(GenerationService.run_job(job.pk, client=client), GenerationJob.STATUS_ERROR)
        job.refresh_from_db()
        self.assertIn('down', job.error)

    def test_unexpected_failure_marks_error(self):
        job = GenerationJob.objects.create(user=self.user)
        client = mock.Mock()
        client.generate_workout.side_effect = RuntimeError('boom')

        self.assertEqual(GenerationService.run_job(job.pk, client=client), GenerationJob.STATUS_ERROR)
        job.refresh_from_db()
        self.assertEqual(job.status, GenerationJob.STATUS_ERROR)
        self.assertIsNotNone(job.completed_at)
        self.assertNotIn('boom', job.error)
        status = GenerationService.get_status(self.user, job.pk)
        self.assertEqual(status['status'], GenerationJob.STATUS_ERROR)
        self.assertTrue(status['error'])

    def test_non_pending_job_is_not_rerun(self):
        job = GenerationJob.objects.create(user=self.user, status=GenerationJob.STATUS_COMPLETE)
        client = mock.Mock()
        self.assertIsNone(GenerationService.run_job(job.pk, client=client))
        client.generate_workout.assert_not_called()


class WorkoutProviderClientTests(TestCase):
    def make_response(self, status_code, payload):
        response = requests.Response()
        response.status_code = status_code
        response._content = payload
        return response

    def test_returns_workout_body(self):
        client = WorkoutProviderClient(base_url='https://ai.example.com', api_key='k')
        with mock.patch.object(client.session, 'post',
                               return_value=self.make_response(200, b'{"workout": {"exercises": [{"name": "Row"}]}}')) as post:
            workout = client.generate_workout({'focus': 'back'})
        self.assertEqual(workout['exercises'][0]['name'], 'Row')
        post.assert_called_once()
        self.assertEqual(client.session.headers['Authorization'], 'Bearer k')

    def test_http_error_is_wrapped(self):
        client = WorkoutProviderClient(base_url='https://ai.example.com', api_key='')
        with mock.patch.object(client.session, 'post', return_value=self.make_response(502, b'{"error": "upstream"}')):
            with self.assertRaises(WorkoutProviderError) as ctx:
                client.generate_workout({})
        self.assertIn('upstream', str(ctx.exception))

    def test_unconfigured_provider(self):
        with self.assertRaises(WorkoutProviderError):
            WorkoutProviderClient(base_url='', api_key='').generate_workout({})
