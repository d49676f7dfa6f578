"""HTTP level tests: routing, auth and the error body shape."""
from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import override_settings
from django.utils import timezone
from kombu.exceptions import OperationalError
from rest_framework import status
from rest_framework.test import APITestCase

from challenges.models import Challenge, ChallengeParticipant
from circles.models import Circle, CircleInvitation, CircleMember
from coach.models import GenerationJob
from messaging.models import Message

User = get_user_model()


class AuthRequiredTests(APITestCase):
    def test_anonymous_requests_get_401(self):
        for url in ['/api/challenges/', '/api/circles/', '/api/messages/', '/api/feed/', '/api/badges/']:
            response = self.client.get(url)
            self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED, url)


class ChallengeEndpointTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(email='api@example.com', password='pass')
        cls.challenge = Challenge.objects.create(
            name='Plank Week', duration_days=7, daily_tasks=[{"name": "plank", "isRequired": True}])

    def setUp(self):
        self.client.force_authenticate(self.user)
        patcher = mock.patch('challenges.services.trigger_badge_evaluation')
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_join_then_check_in(self):
        response = self.client.post(f'/api/challenges/{self.challenge.pk}/join/')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['rejoined'])

        response = self.client.post(f'/api/challenges/{self.challenge.pk}/checkin/',
                                    {'completed_tasks': ['plank']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['streak'], 1)

    def test_second_check_in_same_day_is_a_conflict(self):
        self.client.post(f'/api/challenges/{self.challenge.pk}/join/')
        self.client.post(f'/api/challenges/{self.challenge.pk}/checkin/', {'completed_tasks': ['plank']}, format='json')

        response = self.client.post(f'/api/challenges/{self.challenge.pk}/checkin/', {'completed_tasks': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'conflict')
        self.assertEqual(response.data['error'], 'Already checked in today')

    def test_check_in_without_joining(self):
        response = self.client.post(f'/api/challenges/{self.challenge.pk}/checkin/', {'completed_tasks': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'precondition_failed')

    def test_leaderboard_marks_current_user(self):
        ChallengeParticipant.objects.create(challenge=self.challenge, user=self.user, current_streak=2)
        response = self.client.get(f'/api/challenges/{self.challenge.pk}/leaderboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['leaderboard']), 1)
        self.assertTrue(response.data['leaderboard'][0]['is_current_user'])
        self.assertIsNone(response.data['current_user_rank'])
        self.assertFalse(response.data['has_more'])

    def test_invalid_leaderboard_limit(self):
        response = self.client.get(f'/api/challenges/{self.challenge.pk}/leaderboard/', {'limit': 0})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation_error')
        self.assertIn('limit', response.data['fields'])

    def test_unexpected_errors_become_generic_500(self):
        with mock.patch('challenges.services.check_in', side_effect=RuntimeError('db password is hunter2')):
            response = self.client.post(f'/api/challenges/{self.challenge.pk}/checkin/', {'completed_tasks': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'Internal server error'})

    def test_check_in_accepts_camel_case_task_list(self):
        strict = Challenge.objects.create(name='Strict Planks', duration_days=5, restart_on_fail=True,
                                          daily_tasks=[{"name": "plank", "isRequired": True}])
        self.client.post(f'/api/challenges/{strict.pk}/join/')

        response = self.client.post(f'/api/challenges/{strict.pk}/checkin/', {'completedTasks': ['plank']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertFalse(response.data['reset'])
        participant = ChallengeParticipant.objects.get(challenge=strict, user=self.user)
        self.assertEqual((participant.current_day, participant.current_streak), (2, 1))

    def test_check_in_without_task_list_is_rejected(self):
        strict = Challenge.objects.create(name='Strict Planks', duration_days=5, restart_on_fail=True,
                                          daily_tasks=[{"name": "plank", "isRequired": True}])
        self.client.post(f'/api/challenges/{strict.pk}/join/')

        for body in ({}, {'tasks': ['plank']}, {'completedTasks': 'plank'}):
            response = self.client.post(f'/api/challenges/{strict.pk}/checkin/', body, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, body)
            self.assertEqual(response.data['code'], 'validation_error')
            self.assertIn('completed_tasks', response.data['fields'])
        participant = ChallengeParticipant.objects.get(challenge=strict, user=self.user)
        self.assertEqual(participant.current_day, 1)
        self.assertFalse(participant.progress.exists())


class CircleEndpointTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.owner = User.objects.create_user(email='owner@example.com', password='pass')
        cls.joiner = User.objects.create_user(email='joiner@example.com', password='pass')
        cls.circle = Circle.objects.create(name='Lifters', owner=cls.owner)
        CircleMember.objects.create(circle=cls.circle, user=cls.owner, role=CircleMember.ROLE_OWNER)
        cls.invitation = CircleInvitation.objects.create(circle=cls.circle, code='abcd2345', created_by=cls.owner)

    def test_preview_is_public(self):
        response = self.client.get('/api/circles/invite/ABCD2345/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['circle']['name'], 'Lifters')
        self.assertEqual(response.data['circle']['member_count'], 1)

    def test_preview_of_expired_code_is_gone(self):
        CircleInvitation.objects.filter(pk=self.invitation.pk).update(expires_at=timezone.now() - timedelta(days=1))
        response = self.client.get('/api/circles/invite/ABCD2345/')
        self.assertEqual(response.status_code, status.HTTP_410_GONE)

    def test_redeem(self):
        self.client.force_authenticate(self.joiner)
        response = self.client.post('/api/circles/join/', {'code': 'abcd2345'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['circle']['id'], self.circle.pk)
        self.assertTrue(CircleMember.objects.filter(circle=self.circle, user=self.joiner).exists())

        response = self.client.post('/api/circles/join/', {'code': 'abcd2345'}, format='json')
        self.assertEqual(response.data['code'], 'conflict')

    def test_create_circle_makes_caller_owner(self):
        self.client.force_authenticate(self.joiner)
        response = self.client.post('/api/circles/', {'name': 'Runners'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['member_count'], 1)
        member = CircleMember.objects.get(circle_id=response.data['id'])
        self.assertEqual((member.user, member.role), (self.joiner, CircleMember.ROLE_OWNER))


class MessageEndpointTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.alice = User.objects.create_user(email='alice@example.com', password='pass')
        cls.bob = User.objects.create_user(email='bob@example.com', password='pass')
        cls.outsider = User.objects.create_user(email='outsider@example.com', password='pass')
        cls.circle = Circle.objects.create(name='Crew', owner=cls.alice)
        CircleMember.objects.create(circle=cls.circle, user=cls.alice, role=CircleMember.ROLE_OWNER)
        CircleMember.objects.create(circle=cls.circle, user=cls.bob)

    def setUp(self):
        self.client.force_authenticate(self.alice)

    def send(self, recipient, content):
        return self.client.post('/api/messages/', {
            'recipient_id': recipient.pk,
            'circle_id': self.circle.pk,
            'content': content,
        }, format='json')

    def test_send_and_read_thread(self):
        self.assertEqual(self.send(self.bob, 'Deadlifts tomorrow?').status_code, status.HTTP_201_CREATED)
        response = self.client.get(f'/api/messages/{self.bob.pk}/')
        self.assertEqual([m['content'] for m in response.data['messages']], ['Deadlifts tomorrow?'])

    def test_outsider_is_forbidden(self):
        response = self.send(self.outsider, 'hello')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'permission_denied')

    def test_moderation_body_lists_flagged_words(self):
        response = self.send(self.bob, 'what the fuck')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'content_moderation_failed')
        self.assertIn('fuck', response.data['flagged_words'])
        self.assertFalse(Message.objects.exists())

    def test_delete_requires_message_id(self):
        response = self.client.delete(f'/api/messages/{self.bob.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Message ID required')

    def test_delete_with_malformed_message_id(self):
        response = self.client.delete(f'/api/messages/{self.bob.pk}/?messageId=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('messageId', response.data['fields'])

    def test_delete_hides_message_for_caller(self):
        self.send(self.bob, 'typo')
        message = Message.objects.get()
        response = self.client.delete(f'/api/messages/{self.bob.pk}/?messageId={message.pk}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        message.refresh_from_db()
        self.assertTrue(message.deleted_by_sender)

    def test_thread_with_malformed_paging(self):
        for params in ({'before': 'yesterday'}, {'limit': 'ten'}):
            response = self.client.get(f'/api/messages/{self.bob.pk}/', params)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, params)
            self.assertEqual(response.data['code'], 'validation_error')
            self.assertIn(next(iter(params)), response.data['fields'])


@override_settings(CRON_SECRET='s3cret', CRON_MIN_INTERVAL_MINUTES=60)
class CronEndpointTests(APITestCase):
    url = '/api/cron/data-retention/'

    def test_bad_token_is_rejected(self):
        response = self.client.get(self.url, HTTP_AUTHORIZATION='Bearer wrong')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('Bearer', response['WWW-Authenticate'])

    def test_missing_token_is_rejected(self):
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_401_UNAUTHORIZED)

    def test_runs_once_per_interval(self):
        response = self.client.get(self.url, HTTP_AUTHORIZATION='Bearer s3cret')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['total_deleted'], 0)

        response = self.client.get(self.url, HTTP_AUTHORIZATION='Bearer s3cret')
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertEqual(response.data['code'], 'rate_limited')


class CoachEndpointTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(email='coach@example.com', password='pass')
        cls.other = User.objects.create_user(email='other@example.com', password='pass')

    def setUp(self):
        self.client.force_authenticate(self.user)

    @mock.patch('coach.tasks.generate_workout_task.delay')
    def test_generate_returns_job_id(self, delay):
        response = self.client.post('/api/ai/generate-workout/', {'focus': 'legs'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_202_ACCEPTED)
        delay.assert_called_once_with(response.data['job_id'])

    @mock.patch('coach.tasks.generate_workout_task.delay', side_effect=OperationalError('broker down'))
    def test_broker_outage_is_503(self, delay):
        response = self.client.post('/api/ai/generate-workout/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['code'], 'service_unavailable')

    def test_status_of_someone_elses_job(self):
        job = GenerationJob.objects.create(user=self.other)
        response = self.client.get(f'/api/ai/generate-workout/status/{job.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
