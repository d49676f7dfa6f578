from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from kombu.exceptions import OperationalError

from challenges.models import Challenge, ChallengeParticipant
from circles.models import Circle, CircleMember
from core.exceptions import BusinessRuleViolation
from .models import BadgeDefinition, UserBadge
from .services import BadgeService
from .tasks import evaluate_badges_task, trigger_badge_evaluation

User = get_user_model()


class BadgeEvaluationTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(email='athlete@example.com', password='pass')
        cls.challenge = Challenge.objects.create(name='Push-ups', duration_days=7)
        cls.first_finish = BadgeDefinition.objects.create(
            slug='first-finish', name='First Finish', criteria={'type': 'challenge_complete'})
        cls.pushup_finish = BadgeDefinition.objects.create(
            slug='pushup-finish', name='Push-up Pro',
            criteria={'type': 'challenge_complete', 'challengeId': cls.challenge.pk})
        cls.week_streak = BadgeDefinition.objects.create(
            slug='week-streak', name='Week Streak', criteria={'type': 'streak', 'days': 7})
        cls.founder = BadgeDefinition.objects.create(
            slug='founder', name='Founder', criteria={'type': 'circles_created', 'circleCount': 1})

    def test_nothing_earned_yet(self):
        self.assertEqual(BadgeService.evaluate_and_award(self.user), [])

    def test_completed_challenge_awards_matching_badges(self):
        ChallengeParticipant.objects.create(challenge=self.challenge, user=self.user, longest_streak=7,
                                            status=ChallengeParticipant.STATUS_COMPLETED)
        awarded = BadgeService.evaluate_and_award(self.user)
        self.assertEqual(
            sorted(ub.badge.slug for ub in awarded),
            ['first-finish', 'pushup-finish', 'week-streak'],
        )
        self.assertTrue(all(ub.is_featured for ub in awarded))

    def test_badges_are_awarded_once(self):
        ChallengeParticipant.objects.create(challenge=self.challenge, user=self.user,
                                            status=ChallengeParticipant.STATUS_COMPLETED)
        BadgeService.evaluate_and_award(self.user)
        self.assertEqual(BadgeService.evaluate_and_award(self.user), [])
        self.assertEqual(UserBadge.objects.filter(user=self.user, badge=self.first_finish).count(), 1)

    def test_auto_feature_stops_at_three(self):
        ChallengeParticipant.objects.create(challenge=self.challenge, user=self.user, longest_streak=10,
                                            status=ChallengeParticipant.STATUS_COMPLETED)
        circle = Circle.objects.create(name='Mine', owner=self.user)
        CircleMember.objects.create(circle=circle, user=self.user, role=CircleMember.ROLE_OWNER)

        awarded = BadgeService.evaluate_and_award(self.user)
        self.assertEqual(len(awarded), 4)
        self.assertEqual(UserBadge.objects.filter(user=self.user, is_featured=True).count(), 3)

    def test_inactive_and_manual_badges_are_skipped(self):
        BadgeDefinition.objects.filter(pk=self.first_finish.pk).update(is_active=False)
        BadgeDefinition.objects.filter(pk=self.pushup_finish.pk).update(is_automatic=False)
        ChallengeParticipant.objects.create(challenge=self.challenge, user=self.user,
                                            status=ChallengeParticipant.STATUS_COMPLETED)
        self.assertEqual(BadgeService.evaluate_and_award(self.user), [])

    def test_feature_limit(self):
        badges = [
            BadgeDefinition.objects.create(slug=f'manual-{i}', name=f'Manual {i}', is_automatic=False)
            for i in range(7)
        ]
        user_badges = [UserBadge.objects.create(user=self.user, badge=b, is_featured=i < 6) for i, b in enumerate(badges)]
        with self.assertRaises(BusinessRuleViolation):
            BadgeService.set_featured(self.user, user_badges[6].pk, True)
        BadgeService.set_featured(self.user, user_badges[0].pk, False)
        BadgeService.set_featured(self.user, user_badges[6].pk, True)


class BadgeTaskTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(email='task@example.com', password='pass')
        BadgeDefinition.objects.create(slug='founder', name='Founder', criteria={'type': 'circles_created', 'circleCount': 1})
        circle = Circle.objects.create(name='Mine', owner=cls.user)
        CircleMember.objects.create(circle=circle, user=cls.user, role=CircleMember.ROLE_OWNER)

    @mock.patch('badges.tasks.RedisLock')
    def test_task_awards_under_lock(self, lock_cls):
        lock_cls.return_value.__enter__.return_value = True
        result = evaluate_badges_task(self.user.pk, 'challenge')
        self.assertEqual(result, {'status': 'success', 'awarded': ['founder']})
        lock_cls.assert_called_once_with(f'badges:user:{self.user.pk}', ttl=120, acquire_on_error=True)

    @mock.patch('badges.tasks.RedisLock')
    def test_task_skips_when_locked(self, lock_cls):
        lock_cls.return_value.__enter__.return_value = False
        result = evaluate_badges_task(self.user.pk)
        self.assertEqual(result['status'], 'skipped')
        self.assertFalse(UserBadge.objects.exists())

    @mock.patch('badges.tasks.evaluate_badges_task.delay', side_effect=OperationalError('broker down'))
    def test_trigger_swallows_broker_errors(self, delay):
        self.assertFalse(trigger_badge_evaluation(self.user.pk, trigger='challenge'))
        delay.assert_called_once_with(self.user.pk, 'challenge')
