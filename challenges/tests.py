from datetime import date, timedelta
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase

from core.exceptions import Conflict, NotFound, PreconditionFailed
from .models import Challenge, ChallengeParticipant, ChallengeProgress
from .services import (
    check_in,
    evaluate_check_in,
    join_challenge,
    leaderboard,
    leave_challenge,
)

User = get_user_model()

RUN_ONLY = [{"name": "run", "isRequired": True}]


class EvaluateCheckInTests(TestCase):
	def evaluate(self, reported, restart_on_fail=False, **state):
		params = dict(current_day=1, current_streak=0, longest_streak=0, days_completed=0, days_failed=0)
		params.update(state)
		return evaluate_check_in(
			daily_tasks=[{"name": "run", "isRequired": True}, {"name": "stretch", "isRequired": False}],
			reported_task_names=reported,
			restart_on_fail=restart_on_fail,
			duration_days=3,
			**params,
		)

	def test_all_required_done_extends_streak(self):
		outcome = self.evaluate(["run"], current_day=2, current_streak=1, longest_streak=1, days_completed=1)
		self.assertTrue(outcome.completed_required)
		self.assertTrue(outcome.recorded)
		self.assertEqual(outcome.day, 2)
		self.assertEqual(outcome.current_day, 3)
		self.assertEqual(outcome.current_streak, 2)
		self.assertEqual(outcome.longest_streak, 2)
		self.assertEqual(outcome.days_completed, 2)
		self.assertFalse(outcome.is_completed)

	def test_optional_tasks_are_not_needed(self):
		outcome = self.evaluate(["run"])
		self.assertTrue(outcome.completed_required)

	def test_missed_required_task_is_recorded_as_failed_day(self):
		outcome = self.evaluate(["stretch"], current_day=2, current_streak=4, longest_streak=4, days_completed=1)
		self.assertFalse(outcome.completed_required)
		self.assertFalse(outcome.reset)
		self.assertEqual(outcome.current_day, 3)
		self.assertEqual(outcome.current_streak, 0)
		self.assertEqual(outcome.longest_streak, 4)
		self.assertEqual(outcome.days_completed, 2)
		self.assertEqual(outcome.days_failed, 1)

	def test_missed_required_task_with_restart_resets_progress(self):
		outcome = self.evaluate([], restart_on_fail=True, current_day=3, current_streak=2, longest_streak=5, days_completed=2)
		self.assertTrue(outcome.reset)
		self.assertIsNone(outcome.day)
		self.assertEqual(outcome.current_day, 1)
		self.assertEqual(outcome.current_streak, 0)
		self.assertEqual(outcome.longest_streak, 5)
		self.assertEqual(outcome.days_completed, 2)

	def test_last_day_completes_challenge(self):
		self.assertFalse(self.evaluate(["run"], current_day=2).is_completed)
		outcome = self.evaluate(["run"], current_day=3)
		self.assertTrue(outcome.is_completed)
		self.assertEqual(outcome.current_day, 4)


class CheckInTests(TestCase):
	@classmethod
	def setUpTestData(cls):
		cls.user = User.objects.create_user(email='runner@example.com', password='pass')
		cls.challenge = Challenge.objects.create(name='3 Day Run', duration_days=3, daily_tasks=RUN_ONLY)

	def setUp(self):
		self.day1 = date(2026, 3, 2)
		self.badge_patch = mock.patch('challenges.services.trigger_badge_evaluation')
		self.trigger = self.badge_patch.start()
		self.addCleanup(self.badge_patch.stop)
		join_challenge(self.challenge.pk, self.user)

	def participant(self):
		return ChallengeParticipant.objects.get(challenge=self.challenge, user=self.user)

	def test_three_day_scenario(self):
		result = check_in(self.challenge.pk, self.user, ["run"], today=self.day1)
		self.assertTrue(result['success'])
		p = self.participant()
		self.assertEqual((p.current_day, p.current_streak), (2, 1))

		result = check_in(self.challenge.pk, self.user, [], today=self.day1 + timedelta(days=1))
		self.assertFalse(result['reset'])
		self.assertFalse(result['completed'])
		p = self.participant()
		self.assertEqual((p.current_day, p.current_streak), (3, 0))
		self.assertFalse(ChallengeProgress.objects.get(participant=p, date=self.day1 + timedelta(days=1)).completed)

		with self.captureOnCommitCallbacks(execute=True) as callbacks:
			result = check_in(self.challenge.pk, self.user, ["run"], today=self.day1 + timedelta(days=2))
		self.assertTrue(result['completed'])
		p = self.participant()
		self.assertEqual(p.status, ChallengeParticipant.STATUS_COMPLETED)
		self.assertEqual(p.current_day, 4)
		self.assertEqual(p.current_streak, 1)
		self.assertEqual(p.longest_streak, 1)
		self.assertEqual(p.days_completed, 3)
		self.assertEqual(p.days_completed, p.progress.count())
		self.assertIsNotNone(p.completed_date)

		self.challenge.refresh_from_db()
		self.assertEqual(self.challenge.completion_count, 1)
		self.assertEqual(len(callbacks), 1)
		self.trigger.assert_called_once_with(self.user.pk, trigger='challenge')

	def test_second_check_in_same_day_conflicts(self):
		check_in(self.challenge.pk, self.user, ["run"], today=self.day1)
		with self.assertRaises(Conflict):
			check_in(self.challenge.pk, self.user, ["run"], today=self.day1)
		self.assertEqual(self.participant().progress.count(), 1)
		self.assertEqual(self.participant().current_day, 2)

	def test_duplicate_insert_is_a_conflict(self):
		check_in(self.challenge.pk, self.user, ["run"], today=self.day1)
		# Skip the existence check so the unique (participant, date) constraint has to catch it
		with mock.patch('challenges.services.ChallengeProgress.objects.filter') as progress_filter:
			progress_filter.return_value.exists.return_value = False
			with self.assertRaises(Conflict):
				check_in(self.challenge.pk, self.user, ["run"], today=self.day1)
		p = self.participant()
		self.assertEqual(p.current_day, 2)
		self.assertEqual(p.current_streak, 1)
		self.assertEqual(p.progress.count(), 1)

	def test_completed_participant_cannot_check_in_again(self):
		for offset in range(3):
			check_in(self.challenge.pk, self.user, ["run"], today=self.day1 + timedelta(days=offset))
		with self.assertRaises(PreconditionFailed):
			check_in(self.challenge.pk, self.user, ["run"], today=self.day1 + timedelta(days=3))
		self.challenge.refresh_from_db()
		self.assertEqual(self.challenge.completion_count, 1)

	def test_not_enrolled(self):
		other = User.objects.create_user(email='other@example.com', password='pass')
		with self.assertRaises(PreconditionFailed):
			check_in(self.challenge.pk, other, ["run"], today=self.day1)

	def test_unknown_challenge(self):
		with self.assertRaises(NotFound):
			check_in(999999, self.user, ["run"], today=self.day1)

	def test_restart_on_fail_writes_no_progress(self):
		strict = Challenge.objects.create(name='Strict', duration_days=5, daily_tasks=RUN_ONLY, restart_on_fail=True)
		join_challenge(strict.pk, self.user)
		check_in(strict.pk, self.user, ["run"], today=self.day1)

		result = check_in(strict.pk, self.user, [], today=self.day1 + timedelta(days=1))
		self.assertTrue(result['reset'])
		p = ChallengeParticipant.objects.get(challenge=strict, user=self.user)
		self.assertEqual((p.current_day, p.current_streak), (1, 0))
		self.assertEqual(p.progress.count(), 1)
		self.assertFalse(p.progress.filter(date=self.day1 + timedelta(days=1)).exists())

	def test_tasks_ledger_lists_every_daily_task(self):
		mixed = Challenge.objects.create(
			name='Mixed', duration_days=10,
			daily_tasks=[{"name": "run", "isRequired": True}, {"name": "read", "isRequired": False}],
		)
		join_challenge(mixed.pk, self.user)
		check_in(mixed.pk, self.user, ["run"], notes="easy", today=self.day1)
		progress = ChallengeProgress.objects.get(participant__challenge=mixed)
		self.assertEqual(progress.day, 1)
		self.assertEqual(progress.notes, "easy")
		self.assertEqual(progress.tasks_completed, [
			{"taskName": "run", "completed": True},
			{"taskName": "read", "completed": False},
		])


class JoinLeaveTests(TestCase):
	@classmethod
	def setUpTestData(cls):
		cls.user = User.objects.create_user(email='joiner@example.com', password='pass')
		cls.challenge = Challenge.objects.create(name='Plank', duration_days=30, daily_tasks=RUN_ONLY)

	def count(self):
		self.challenge.refresh_from_db()
		return self.challenge.participant_count

	def test_join_creates_active_participant(self):
		participant, rejoined = join_challenge(self.challenge.pk, self.user)
		self.assertFalse(rejoined)
		self.assertEqual(participant.status, ChallengeParticipant.STATUS_ACTIVE)
		self.assertEqual(participant.current_day, 1)
		self.assertEqual(self.count(), 1)
		self.assertIsNotNone(self.challenge.last_activity_at)

	def test_join_twice_conflicts(self):
		join_challenge(self.challenge.pk, self.user)
		with self.assertRaises(Conflict):
			join_challenge(self.challenge.pk, self.user)
		self.assertEqual(self.count(), 1)

	def test_inactive_challenge_cannot_be_joined(self):
		closed = Challenge.objects.create(name='Closed', duration_days=3, is_active=False)
		with self.assertRaises(PreconditionFailed):
			join_challenge(closed.pk, self.user)

	def test_leave_then_rejoin_reuses_row_without_recounting(self):
		participant, _ = join_challenge(self.challenge.pk, self.user)
		ChallengeParticipant.objects.filter(pk=participant.pk).update(current_day=7, current_streak=6, longest_streak=6)

		leave_challenge(self.challenge.pk, self.user)
		self.assertEqual(self.count(), 0)

		rejoined_participant, rejoined = join_challenge(self.challenge.pk, self.user)
		self.assertTrue(rejoined)
		self.assertEqual(rejoined_participant.pk, participant.pk)
		self.assertEqual(rejoined_participant.current_day, 1)
		self.assertEqual(rejoined_participant.current_streak, 0)
		self.assertEqual(rejoined_participant.longest_streak, 0)
		self.assertEqual(self.count(), 0)
		self.assertEqual(ChallengeParticipant.objects.filter(challenge=self.challenge, user=self.user).count(), 1)

	def test_leave_without_participation(self):
		with self.assertRaises(NotFound):
			leave_challenge(self.challenge.pk, self.user)

	def test_leave_completed_is_rejected(self):
		ChallengeParticipant.objects.create(challenge=self.challenge, user=self.user,
		                                    status=ChallengeParticipant.STATUS_COMPLETED)
		with self.assertRaises(PreconditionFailed):
			leave_challenge(self.challenge.pk, self.user)

	def test_participant_count_never_goes_negative(self):
		join_challenge(self.challenge.pk, self.user)
		Challenge.objects.filter(pk=self.challenge.pk).update(participant_count=0)
		leave_challenge(self.challenge.pk, self.user)
		self.assertEqual(self.count(), 0)


class LeaderboardTests(TestCase):
	@classmethod
	def setUpTestData(cls):
		cls.challenge = Challenge.objects.create(name='Ladder', duration_days=30)
		cls.users = []
		rows = [(5, 4, 4), (5, 2, 4), (9, 0, 3), (2, 1, 1)]
		for index, (day, streak, longest) in enumerate(rows):
			user = User.objects.create_user(email=f'l{index}@example.com', password='pass', display_name=f'L{index}')
			ChallengeParticipant.objects.create(
				challenge=cls.challenge, user=user, current_day=day, current_streak=streak, longest_streak=longest,
			)
			cls.users.append(user)

	def test_ordering_and_ranks(self):
		board = leaderboard(self.challenge.pk, self.users[0])
		names = [entry['name'] for entry in board['leaderboard']]
		self.assertEqual(names, ['L2', 'L0', 'L1', 'L3'])
		self.assertEqual([entry['rank'] for entry in board['leaderboard']], [1, 2, 3, 4])
		self.assertTrue(board['leaderboard'][1]['is_current_user'])
		self.assertFalse(board['has_more'])
		self.assertIsNone(board['current_user_rank'])

	def test_pagination_reports_caller_rank_off_page(self):
		board = leaderboard(self.challenge.pk, self.users[3], limit=2)
		self.assertEqual(len(board['leaderboard']), 2)
		self.assertTrue(board['has_more'])
		self.assertEqual(board['current_user_rank']['rank'], 4)

		page2 = leaderboard(self.challenge.pk, self.users[3], limit=2, offset=2)
		self.assertEqual(page2['leaderboard'][0]['rank'], 3)
		self.assertFalse(page2['has_more'])

	def test_quit_participants_are_hidden(self):
		ChallengeParticipant.objects.filter(user=self.users[2]).update(status=ChallengeParticipant.STATUS_QUIT)
		board = leaderboard(self.challenge.pk, self.users[0])
		self.assertNotIn('L2', [entry['name'] for entry in board['leaderboard']])

	def test_limit_is_clamped(self):
		board = leaderboard(self.challenge.pk, self.users[0], limit=500)
		self.assertEqual(len(board['leaderboard']), 4)


class RecomputeCountersCommandTests(TestCase):
	def test_repairs_drifted_counters(self):
		challenge = Challenge.objects.create(name='Drift', duration_days=3, participant_count=10, completion_count=4)
		for index, status in enumerate([ChallengeParticipant.STATUS_ACTIVE, ChallengeParticipant.STATUS_COMPLETED,
		                                 ChallengeParticipant.STATUS_QUIT]):
			user = User.objects.create_user(email=f'd{index}@example.com', password='pass')
			ChallengeParticipant.objects.create(challenge=challenge, user=user, status=status)

		out = StringIO()
		call_command('recompute_challenge_counters', stdout=out)
		challenge.refresh_from_db()
		self.assertEqual(challenge.participant_count, 2)
		self.assertEqual(challenge.completion_count, 1)
		self.assertIn('1 challenge(s) fixed', out.getvalue())

	def test_counts_rejoined_participants(self):
		challenge = Challenge.objects.create(name='Comeback', duration_days=3, daily_tasks=RUN_ONLY)
		user = User.objects.create_user(email='comeback@example.com', password='pass')
		join_challenge(challenge.pk, user)
		leave_challenge(challenge.pk, user)
		join_challenge(challenge.pk, user)
		challenge.refresh_from_db()
		self.assertEqual(challenge.participant_count, 0)

		call_command('recompute_challenge_counters', '--challenge', str(challenge.pk), stdout=StringIO())
		challenge.refresh_from_db()
		self.assertEqual(challenge.participant_count, 1)

	def test_dry_run_leaves_counters(self):
		challenge = Challenge.objects.create(name='Drift', duration_days=3, participant_count=3)
		call_command('recompute_challenge_counters', '--dry-run', stdout=StringIO())
		challenge.refresh_from_db()
		self.assertEqual(challenge.participant_count, 3)
