"""
Rebuild challenge counters from participant rows.

participant_count is set to the number of non-quit participants (active or
completed) and completion_count to the number of completed ones. A leave
followed by a rejoin lowers the running counter without raising it again, so
this command also restores those rejoined participants to the count.

Usage:
    python manage.py recompute_challenge_counters
    python manage.py recompute_challenge_counters --challenge 12 --dry-run
"""
from django.core.management.base import BaseCommand
from django.db.models import Count, Q

from challenges.models import Challenge, ChallengeParticipant


class Command(BaseCommand):
    help = ('Recompute participant_count (active and completed participants, rejoined ones included) '
            'and completion_count from participant rows')

    def add_arguments(self, parser):
        parser.add_argument(
            '--challenge',
            type=int,
            help='Only recompute this challenge id'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report drift without saving'
        )

    def handle(self, *args, **options):
        challenges = Challenge.objects.annotate(
            actual_participants=Count(
                'participants',
                filter=Q(participants__status__in=[
                    ChallengeParticipant.STATUS_ACTIVE,
                    ChallengeParticipant.STATUS_COMPLETED,
                ]),
            ),
            actual_completions=Count(
                'participants',
                filter=Q(participants__status=ChallengeParticipant.STATUS_COMPLETED),
            ),
        )
        if options.get('challenge'):
            challenges = challenges.filter(pk=options['challenge'])

        if not challenges.exists():
            self.stdout.write(self.style.WARNING('No challenges found.'))
            return

        fixed = 0
        for challenge in challenges:
            if (challenge.participant_count == challenge.actual_participants
                    and challenge.completion_count == challenge.actual_completions):
                continue

            self.stdout.write(
                f'{challenge.name}: participants {challenge.participant_count} -> {challenge.actual_participants}, '
                f'completions {challenge.completion_count} -> {challenge.actual_completions}'
            )
            fixed += 1
            if options['dry_run']:
                continue
            Challenge.objects.filter(pk=challenge.pk).update(
                participant_count=challenge.actual_participants,
                completion_count=challenge.actual_completions,
            )

        verb = 'would be fixed' if options['dry_run'] else 'fixed'
        self.stdout.write(self.style.SUCCESS(f'\n{fixed} challenge(s) {verb}.'))
