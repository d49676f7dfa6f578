"""
Challenge participation: joining, leaving and daily check-ins.

``evaluate_check_in`` is a pure function holding the streak and day rules.
The remaining functions load and lock rows, apply an outcome and fire the
side effects (counters, feed, notification, badge evaluation).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.db.models.functions import Greatest
from django.utils import timezone

from activity.services import notify, record_activity
from badges.tasks import trigger_badge_evaluation
from core.exceptions import Conflict, NotFound, PermissionDenied, PreconditionFailed

from .models import Challenge, ChallengeParticipant, ChallengeProgress, ChallengeProofUpload

logger = logging.getLogger(__name__)

LEADERBOARD_DEFAULT_LIMIT = 50
LEADERBOARD_MAX_LIMIT = 100


@dataclass(frozen=True)
class CheckInOutcome:
    """Participant state after a check-in, before anything is persisted."""
    completed_required: bool
    reset: bool
    day: Optional[int]
    current_day: int
    current_streak: int
    longest_streak: int
    days_completed: int
    days_failed: int
    is_completed: bool

    @property
    def recorded(self) -> bool:
        return not self.reset


def required_task_names(daily_tasks) -> list[str]:
    return [task["name"] for task in (daily_tasks or []) if task.get("isRequired")]


def evaluate_check_in(
    *,
    daily_tasks,
    reported_task_names: Iterable[str],
    restart_on_fail: bool,
    duration_days: int,
    current_day: int,
    current_streak: int,
    longest_streak: int,
    days_completed: int,
    days_failed: int = 0,
) -> CheckInOutcome:
    """Apply one day's reported tasks to a participant's counters.

    The day being checked in is ``current_day``; the challenge is finished once
    that day reaches ``duration_days`` (so ``current_day`` ends one past it).
    """
    reported = set(reported_task_names or [])
    completed_required = all(name in reported for name in required_task_names(daily_tasks))

    if not completed_required and restart_on_fail:
        return CheckInOutcome(
            completed_required=False,
            reset=True,
            day=None,
            current_day=1,
            current_streak=0,
            longest_streak=longest_streak,
            days_completed=days_completed,
            days_failed=days_failed,
            is_completed=False,
        )

    new_streak = current_streak + 1 if completed_required else 0
    return CheckInOutcome(
        completed_required=completed_required,
        reset=False,
        day=current_day,
        current_day=current_day + 1,
        current_streak=new_streak,
        longest_streak=max(longest_streak, new_streak),
        days_completed=days_completed + 1,
        days_failed=days_failed if completed_required else days_failed + 1,
        is_completed=current_day >= duration_days,
    )


def get_challenge(challenge_id) -> Challenge:
    challenge = Challenge.objects.filter(pk=challenge_id).first()
    if challenge is None:
        raise NotFound("Challenge not found")
    return challenge


def get_participation(challenge, user) -> Optional[ChallengeParticipant]:
    return ChallengeParticipant.objects.filter(challenge=challenge, user=user).first()


def visible_challenges(user):
    """Active challenges the user may see: public ones plus those of their circles."""
    from circles.models import CircleMember

    circle_ids = CircleMember.objects.filter(user=user).values_list("circle_id", flat=True)
    return Challenge.objects.filter(is_active=True).filter(
        Q(visibility="public") | Q(visibility="circle", circle_id__in=circle_ids) | Q(created_by=user)
    ).distinct()


def _tasks_ledger(daily_tasks, reported_task_names):
    reported = set(reported_task_names or [])
    return [
        {"taskName": task["name"], "completed": task["name"] in reported}
        for task in (daily_tasks or [])
    ]


def check_in(challenge_id, user, completed_tasks=None, notes="", today: Optional[date] = None) -> dict:
    """Record today's check-in for ``user`` in a challenge.

    Raises:
        NotFound: challenge does not exist
        PreconditionFailed: user is not enrolled, or their participation is not active
        Conflict: a check-in already exists for today
    """
    challenge = get_challenge(challenge_id)
    today = today or timezone.localdate()
    completed_tasks = list(completed_tasks or [])

    with transaction.atomic():
        participant = (
            ChallengeParticipant.objects.select_for_update()
            .filter(challenge=challenge, user=user)
            .first()
        )
        if participant is None:
            raise PreconditionFailed("Not enrolled in this challenge")
        if participant.status != ChallengeParticipant.STATUS_ACTIVE:
            raise PreconditionFailed("Challenge is not active")
        if ChallengeProgress.objects.filter(participant=participant, date=today).exists():
            raise Conflict("Already checked in today")

        outcome = evaluate_check_in(
            daily_tasks=challenge.daily_tasks,
            reported_task_names=completed_tasks,
            restart_on_fail=challenge.restart_on_fail,
            duration_days=challenge.duration_days,
            current_day=participant.current_day,
            current_streak=participant.current_streak,
            longest_streak=participant.longest_streak,
            days_completed=participant.days_completed,
            days_failed=participant.days_failed,
        )

        if outcome.reset:
            participant.current_day = outcome.current_day
            participant.current_streak = outcome.current_streak
            participant.save(update_fields=["current_day", "current_streak", "updated_at"])
            logger.info(f"Participant {participant.pk} missed required tasks in challenge {challenge.pk}; progress reset")
            return {
                "success": False,
                "reset": True,
                "completed": False,
                "day": participant.current_day,
                "streak": 0,
                "days_remaining": participant.days_remaining,
                "message": "Missing required tasks. Challenge progress reset.",
            }

        try:
            with transaction.atomic():
                ChallengeProgress.objects.create(
                    participant=participant,
                    date=today,
                    day=outcome.day,
                    completed=outcome.completed_required,
                    tasks_completed=_tasks_ledger(challenge.daily_tasks, completed_tasks),
                    notes=notes or "",
                )
        except IntegrityError:
            raise Conflict("Already checked in today")

        participant.current_day = outcome.current_day
        participant.current_streak = outcome.current_streak
        participant.longest_streak = outcome.longest_streak
        participant.days_completed = outcome.days_completed
        participant.days_failed = outcome.days_failed
        if outcome.is_completed:
            participant.status = ChallengeParticipant.STATUS_COMPLETED
            participant.completed_date = timezone.now()
        participant.save()

        if outcome.is_completed:
            _on_challenge_completed(challenge, participant)

    if outcome.is_completed:
        return {
            "success": True,
            "reset": False,
            "completed": True,
            "day": participant.current_day,
            "streak": participant.current_streak,
            "days_remaining": 0,
            "message": f"Congratulations! You completed {challenge.name}!",
        }

    return {
        "success": True,
        "reset": False,
        "completed": False,
        "day": participant.current_day,
        "streak": participant.current_streak,
        "days_remaining": participant.days_remaining,
        "message": "Checked in" if outcome.completed_required else "Checked in with required tasks missing",
    }


def _on_challenge_completed(challenge, participant):
    """Side effects of the active -> completed edge. Runs inside the check-in transaction."""
    Challenge.objects.filter(pk=challenge.pk).update(
        completion_count=F("completion_count") + 1,
        last_activity_at=timezone.now(),
    )
    record_activity(participant.user, "completed_challenge", challenge=challenge,
                    payload={"longest_streak": participant.longest_streak})
    notify(
        participant.user,
        "challenge_completed",
        f"You completed {challenge.name}!",
        data={"challenge_id": challenge.pk},
    )
    user_id = participant.user_id
    transaction.on_commit(lambda: trigger_badge_evaluation(user_id, trigger="challenge"))
    logger.info(f"Participant {participant.pk} completed challenge {challenge.pk}")


def join_challenge(challenge_id, user):
    """Enroll ``user`` in a challenge, or reactivate a participation they quit.

    Returns:
        Tuple of (participant, rejoined: bool)
    """
    challenge = get_challenge(challenge_id)
    if not challenge.is_active:
        raise PreconditionFailed("Challenge is not open for new participants")

    now = timezone.now()
    with transaction.atomic():
        existing = (
            ChallengeParticipant.objects.select_for_update()
            .filter(challenge=challenge, user=user)
            .first()
        )
        if existing is not None:
            if existing.status != ChallengeParticipant.STATUS_QUIT:
                raise Conflict("Already joined")
            # Rejoining is not a new join: participant_count stays as it is
            existing.status = ChallengeParticipant.STATUS_ACTIVE
            existing.current_day = 1
            existing.current_streak = 0
            existing.longest_streak = 0
            existing.start_date = now
            existing.save(update_fields=[
                "status", "current_day", "current_streak", "longest_streak", "start_date", "updated_at",
            ])
            logger.info(f"User {user.pk} rejoined challenge {challenge.pk}")
            return existing, True

        try:
            with transaction.atomic():
                participant = ChallengeParticipant.objects.create(
                    challenge=challenge,
                    user=user,
                    status=ChallengeParticipant.STATUS_ACTIVE,
                    start_date=now,
                )
        except IntegrityError:
            raise Conflict("Already joined")

        Challenge.objects.filter(pk=challenge.pk).update(
            participant_count=F("participant_count") + 1,
            last_activity_at=now,
        )
        record_activity(user, "joined_challenge", challenge=challenge)

    logger.info(f"User {user.pk} joined challenge {challenge.pk}")
    return participant, False


def leave_challenge(challenge_id, user) -> ChallengeParticipant:
    """Mark the user's participation as quit, keeping its history."""
    challenge = get_challenge(challenge_id)

    with transaction.atomic():
        participant = (
            ChallengeParticipant.objects.select_for_update()
            .filter(challenge=challenge, user=user)
            .first()
        )
        if participant is None or participant.status == ChallengeParticipant.STATUS_QUIT:
            raise NotFound("Not a participant")
        if participant.status == ChallengeParticipant.STATUS_COMPLETED:
            raise PreconditionFailed("Completed challenges cannot be left")

        participant.status = ChallengeParticipant.STATUS_QUIT
        participant.save(update_fields=["status", "updated_at"])
        Challenge.objects.filter(pk=challenge.pk).update(
            participant_count=Greatest(F("participant_count") - 1, 0),
        )

    logger.info(f"User {user.pk} left challenge {challenge.pk}")
    return participant


def progress_history(challenge_id, user):
    challenge = get_challenge(challenge_id)
    participant = get_participation(challenge, user)
    if participant is None:
        raise PreconditionFailed("Not enrolled in this challenge")
    return participant, participant.progress.order_by("date")


def leaderboard(challenge_id, user, limit=LEADERBOARD_DEFAULT_LIMIT, offset=0) -> dict:
    """Rank non-quit participants by day reached, then current and longest streak."""
    challenge = get_challenge(challenge_id)
    limit = max(1, min(int(limit), LEADERBOARD_MAX_LIMIT))
    offset = max(0, int(offset))

    ranked = (
        challenge.participants.exclude(status=ChallengeParticipant.STATUS_QUIT)
        .select_related("user")
        .order_by("-current_day", "-current_streak", "-longest_streak", "start_date", "pk")
    )
    page = list(ranked[offset:offset + limit + 1])
    has_more = len(page) > limit
    page = page[:limit]

    entries = []
    for index, participant in enumerate(page):
        entries.append({
            "rank": offset + index + 1,
            "user_id": participant.user_id,
            "name": participant.user.public_name,
            "avatar_url": participant.user.avatar_url,
            "handle": participant.user.handle,
            "current_day": participant.current_day,
            "current_streak": participant.current_streak,
            "longest_streak": participant.longest_streak,
            "status": participant.status,
            "start_date": participant.start_date,
            "is_current_user": participant.user_id == user.pk,
        })

    current_user_rank = None
    if not any(entry["is_current_user"] for entry in entries):
        mine = ranked.filter(user=user).first()
        if mine is not None:
            ahead = ranked.filter(
                Q(current_day__gt=mine.current_day)
                | Q(current_day=mine.current_day, current_streak__gt=mine.current_streak)
                | Q(current_day=mine.current_day, current_streak=mine.current_streak,
                    longest_streak__gt=mine.longest_streak)
            ).count()
            current_user_rank = {
                "rank": ahead + 1,
                "current_day": mine.current_day,
                "current_streak": mine.current_streak,
            }

    return {
        "leaderboard": entries,
        "current_user_rank": current_user_rank,
        "has_more": has_more,
    }


def upload_proof(challenge_id, user, *, media_type, media, visibility="private", caption="",
                 day_number=None, progress_id=None) -> ChallengeProofUpload:
    """Store a proof file for the user's participation in object storage."""
    challenge = get_challenge(challenge_id)
    participant = get_participation(challenge, user)
    if participant is None:
        raise PermissionDenied("Not participating in this challenge")

    progress = None
    if progress_id is not None:
        progress = participant.progress.filter(pk=progress_id).first()
        if progress is None:
            raise NotFound("Progress entry not found")

    proof = ChallengeProofUpload.objects.create(
        participant=participant,
        progress=progress,
        media_type=media_type,
        media=media,
        visibility=visibility,
        caption=caption or "",
        day_number=day_number if day_number is not None else (progress.day if progress else None),
    )
    logger.info(f"Stored {media_type} proof {proof.pk} for participant {participant.pk}")
    return proof


def list_proofs(challenge_id, user):
    challenge = get_challenge(challenge_id)
    participant = get_participation(challenge, user)
    if participant is None:
        raise PermissionDenied("Not participating in this challenge")
    return participant.proof_uploads.order_by("-created_at")
