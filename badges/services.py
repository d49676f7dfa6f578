"""Badge eligibility checks and awarding."""
import logging
from typing import Dict, List, Optional, Any

from django.db import IntegrityError, transaction
from django.db.models import Max

from core.exceptions import BusinessRuleViolation, NotFound

logger = logging.getLogger(__name__)

AUTO_FEATURE_LIMIT = 3
MAX_FEATURED_BADGES = 6


class BadgeService:
    """Service for evaluating badge criteria against a user's progress."""

    @staticmethod
    def check_challenge_complete(user, criteria: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Completed challenge participations, optionally for one challenge.

        Args:
            user: Django User object
            criteria: ``{"type": "challenge_complete", "count": int, "challengeId": int}``

        Returns:
            Award metadata when eligible, None otherwise
        """
        from challenges.models import ChallengeParticipant

        completed = ChallengeParticipant.objects.filter(user=user, status=ChallengeParticipant.STATUS_COMPLETED)
        if criteria.get("challengeId"):
            completed = completed.filter(challenge_id=criteria["challengeId"])
        total = completed.count()
        if total >= int(criteria.get("count") or 1):
            return {"completed": total}
        return None

    @staticmethod
    def check_streak(user, criteria: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Longest streak reached in any challenge is at least ``days``."""
        from challenges.models import ChallengeParticipant

        days = criteria.get("days")
        if not days:
            return None
        longest = ChallengeParticipant.objects.filter(user=user).aggregate(best=Max("longest_streak"))["best"] or 0
        if longest >= int(days):
            return {"streak": longest}
        return None

    @staticmethod
    def check_circles_created(user, criteria: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Number of circles the user owns is at least ``circleCount``."""
        from circles.models import CircleMember

        needed = criteria.get("circleCount") or criteria.get("count")
        if not needed:
            return None
        owned = CircleMember.objects.filter(user=user, role=CircleMember.ROLE_OWNER).count()
        if owned >= int(needed):
            return {"circles": owned}
        return None

    @classmethod
    def check_eligibility(cls, user, badge) -> Optional[Dict[str, Any]]:
        checks = {
            "challenge_complete": cls.check_challenge_complete,
            "streak": cls.check_streak,
            "circles_created": cls.check_circles_created,
        }
        check = checks.get(badge.criteria_type)
        if check is None:
            return None
        return check(user, badge.criteria or {})

    @staticmethod
    def award(user, badge, metadata: Optional[Dict[str, Any]] = None):
        """Award ``badge`` to ``user``; auto-features it while they have fewer than 3 featured.

        Returns:
            The new UserBadge, or None if the user already holds the badge
        """
        from activity.services import notify, record_activity
        from .models import UserBadge

        featured = UserBadge.objects.filter(user=user, is_featured=True).count()
        try:
            with transaction.atomic():
                user_badge = UserBadge.objects.create(
                    user=user,
                    badge=badge,
                    metadata=metadata or {},
                    is_featured=featured < AUTO_FEATURE_LIMIT,
                )
        except IntegrityError:
            return None

        record_activity(user, "earned_badge", payload={"badge": badge.slug, "name": badge.name})
        notify(user, "badge_awarded", f"You earned the {badge.name} badge!", data={"badge": badge.slug})
        logger.info(f"Awarded badge {badge.slug} to user {user.pk}")
        return user_badge

    @classmethod
    def evaluate_and_award(cls, user) -> List[Any]:
        """Check every active automatic badge the user lacks and award the earned ones.

        Example:
            >>> awarded = BadgeService.evaluate_and_award(user)
            >>> [b.badge.slug for b in awarded]
            ['first-challenge']
        """
        from .models import BadgeDefinition, UserBadge

        held = set(UserBadge.objects.filter(user=user).values_list("badge_id", flat=True))
        awarded = []
        for badge in BadgeDefinition.objects.filter(is_active=True, is_automatic=True).exclude(pk__in=held):
            metadata = cls.check_eligibility(user, badge)
            if metadata is None:
                continue
            user_badge = cls.award(user, badge, metadata)
            if user_badge is not None:
                awarded.append(user_badge)
        return awarded

    @staticmethod
    def set_featured(user, user_badge_id, is_featured: bool):
        """Feature or unfeature one of the user's badges (at most 6 featured)."""
        from .models import UserBadge

        user_badge = UserBadge.objects.filter(pk=user_badge_id, user=user).select_related("badge").first()
        if user_badge is None:
            raise NotFound("Badge not found")
        if is_featured and not user_badge.is_featured:
            if UserBadge.objects.filter(user=user, is_featured=True).count() >= MAX_FEATURED_BADGES:
                raise BusinessRuleViolation(f"Maximum of {MAX_FEATURED_BADGES} featured badges allowed")
        user_badge.is_featured = is_featured
        user_badge.save(update_fields=["is_featured"])
        return user_badge
