"""
Circle membership and invite-code redemption.

Invite capacity is enforced by a single guarded UPDATE on the ``uses``
counter, so two users racing for the last slot cannot both get in.
"""
import logging
import secrets
import string

from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q
from django.db.models.functions import Greatest
from django.utils import timezone

from activity.services import notify, record_activity
from core.exceptions import CapacityExhausted, Conflict, Gone, NotFound, PermissionDenied

from .models import Circle, CircleInvitation, CircleMember

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_invite_code(length=CircleInvitation.CODE_LENGTH):
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def circles_for(user):
    return (
        Circle.objects.filter(members__user=user)
        .annotate(num_members=Count("members", distinct=True))
        .order_by("name")
    )


def get_membership(circle, user):
    return CircleMember.objects.filter(circle=circle, user=user).first()


def get_circle_for_member(circle_id, user):
    """Return the circle if ``user`` belongs to it, else raise NotFound."""
    circle = Circle.objects.filter(pk=circle_id, members__user=user).first()
    if circle is None:
        raise NotFound("Circle not found")
    return circle


def share_circle(user_a, user_b, circle=None) -> bool:
    """True if both users are members of ``circle`` (or of any common circle)."""
    memberships = CircleMember.objects.filter(user=user_a)
    if circle is not None:
        memberships = memberships.filter(circle=circle)
    circle_ids = memberships.values_list("circle_id", flat=True)
    return CircleMember.objects.filter(user=user_b, circle_id__in=circle_ids).exists()


@transaction.atomic
def create_circle(owner, name, description="", is_private=True):
    circle = Circle.objects.create(owner=owner, name=name, description=description, is_private=is_private)
    CircleMember.objects.create(
        circle=circle,
        user=owner,
        role=CircleMember.ROLE_OWNER,
        display_name=owner.public_name,
    )
    logger.info(f"User {owner.pk} created circle {circle.pk}")
    return circle


def create_invitation(circle, created_by, *, role=CircleMember.ROLE_MEMBER, email="", max_uses=None, expires_at=None):
    """Create an invite code for ``circle``. Only owners and admins may invite."""
    membership = get_membership(circle, created_by)
    if membership is None or not membership.can_manage:
        raise PermissionDenied("Only circle owners and admins can create invitations")

    # Retry on the rare code collision
    for _ in range(5):
        try:
            with transaction.atomic():
                return CircleInvitation.objects.create(
                    circle=circle,
                    code=generate_invite_code(),
                    role=role,
                    email=(email or "").lower(),
                    max_uses=max_uses,
                    expires_at=expires_at,
                    created_by=created_by,
                )
        except IntegrityError:
            logger.warning(f"Invite code collision for circle {circle.pk}, retrying")
    raise Conflict("Could not generate a unique invite code")


def _lookup_invitation(code):
    normalized = (code or "").strip().upper()
    if not normalized:
        return None
    return CircleInvitation.objects.select_related("circle").filter(code=normalized).first()


def preview_invitation(code) -> dict:
    """Public details of an invitation, shown before the user decides to join."""
    invitation = _lookup_invitation(code)
    if invitation is None:
        raise NotFound("Invalid invite code")
    if invitation.is_expired():
        raise Gone("This invite code has expired")
    if invitation.is_exhausted:
        raise Gone("This invite code has reached its maximum uses")

    circle = invitation.circle
    return {
        "code": invitation.code,
        "circle": {
            "id": circle.pk,
            "name": circle.name,
            "description": circle.description,
            "member_count": circle.member_count,
        },
        "role": invitation.role,
        "email_restricted": bool(invitation.email),
        "expires_at": invitation.expires_at,
    }


def redeem_invitation(code, user):
    """Join the invitation's circle.

    Raises:
        NotFound: code unknown or expired
        PermissionDenied: the invitation is restricted to another email address
        Conflict: user is already a member
        CapacityExhausted: every use of the code has been taken
    """
    invitation = _lookup_invitation(code)
    if invitation is None or invitation.is_expired():
        raise NotFound("Invalid or expired invite code")
    if invitation.email and invitation.email.lower() != (user.email or "").lower():
        raise PermissionDenied("This invitation was sent to a different email address")

    circle = invitation.circle
    if get_membership(circle, user) is not None:
        raise Conflict("You are already a member of this circle")

    claimed = CircleInvitation.objects.filter(
        Q(max_uses__isnull=True) | Q(uses__lt=F("max_uses")),
        pk=invitation.pk,
    ).update(uses=F("uses") + 1)
    if not claimed:
        raise CapacityExhausted("This invite code has reached its maximum uses")

    try:
        with transaction.atomic():
            member = CircleMember.objects.create(
                circle=circle,
                user=user,
                role=invitation.role,
                display_name=user.public_name,
            )
    except Exception:
        # Give the slot back before surfacing the original error
        CircleInvitation.objects.filter(pk=invitation.pk).update(uses=Greatest(F("uses") - 1, 0))
        logger.warning(f"Membership insert failed for user {user.pk} in circle {circle.pk}; invite use released")
        raise

    record_activity(user, "joined_circle", circle=circle)
    if circle.owner_id != user.pk:
        notify(
            circle.owner,
            "circle_joined",
            f"{user.public_name} joined {circle.name}",
            data={"circle_id": circle.pk, "user_id": user.pk},
        )
    logger.info(f"User {user.pk} joined circle {circle.pk} with invite {invitation.pk}")
    return member
