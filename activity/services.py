"""Activity feed and notification helpers used by the other apps."""
import logging

from django.db.models import Q
from django.utils import timezone

from .models import ActivityFeedItem, Notification

logger = logging.getLogger(__name__)


def record_activity(actor, verb, *, challenge=None, circle=None, payload=None):
    """Append an item to the actor's activity feed."""
    return ActivityFeedItem.objects.create(
        actor=actor,
        verb=verb,
        challenge=challenge,
        circle=circle,
        payload=payload or {},
    )


def notify(user, kind, title, body="", data=None):
    """Create an in-app notification for ``user``."""
    notification = Notification.objects.create(
        user=user,
        kind=kind,
        title=title[:200],
        body=body,
        data=data or {},
    )
    logger.debug(f"Notification {notification.pk} ({kind}) created for user_id={user.pk}")
    return notification


def feed_for(user):
    """Feed items by ``user`` and by anyone sharing a circle with them, newest first."""
    from circles.models import CircleMember

    circle_ids = CircleMember.objects.filter(user=user).values_list("circle_id", flat=True)
    peer_ids = CircleMember.objects.filter(circle_id__in=circle_ids).values_list("user_id", flat=True)

    return (
        ActivityFeedItem.objects.filter(Q(actor=user) | Q(actor_id__in=peer_ids) | Q(circle_id__in=circle_ids))
        .select_related("actor", "challenge", "circle")
        .distinct()
        .order_by("-created_at")
    )


def mark_notifications_read(user, ids=None):
    """Mark the user's unread notifications (optionally only ``ids``) as read.

    Returns the number of notifications updated.
    """
    qs = Notification.objects.filter(user=user, read_at__isnull=True)
    if ids:
        qs = qs.filter(pk__in=ids)
    return qs.update(read_at=timezone.now())
