"""Direct messages between circle members."""
import logging

from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from django.utils import timezone

from activity.services import notify
from core.exceptions import BusinessRuleViolation, ContentRejected, NotFound, PermissionDenied

from .models import Message
from .moderation import moderate_text

logger = logging.getLogger(__name__)

THREAD_DEFAULT_LIMIT = 50
THREAD_MAX_LIMIT = 100


def _visible_to(user):
    return Q(sender=user, deleted_by_sender=False) | Q(recipient=user, deleted_by_recipient=False)


def send_message(sender, recipient_id, circle_id, content):
    """Send ``content`` to another member of ``circle_id``.

    Raises:
        ContentRejected: the text failed moderation
        PermissionDenied: sender and recipient are not both in the circle
    """
    from circles.models import CircleMember

    if int(recipient_id) == sender.pk:
        raise BusinessRuleViolation("You cannot message yourself")

    moderation = moderate_text(content)
    if not moderation.is_clean:
        logger.warning(f"Message rejected from user {sender.pk}: {', '.join(moderation.flagged_words)}")
        raise ContentRejected(moderation.flagged_words)

    member_ids = set(
        CircleMember.objects.filter(circle_id=circle_id, user_id__in=[sender.pk, recipient_id])
        .values_list("user_id", flat=True)
    )
    if sender.pk not in member_ids or int(recipient_id) not in member_ids:
        raise PermissionDenied("Both users must be members of the same circle to message")

    message = Message.objects.create(
        circle_id=circle_id,
        sender=sender,
        recipient_id=recipient_id,
        content=content,
    )
    notify(
        message.recipient,
        "message",
        f"New message from {sender.public_name}",
        body=content[:140],
        data={"message_id": message.pk, "sender_id": sender.pk},
    )
    return message


def conversations(user):
    """Latest visible message per conversation partner, newest first, with unread counts."""
    unread = dict(
        Message.objects.filter(recipient=user, read_at__isnull=True, deleted_by_recipient=False)
        .values("sender_id")
        .annotate(total=Count("id"))
        .values_list("sender_id", "total")
    )

    latest = {}
    for message in Message.objects.filter(_visible_to(user)).select_related("sender", "recipient").order_by("-created_at", "-pk"):
        partner = message.recipient if message.sender_id == user.pk else message.sender
        if partner.pk not in latest:
            latest[partner.pk] = {
                "partner": partner,
                "last_message": message,
                "unread_count": unread.get(partner.pk, 0),
            }
    return list(latest.values())


def thread(user, partner_id, limit=THREAD_DEFAULT_LIMIT, before=None):
    """Messages exchanged with ``partner_id`` in chronological order.

    Fetching the thread marks the partner's unread messages to ``user`` as read.

    Returns:
        Tuple of (messages, has_more)
    """
    if not get_user_model().objects.filter(pk=partner_id).exists():
        raise NotFound("User not found")

    limit = max(1, min(int(limit), THREAD_MAX_LIMIT))
    qs = Message.objects.filter(
        Q(sender=user, recipient_id=partner_id, deleted_by_sender=False)
        | Q(sender_id=partner_id, recipient=user, deleted_by_recipient=False)
    )
    if before is not None:
        qs = qs.filter(created_at__lt=before)

    page = list(qs.order_by("-created_at", "-pk")[:limit + 1])
    has_more = len(page) > limit
    page = page[:limit]

    now = timezone.now()
    marked = Message.objects.filter(recipient=user, sender_id=partner_id, read_at__isnull=True).update(read_at=now)
    if marked:
        logger.debug(f"Marked {marked} messages from {partner_id} read for user {user.pk}")
        for message in page:
            if message.recipient_id == user.pk and message.read_at is None:
                message.read_at = now

    page.reverse()
    return page, has_more


def delete_message(user, message_id):
    """Hide a message from the caller's side of the conversation."""
    message = Message.objects.filter(pk=message_id).first()
    if message is None:
        raise NotFound("Message not found")

    if message.sender_id == user.pk:
        message.deleted_by_sender = True
        message.save(update_fields=["deleted_by_sender"])
    elif message.recipient_id == user.pk:
        message.deleted_by_recipient = True
        message.save(update_fields=["deleted_by_recipient"])
    else:
        raise PermissionDenied("Not authorized")
    return message
