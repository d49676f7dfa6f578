from django.conf import settings
from django.db import models

MAX_MESSAGE_LENGTH = 5000


class Message(models.Model):
    """Direct message between two members of the same circle"""
    circle = models.ForeignKey("circles.Circle", on_delete=models.CASCADE, related_name="messages")
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="sent_messages")
    recipient = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="received_messages")
    content = models.TextField(max_length=MAX_MESSAGE_LENGTH)
    read_at = models.DateTimeField(null=True, blank=True)
    deleted_by_sender = models.BooleanField(default=False)
    deleted_by_recipient = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "sender", "read_at"], name="message_unread_idx"),
        ]

    def __str__(self):
        return f"{self.sender} -> {self.recipient} ({self.created_at:%Y-%m-%d %H:%M})"
