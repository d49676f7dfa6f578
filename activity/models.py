from django.conf import settings
from django.db import models


class ActivityFeedItem(models.Model):
    """Something a user did that their circles can see"""
    VERB_CHOICES = [
        ("joined_challenge", "Joined a challenge"),
        ("completed_challenge", "Completed a challenge"),
        ("joined_circle", "Joined a circle"),
        ("earned_badge", "Earned a badge"),
    ]

    actor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="activity_items")
    verb = models.CharField(max_length=40, choices=VERB_CHOICES)
    challenge = models.ForeignKey("challenges.Challenge", on_delete=models.CASCADE, null=True, blank=True,
                                  related_name="activity_items")
    circle = models.ForeignKey("circles.Circle", on_delete=models.CASCADE, null=True, blank=True,
                               related_name="activity_items")
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["actor", "-created_at"], name="activity_actor_created_idx"),
        ]

    def __str__(self):
        return f"{self.actor} {self.verb} ({self.created_at:%Y-%m-%d})"


class Notification(models.Model):
    """In-app notification for a single user"""
    KIND_CHOICES = [
        ("message", "New message"),
        ("challenge_completed", "Challenge completed"),
        ("badge_awarded", "Badge awarded"),
        ("circle_joined", "New circle member"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    kind = models.CharField(max_length=40, choices=KIND_CHOICES)
    title = models.CharField(max_length=200)
    body = models.TextField(blank=True, default="")
    data = models.JSONField(default=dict, blank=True)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "read_at"], name="notification_user_read_idx"),
        ]

    def __str__(self):
        return f"{self.user} - {self.title}"

    @property
    def is_read(self):
        return self.read_at is not None
