from django.conf import settings
from django.db import models


class BadgeDefinition(models.Model):
    """
    A badge users can earn.

    ``criteria`` holds a ``type`` plus type specific keys:
      * ``challenge_complete``: ``count`` (default 1), optional ``challengeId``
      * ``streak``: ``days``, longest streak reached in any challenge
      * ``circles_created``: ``circleCount``, circles the user owns
    """
    TIER_CHOICES = [
        ("bronze", "Bronze"),
        ("silver", "Silver"),
        ("gold", "Gold"),
        ("platinum", "Platinum"),
    ]

    slug = models.SlugField(max_length=80, unique=True)
    name = models.CharField(max_length=120)
    description = models.TextField(blank=True, default="")
    icon = models.CharField(max_length=40, blank=True, default="")
    tier = models.CharField(max_length=10, choices=TIER_CHOICES, default="bronze")
    criteria = models.JSONField(default=dict)
    is_active = models.BooleanField(default=True)
    is_automatic = models.BooleanField(default=True, help_text="Awarded by the evaluator rather than by hand")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def criteria_type(self):
        return (self.criteria or {}).get("type")


class UserBadge(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="badges")
    badge = models.ForeignKey(BadgeDefinition, on_delete=models.CASCADE, related_name="awards")
    metadata = models.JSONField(default=dict, blank=True)
    is_featured = models.BooleanField(default=False)
    earned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "badge"], name="user_badge_unique"),
        ]
        ordering = ["-earned_at"]

    def __str__(self):
        return f"{self.user} - {self.badge}"
