from django.conf import settings
from django.db import models
from django.utils import timezone


class Circle(models.Model):
    """A private group of users who train, message and compete together"""
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="owned_circles")
    is_private = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def member_count(self):
        return self.members.count()


class CircleMember(models.Model):
    ROLE_OWNER = "owner"
    ROLE_ADMIN = "admin"
    ROLE_MEMBER = "member"
    ROLE_CHOICES = [
        (ROLE_OWNER, "Owner"),
        (ROLE_ADMIN, "Admin"),
        (ROLE_MEMBER, "Member"),
    ]

    circle = models.ForeignKey(Circle, on_delete=models.CASCADE, related_name="members")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="circle_memberships")
    display_name = models.CharField(max_length=120, blank=True, default="")
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["circle", "user"], name="circle_member_unique"),
        ]
        ordering = ["joined_at"]

    def __str__(self):
        return f"{self.user} in {self.circle} ({self.role})"

    @property
    def can_manage(self):
        return self.role in (self.ROLE_OWNER, self.ROLE_ADMIN)


class CircleInvitation(models.Model):
    """Shareable code that lets a user join a circle, optionally capped and time limited"""
    CODE_LENGTH = 8

    circle = models.ForeignKey(Circle, on_delete=models.CASCADE, related_name="invitations")
    code = models.CharField(max_length=CODE_LENGTH, unique=True)
    role = models.CharField(max_length=10, choices=CircleMember.ROLE_CHOICES[1:], default=CircleMember.ROLE_MEMBER)
    email = models.EmailField(blank=True, default="", help_text="Only this address may redeem the code")
    max_uses = models.PositiveIntegerField(null=True, blank=True, help_text="Empty for unlimited")
    uses = models.PositiveIntegerField(default=0)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name="created_invitations")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.code} -> {self.circle}"

    def save(self, *args, **kwargs):
        self.code = (self.code or "").upper()
        super().save(*args, **kwargs)

    def is_expired(self, now=None):
        return self.expires_at is not None and self.expires_at <= (now or timezone.now())

    @property
    def is_exhausted(self):
        return self.max_uses is not None and self.uses >= self.max_uses
