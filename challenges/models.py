from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


def validate_daily_tasks(value):
    """Daily tasks must be a list of {"name": str, "isRequired": bool} objects"""
    if not isinstance(value, list):
        raise ValidationError("Daily tasks must be a list.")
    seen = set()
    for task in value:
        if not isinstance(task, dict) or not isinstance(task.get("name"), str) or not task["name"].strip():
            raise ValidationError("Each daily task needs a non-empty name.")
        if task["name"] in seen:
            raise ValidationError(f"Duplicate daily task name: {task['name']}")
        seen.add(task["name"])


class Challenge(models.Model):
    """Fixed-duration program with daily tasks that participants check into"""
    CATEGORY_CHOICES = [
        ("strength", "Strength"),
        ("cardio", "Cardio"),
        ("mobility", "Mobility"),
        ("wellness", "Wellness"),
        ("hybrid", "Hybrid"),
    ]

    DIFFICULTY_CHOICES = [
        ("beginner", "Beginner"),
        ("intermediate", "Intermediate"),
        ("advanced", "Advanced"),
    ]

    VISIBILITY_CHOICES = [
        ("public", "Public"),
        ("circle", "Circle only"),
        ("private", "Private"),
    ]

    name = models.CharField(max_length=120)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default="hybrid")
    difficulty = models.CharField(max_length=20, choices=DIFFICULTY_CHOICES, default="beginner")
    duration_days = models.PositiveIntegerField(validators=[MinValueValidator(1)], help_text="Number of daily check-ins needed to finish")
    daily_tasks = models.JSONField(default=list, blank=True, validators=[validate_daily_tasks],
                                   help_text='Ordered list of {"name": ..., "isRequired": ...}')
    restart_on_fail = models.BooleanField(default=False, help_text="Missing a required task sends the participant back to day 1")
    visibility = models.CharField(max_length=20, choices=VISIBILITY_CHOICES, default="public")
    is_active = models.BooleanField(default=True, help_text="Inactive challenges are hidden and cannot be joined")
    circle = models.ForeignKey("circles.Circle", on_delete=models.SET_NULL, null=True, blank=True, related_name="challenges")
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name="created_challenges")
    participant_count = models.PositiveIntegerField(default=0)
    completion_count = models.PositiveIntegerField(default=0)
    last_activity_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["category"], name="challenge_category_idx"),
            models.Index(fields=["visibility", "is_active"], name="challenge_visibility_idx"),
        ]

    def __str__(self):
        return self.name

    @property
    def required_tasks(self):
        return [task for task in (self.daily_tasks or []) if task.get("isRequired")]


class ChallengeParticipant(models.Model):
    """A user's enrollment in a challenge"""
    STATUS_ACTIVE = "active"
    STATUS_COMPLETED = "completed"
    STATUS_QUIT = "quit"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_QUIT, "Quit"),
    ]

    challenge = models.ForeignKey(Challenge, on_delete=models.CASCADE, related_name="participants")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="challenge_participations")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    current_day = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    current_streak = models.PositiveIntegerField(default=0)
    longest_streak = models.PositiveIntegerField(default=0)
    days_completed = models.PositiveIntegerField(default=0, help_text="Number of recorded check-ins")
    days_failed = models.PositiveIntegerField(default=0, help_text="Recorded check-ins that missed a required task")
    start_date = models.DateTimeField(default=timezone.now)
    completed_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        # A quit row is reactivated on rejoin, so one row per pair covers the whole history
        constraints = [
            models.UniqueConstraint(fields=["challenge", "user"], name="challenge_participant_unique"),
        ]
        ordering = ["-start_date"]

    def __str__(self):
        return f"{self.user} - {self.challenge} ({self.status})"

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE

    @property
    def days_remaining(self):
        return max(0, self.challenge.duration_days - self.current_day)


class ChallengeProgress(models.Model):
    """One calendar day's check-in for a participant. Rows are never updated."""
    participant = models.ForeignKey(ChallengeParticipant, on_delete=models.CASCADE, related_name="progress")
    date = models.DateField(help_text="Calendar day of the check-in")
    day = models.PositiveIntegerField(help_text="Sequential day index")
    completed = models.BooleanField(default=False, help_text="All required tasks were done")
    tasks_completed = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["participant", "date"], name="challenge_progress_one_per_day"),
        ]
        ordering = ["date"]
        verbose_name_plural = "Challenge progress"

    def __str__(self):
        return f"{self.participant} - day {self.day} ({self.date})"


def proof_upload_path(instance, filename):
    return f"challenge-proofs/{instance.participant.challenge_id}/{instance.participant_id}/{filename}"


class ChallengeProofUpload(models.Model):
    """Photo or video evidence attached to a participant's progress"""
    MEDIA_TYPE_CHOICES = [
        ("image", "Image"),
        ("video", "Video"),
    ]
    VISIBILITY_CHOICES = [
        ("private", "Private"),
        ("circle", "Circle"),
        ("public", "Public"),
    ]

    participant = models.ForeignKey(ChallengeParticipant, on_delete=models.CASCADE, related_name="proof_uploads")
    progress = models.ForeignKey(ChallengeProgress, on_delete=models.SET_NULL, null=True, blank=True,
                                 related_name="proof_uploads")
    media_type = models.CharField(max_length=10, choices=MEDIA_TYPE_CHOICES)
    media = models.FileField(upload_to=proof_upload_path)
    visibility = models.CharField(max_length=10, choices=VISIBILITY_CHOICES, default="private")
    caption = models.CharField(max_length=500, blank=True, default="")
    day_number = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Proof {self.pk} for {self.participant}"
