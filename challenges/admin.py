from django.contrib import admin
from .models import Challenge, ChallengeParticipant, ChallengeProgress, ChallengeProofUpload


@admin.register(Challenge)
class ChallengeAdmin(admin.ModelAdmin):
    list_display = ["name", "category", "difficulty", "duration_days", "visibility", "is_active",
                    "participant_count", "completion_count"]
    list_filter = ["is_active", "visibility", "category", "difficulty", "restart_on_fail"]
    search_fields = ["name", "description"]
    readonly_fields = ["participant_count", "completion_count", "last_activity_at"]


@admin.register(ChallengeParticipant)
class ChallengeParticipantAdmin(admin.ModelAdmin):
    list_display = ["user", "challenge", "status", "current_day", "current_streak", "longest_streak", "start_date"]
    list_filter = ["status", "challenge"]
    search_fields = ["user__email", "challenge__name"]
    date_hierarchy = "start_date"


@admin.register(ChallengeProgress)
class ChallengeProgressAdmin(admin.ModelAdmin):
    list_display = ["participant", "date", "day", "completed"]
    list_filter = ["completed", "date"]
    search_fields = ["participant__user__email", "participant__challenge__name"]
    date_hierarchy = "date"


@admin.register(ChallengeProofUpload)
class ChallengeProofUploadAdmin(admin.ModelAdmin):
    list_display = ["participant", "media_type", "visibility", "day_number", "created_at"]
    list_filter = ["media_type", "visibility"]
