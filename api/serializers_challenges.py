from rest_framework import serializers
from challenges.models import Challenge, ChallengeParticipant, ChallengeProgress, ChallengeProofUpload


class ChallengeParticipantSerializer(serializers.ModelSerializer):
    """
    Serializer for ChallengeParticipant, a user's enrollment in a challenge.
    """
    days_remaining = serializers.IntegerField(read_only=True)

    class Meta:
        model = ChallengeParticipant
        fields = [
            'id', 'challenge', 'status', 'current_day', 'current_streak', 'longest_streak',
            'days_completed', 'days_failed', 'days_remaining', 'start_date', 'completed_date',
        ]
        read_only_fields = fields


class ChallengeSerializer(serializers.ModelSerializer):
    """
    Serializer for Challenge. ``participation`` is the requesting user's row, if any.
    """
    participation = serializers.SerializerMethodField()

    class Meta:
        model = Challenge
        fields = [
            'id', 'name', 'description', 'category', 'difficulty', 'duration_days', 'daily_tasks',
            'restart_on_fail', 'visibility', 'is_active', 'circle', 'participant_count',
            'completion_count', 'last_activity_at', 'created_at', 'participation',
        ]
        read_only_fields = fields

    def get_participation(self, obj):
        request = self.context.get('request')
        if not request or not request.user.is_authenticated:
            return None
        participant = obj.participants.filter(user=request.user).first()
        return ChallengeParticipantSerializer(participant).data if participant else None


class CheckInSerializer(serializers.Serializer):
    """
    Accepts the task list as ``completed_tasks`` or ``completedTasks``. The list is
    required (it may be empty) so a body without it is rejected instead of being
    read as a missed day.
    """
    completed_tasks = serializers.ListField(
        child=serializers.CharField(max_length=200), allow_empty=True,
        help_text='Names of the daily tasks done today',
    )
    notes = serializers.CharField(required=False, allow_blank=True, default='', max_length=2000)

    def to_internal_value(self, data):
        if 'completedTasks' in data and 'completed_tasks' not in data:
            data = data.copy()
            if hasattr(data, 'setlist'):
                data.setlist('completed_tasks', data.pop('completedTasks'))
            else:
                data['completed_tasks'] = data.pop('completedTasks')
        return super().to_internal_value(data)


class ChallengeProgressSerializer(serializers.ModelSerializer):
    class Meta:
        model = ChallengeProgress
        fields = ['id', 'date', 'day', 'completed', 'tasks_completed', 'notes', 'created_at']
        read_only_fields = fields


class LeaderboardQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(required=False, default=50, min_value=1, max_value=100)
    offset = serializers.IntegerField(required=False, default=0, min_value=0)


class ChallengeProofUploadSerializer(serializers.ModelSerializer):
    progress_id = serializers.IntegerField(required=False, allow_null=True, write_only=True)

    class Meta:
        model = ChallengeProofUpload
        fields = ['id', 'media_type', 'media', 'visibility', 'caption', 'day_number', 'progress', 'progress_id', 'created_at']
        read_only_fields = ['id', 'progress', 'created_at']
