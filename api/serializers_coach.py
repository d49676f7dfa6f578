from rest_framework import serializers
from coach.models import GenerationJob


class GenerateWorkoutSerializer(serializers.Serializer):
    """
    Request body for starting a workout generation job.
    """
    INTENSITY_CHOICES = ['light', 'moderate', 'hard', 'max']

    member_ids = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
    focus = serializers.CharField(required=False, allow_blank=True, max_length=100, default='')
    custom_focus = serializers.CharField(required=False, allow_blank=True, max_length=500, default='')
    intensity = serializers.ChoiceField(choices=INTENSITY_CHOICES, default='moderate')
    target_duration = serializers.IntegerField(min_value=10, max_value=180, default=45)
    include_warmup = serializers.BooleanField(default=True)
    include_cooldown = serializers.BooleanField(default=True)


class GenerationJobSerializer(serializers.ModelSerializer):
    class Meta:
        model = GenerationJob
        fields = ['id', 'job_type', 'status', 'created_at']
        read_only_fields = fields
