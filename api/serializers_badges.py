from rest_framework import serializers
from badges.models import BadgeDefinition, UserBadge


class BadgeDefinitionSerializer(serializers.ModelSerializer):
    class Meta:
        model = BadgeDefinition
        fields = ['id', 'slug', 'name', 'description', 'icon', 'tier']


class UserBadgeSerializer(serializers.ModelSerializer):
    badge = BadgeDefinitionSerializer(read_only=True)

    class Meta:
        model = UserBadge
        fields = ['id', 'badge', 'metadata', 'is_featured', 'earned_at']
        read_only_fields = fields


class FeatureBadgeSerializer(serializers.Serializer):
    is_featured = serializers.BooleanField()
