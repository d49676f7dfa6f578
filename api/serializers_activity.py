from rest_framework import serializers
from activity.models import ActivityFeedItem, Notification


class ActivityFeedItemSerializer(serializers.ModelSerializer):
    actor_name = serializers.CharField(source='actor.public_name', read_only=True)
    challenge_name = serializers.CharField(source='challenge.name', read_only=True, default=None)
    circle_name = serializers.CharField(source='circle.name', read_only=True, default=None)

    class Meta:
        model = ActivityFeedItem
        fields = ['id', 'actor', 'actor_name', 'verb', 'challenge', 'challenge_name', 'circle', 'circle_name',
                  'payload', 'created_at']
        read_only_fields = fields


class NotificationSerializer(serializers.ModelSerializer):
    is_read = serializers.BooleanField(read_only=True)

    class Meta:
        model = Notification
        fields = ['id', 'kind', 'title', 'body', 'data', 'is_read', 'read_at', 'created_at']
        read_only_fields = fields


class MarkNotificationsReadSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
