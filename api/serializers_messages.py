from django.contrib.auth import get_user_model
from rest_framework import serializers
from messaging.models import MAX_MESSAGE_LENGTH, Message
from messaging.services import THREAD_DEFAULT_LIMIT, THREAD_MAX_LIMIT


class MessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = Message
        fields = ['id', 'circle', 'sender', 'recipient', 'content', 'read_at', 'created_at']
        read_only_fields = fields


class SendMessageSerializer(serializers.Serializer):
    recipient_id = serializers.IntegerField()
    circle_id = serializers.IntegerField()
    content = serializers.CharField(max_length=MAX_MESSAGE_LENGTH, error_messages={
        'max_length': 'Message too long',
        'blank': 'Message content is required',
    })


class PartnerSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source='public_name', read_only=True)

    class Meta:
        model = get_user_model()
        fields = ['id', 'name', 'handle', 'avatar_url']


class ConversationSerializer(serializers.Serializer):
    partner = PartnerSerializer()
    last_message = MessageSerializer()
    unread_count = serializers.IntegerField()


class ThreadQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(required=False, default=THREAD_DEFAULT_LIMIT, min_value=1, max_value=THREAD_MAX_LIMIT)
    before = serializers.DateTimeField(required=False, allow_null=True, default=None)


class DeleteMessageSerializer(serializers.Serializer):
    messageId = serializers.IntegerField(min_value=1, error_messages={'required': 'Message ID required'})
