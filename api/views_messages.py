from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from messaging import services as message_services
from .serializers_messages import (
    ConversationSerializer,
    DeleteMessageSerializer,
    MessageSerializer,
    SendMessageSerializer,
    ThreadQuerySerializer,
)


class ConversationListAPIView(APIView):
    """
    GET lists conversations (latest message per partner); POST sends a message.
    """
    permission_classes = [IsAuthenticated]
    serializer_class = SendMessageSerializer

    def get(self, request):
        conversations = message_services.conversations(request.user)
        return Response({'conversations': ConversationSerializer(conversations, many=True).data})

    def post(self, request):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = message_services.send_message(
            request.user,
            serializer.validated_data['recipient_id'],
            serializer.validated_data['circle_id'],
            serializer.validated_data['content'],
        )
        return Response({'message': MessageSerializer(message).data}, status=status.HTTP_201_CREATED)


class MessageThreadAPIView(APIView):
    """
    GET returns the thread with one user (and marks it read); DELETE hides one message for the caller.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, user_id):
        query = ThreadQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        messages, has_more = message_services.thread(
            request.user,
            user_id,
            limit=query.validated_data['limit'],
            before=query.validated_data['before'],
        )
        return Response({
            'messages': MessageSerializer(messages, many=True).data,
            'has_more': has_more,
            'oldest_timestamp': messages[0].created_at if messages else None,
        })

    def delete(self, request, user_id):
        params = request.query_params if 'messageId' in request.query_params else request.data
        serializer = DeleteMessageSerializer(data=params)
        serializer.is_valid(raise_exception=True)
        message_services.delete_message(request.user, serializer.validated_data['messageId'])
        return Response({'success': True})
