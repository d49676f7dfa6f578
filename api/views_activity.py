from rest_framework import generics
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from activity import services as activity_services
from activity.models import Notification
from .serializers_activity import (
    ActivityFeedItemSerializer,
    MarkNotificationsReadSerializer,
    NotificationSerializer,
)


class FeedPagination(LimitOffsetPagination):
    default_limit = 20
    max_limit = 100


class ActivityFeedAPIView(generics.ListAPIView):
    """
    Activity of the caller and of everyone in the caller's circles, newest first.
    """
    serializer_class = ActivityFeedItemSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = FeedPagination

    def get_queryset(self):
        return activity_services.feed_for(self.request.user)


class NotificationListAPIView(generics.ListAPIView):
    """
    GET lists notifications (``?unread=true`` for unread only); POST marks them read.
    """
    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = FeedPagination

    def get_queryset(self):
        qs = Notification.objects.filter(user=self.request.user)
        if self.request.query_params.get('unread') in ('1', 'true', 'True'):
            qs = qs.filter(read_at__isnull=True)
        return qs.order_by('-created_at')

    def post(self, request):
        serializer = MarkNotificationsReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated = activity_services.mark_notifications_read(request.user, serializer.validated_data['ids'])
        return Response({'updated': updated})
