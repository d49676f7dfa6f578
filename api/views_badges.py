from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from badges.models import UserBadge
from badges.services import BadgeService
from .serializers_badges import FeatureBadgeSerializer, UserBadgeSerializer


class BadgeListAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        badges = UserBadge.objects.filter(user=request.user).select_related('badge')
        return Response({'badges': UserBadgeSerializer(badges, many=True).data})


class BadgeCheckAPIView(APIView):
    """
    Evaluate badge criteria for the caller right away and return anything newly awarded.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        awarded = BadgeService.evaluate_and_award(request.user)
        return Response({'awarded': UserBadgeSerializer(awarded, many=True).data})


class BadgeFeatureAPIView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = FeatureBadgeSerializer

    def post(self, request, pk):
        serializer = FeatureBadgeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_badge = BadgeService.set_featured(request.user, pk, serializer.validated_data['is_featured'])
        return Response(UserBadgeSerializer(user_badge).data)
