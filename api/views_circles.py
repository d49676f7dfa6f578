from rest_framework import mixins, status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from circles import services as circle_services
from .serializers_circles import (
    CircleInvitationSerializer,
    CircleMemberSerializer,
    CircleSerializer,
    RedeemInvitationSerializer,
)


class CircleViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, mixins.CreateModelMixin,
                    viewsets.GenericViewSet):
    """
    API endpoint for the authenticated user's circles. Creating a circle makes the caller its owner.
    """
    serializer_class = CircleSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return circle_services.circles_for(self.request.user)

    def perform_create(self, serializer):
        serializer.instance = circle_services.create_circle(
            self.request.user,
            serializer.validated_data['name'],
            description=serializer.validated_data.get('description', ''),
            is_private=serializer.validated_data.get('is_private', True),
        )


class CircleMembersAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        circle = circle_services.get_circle_for_member(pk, request.user)
        return Response(CircleMemberSerializer(circle.members.select_related('user'), many=True).data)


class CircleInvitationAPIView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = CircleInvitationSerializer

    def post(self, request, pk):
        circle = circle_services.get_circle_for_member(pk, request.user)
        serializer = CircleInvitationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        invitation = circle_services.create_invitation(circle, request.user, **serializer.validated_data)
        return Response(CircleInvitationSerializer(invitation).data, status=status.HTTP_201_CREATED)


class CircleJoinAPIView(APIView):
    """
    Redeem an invite code.
    """
    permission_classes = [IsAuthenticated]
    serializer_class = RedeemInvitationSerializer

    def post(self, request):
        serializer = RedeemInvitationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        member = circle_services.redeem_invitation(serializer.validated_data['code'], request.user)
        return Response({
            'success': True,
            'circle': CircleSerializer(member.circle).data,
            'role': member.role,
        }, status=status.HTTP_201_CREATED)


class InvitationPreviewAPIView(APIView):
    """
    Public invitation details, shown on the invite landing page before sign in.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, code):
        return Response(circle_services.preview_invitation(code))
