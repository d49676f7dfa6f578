from rest_framework import status, viewsets
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from challenges import services as challenge_services
from .serializers_challenges import (
    ChallengeParticipantSerializer,
    ChallengeProgressSerializer,
    ChallengeProofUploadSerializer,
    ChallengeSerializer,
    CheckInSerializer,
    LeaderboardQuerySerializer,
)


class ChallengeViewSet(viewsets.ReadOnlyModelViewSet):
    """
    API endpoint for browsing challenges visible to the authenticated user.
    """
    serializer_class = ChallengeSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        qs = challenge_services.visible_challenges(self.request.user)
        category = self.request.query_params.get('category')
        if category:
            qs = qs.filter(category=category)
        return qs


class ChallengeJoinAPIView(APIView):
    """
    POST joins the challenge (or rejoins after quitting); DELETE leaves it.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        participant, rejoined = challenge_services.join_challenge(pk, request.user)
        data = ChallengeParticipantSerializer(participant).data
        data['rejoined'] = rejoined
        return Response(data, status=status.HTTP_200_OK if rejoined else status.HTTP_201_CREATED)

    def delete(self, request, pk):
        participant = challenge_services.leave_challenge(pk, request.user)
        return Response(ChallengeParticipantSerializer(participant).data)


class ChallengeCheckInAPIView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = CheckInSerializer

    def post(self, request, pk):
        serializer = CheckInSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = challenge_services.check_in(
            pk,
            request.user,
            completed_tasks=serializer.validated_data['completed_tasks'],
            notes=serializer.validated_data['notes'],
        )
        return Response(result)


class ChallengeProgressAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        participant, progress = challenge_services.progress_history(pk, request.user)
        return Response({
            'participation': ChallengeParticipantSerializer(participant).data,
            'progress': ChallengeProgressSerializer(progress, many=True).data,
        })


class ChallengeLeaderboardAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        query = LeaderboardQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response(challenge_services.leaderboard(
            pk,
            request.user,
            limit=query.validated_data['limit'],
            offset=query.validated_data['offset'],
        ))


class ChallengeProofAPIView(APIView):
    """
    GET lists the caller's proof uploads for a challenge; POST uploads a new one (multipart).
    """
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]
    serializer_class = ChallengeProofUploadSerializer

    def get(self, request, pk):
        proofs = challenge_services.list_proofs(pk, request.user)
        return Response(ChallengeProofUploadSerializer(proofs, many=True, context={'request': request}).data)

    def post(self, request, pk):
        serializer = ChallengeProofUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        proof = challenge_services.upload_proof(
            pk,
            request.user,
            media_type=data['media_type'],
            media=data['media'],
            visibility=data.get('visibility', 'private'),
            caption=data.get('caption', ''),
            day_number=data.get('day_number'),
            progress_id=data.get('progress_id'),
        )
        return Response(
            ChallengeProofUploadSerializer(proof, context={'request': request}).data,
            status=status.HTTP_201_CREATED,
        )
