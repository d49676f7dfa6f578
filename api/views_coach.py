from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from coach.services import GenerationService
from .serializers_coach import GenerateWorkoutSerializer, GenerationJobSerializer


class GenerateWorkoutAPIView(APIView):
    """
    Start a background workout generation job. Poll the status endpoint for the result.
    """
    permission_classes = [IsAuthenticated]
    serializer_class = GenerateWorkoutSerializer

    def post(self, request):
        serializer = GenerateWorkoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        job = GenerationService.start_workout_generation(request.user, serializer.validated_data)
        data = GenerationJobSerializer(job).data
        data['job_id'] = job.pk
        return Response(data, status=status.HTTP_202_ACCEPTED)


class GenerationStatusAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        return Response(GenerationService.get_status(request.user, pk))
