"""Background workout generation jobs."""
import logging
from typing import Any, Dict, Optional

from django.utils import timezone

from core.exceptions import NotFound, PermissionDenied, ServiceUnavailable

logger = logging.getLogger(__name__)

TIMED_OUT_MESSAGE = "Generation timed out. Please try again."


class GenerationService:
    """Creates, runs and reports on GenerationJob rows."""

    @staticmethod
    def start_workout_generation(user, input_data: Dict[str, Any]):
        """Create a pending job and hand it to the generation queue.

        Args:
            user: Django User object requesting the workout
            input_data: Validated request (focus, intensity, target_duration, member_ids, ...)

        Returns:
            The pending GenerationJob

        Raises:
            PermissionDenied: a member id is not in one of the user's circles
            ServiceUnavailable: the job could not be queued; it is left in ``error``
        """
        from circles.models import CircleMember
        from coach.models import GenerationJob
        from coach.tasks import generate_workout_task

        member_ids = set(input_data.get("member_ids") or [])
        if member_ids:
            my_circles = CircleMember.objects.filter(user=user).values_list("circle_id", flat=True)
            reachable = set(
                CircleMember.objects.filter(pk__in=member_ids, circle_id__in=my_circles).values_list("pk", flat=True)
            )
            if reachable != member_ids:
                raise PermissionDenied("You can only generate workouts for members of your circles")

        job = GenerationJob.objects.create(
            user=user,
            job_type="workout",
            status=GenerationJob.STATUS_PENDING,
            input_data=input_data,
        )

        try:
            generate_workout_task.delay(job.pk)
        except Exception as e:
            logger.error(f"Failed to queue generation job {job.pk}: {e}")
            job.status = GenerationJob.STATUS_ERROR
            job.error = "Failed to start generation"
            job.completed_at = timezone.now()
            job.save(update_fields=["status", "error", "completed_at"])
            raise ServiceUnavailable("Failed to start workout generation. Please try again.")

        logger.info(f"Queued generation job {job.pk} for user {user.pk}")
        return job

    @staticmethod
    def get_status(user, job_id) -> Dict[str, Any]:
        """Poll a job owned by ``user``.

        A job still pending past ``AI_GENERATION_TIMEOUT_SECONDS`` is reported as
        an error even though the row itself is left unchanged.
        """
        from coach.models import GenerationJob

        job = GenerationJob.objects.filter(pk=job_id).first()
        if job is None:
            raise NotFound("Job not found")
        if job.user_id != user.pk:
            raise PermissionDenied("Unauthorized")

        if job.is_timed_out():
            return {"id": job.pk, "status": GenerationJob.STATUS_ERROR, "error": TIMED_OUT_MESSAGE}

        if job.status == GenerationJob.STATUS_COMPLETE:
            return {
                "id": job.pk,
                "status": job.status,
                "workout": job.result_data or {},
                "completed_at": job.completed_at,
            }

        return {
            "id": job.pk,
            "status": job.status,
            "started_at": job.started_at,
            "error": job.error or None,
        }

    @staticmethod
    def _mark_failed(job, message: str) -> str:
        from coach.models import GenerationJob

        job.status = GenerationJob.STATUS_ERROR
        job.error = message[:1000]
        job.completed_at = timezone.now()
        job.save(update_fields=["status", "error", "completed_at"])
        return job.status

    @staticmethod
    def run_job(job_id, client: Optional[Any] = None) -> Optional[str]:
        """Generate the workout for a pending job. Used by the Celery worker.

        Returns the final status, or None if the job was missing or already taken.
        """
        from coach.models import GenerationJob
        from .provider import WorkoutProviderClient, WorkoutProviderError

        now = timezone.now()
        claimed = GenerationJob.objects.filter(pk=job_id, status=GenerationJob.STATUS_PENDING).update(
            status=GenerationJob.STATUS_GENERATING,
            started_at=now,
        )
        if not claimed:
            logger.warning(f"Generation job {job_id} is missing or not pending, skipping")
            return None

        job = GenerationJob.objects.get(pk=job_id)
        client = client or WorkoutProviderClient()
        try:
            workout = client.generate_workout(job.input_data)
        except WorkoutProviderError as e:
            logger.error(f"Generation job {job.pk} failed: {e}")
            return GenerationService._mark_failed(job, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error in generation job {job.pk}: {e}")
            return GenerationService._mark_failed(job, "Failed to generate workout. Please try again.")

        job.status = GenerationJob.STATUS_COMPLETE
        job.result_data = workout
        job.completed_at = timezone.now()
        job.save(update_fields=["status", "result_data", "completed_at"])
        logger.info(f"Generation job {job.pk} complete in {(job.completed_at - now).total_seconds():.1f}s")
        return job.status
