"""
Celery tasks for AI workout generation.
"""
import logging

from celery import shared_task

from .services import GenerationService

logger = logging.getLogger(__name__)


@shared_task
def generate_workout_task(job_id):
    """Run a queued workout generation job."""
    status = GenerationService.run_job(job_id)
    logger.info(f"generate_workout_task: job_id={job_id} status={status}")
    return {'job_id': job_id, 'status': status}
