"""
Celery configuration for background task processing.
"""
import os
from celery import Celery
from kombu import Queue

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('repcir')

# namespace='CELERY' means all celery-related configuration keys
# should have a `CELERY_` prefix.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django apps.
app.autodiscover_tasks()


# Badge evaluation and workout generation each get their own queue
app.conf.task_routes = {
    'badges.tasks.evaluate_badges_task': {'queue': 'badges'},
    'coach.tasks.generate_workout_task': {'queue': 'generation'},
}

app.conf.task_queues = (
    Queue('default'),
    Queue('badges'),
    Queue('generation'),
)
app.conf.task_default_queue = 'default'

# Tuning defaults for workers
app.conf.worker_prefetch_multiplier = 1
app.conf.task_acks_late = True
