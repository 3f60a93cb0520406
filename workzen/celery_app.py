"""
WorkZen - Celery Configuration

Celery configuration for background task processing.
Uses Redis as the message broker and result backend.
"""

from celery import Celery
from celery.schedules import crontab

from workzen.config import settings


celery_app = Celery(
    'workzen',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['workzen.tasks.celery_tasks'],
)

celery_app.conf.update(
    # Serialization
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',

    # Timezone
    timezone='Asia/Kolkata',
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=300,  # 5 minutes
    task_soft_time_limit=240,

    # Worker settings
    worker_prefetch_multiplier=1,

    # Result backend settings
    result_expires=86400,  # 24 hours

    # Beat schedule for periodic tasks
    beat_schedule={
        # Purge stale OTPs every day at 2 AM
        'cleanup-expired-otps': {
            'task': 'workzen.tasks.celery_tasks.cleanup_expired_otps_task',
            'schedule': crontab(hour=2, minute=0),
        },

        # Clear expired reset tokens every day at 2:30 AM
        'cleanup-expired-reset-tokens': {
            'task': 'workzen.tasks.celery_tasks.cleanup_expired_reset_tokens_task',
            'schedule': crontab(hour=2, minute=30),
        },
    },
)
