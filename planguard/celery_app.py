"""
PlanGuard - Celery Configuration

Celery configuration for the scheduled billing jobs.
Uses Redis as the message broker and result backend.
"""

from celery import Celery
from celery.schedules import crontab

from planguard.config import settings


# Create Celery app
celery_app = Celery(
    'planguard',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['planguard.tasks.billing_tasks'],
)

# Celery configuration
celery_app.conf.update(
    # Serialization
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    
    # Timezone
    timezone=settings.celery_timezone,
    enable_utc=True,
    
    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=600,  # 10 minutes
    task_soft_time_limit=540,  # 9 minutes (warning before hard limit)
    
    # Worker settings
    worker_prefetch_multiplier=1,
    
    # Result backend settings
    result_expires=86400,  # 24 hours
    
    # Beat schedule for periodic tasks
    beat_schedule={
        # Overdue payment sweep once a day; milestone alerts assume daily runs
        'check-payment-status': {
            'task': 'planguard.tasks.billing_tasks.check_payment_status_task',
            'schedule': crontab(hour=settings.payment_sweep_hour_utc, minute=0),
        },
        
        # Expire calls trials every hour
        'check-call-trials': {
            'task': 'planguard.tasks.billing_tasks.check_call_trials_task',
            'schedule': crontab(minute=settings.call_trial_sweep_minute),
        },
    },
)


celery_app.conf.task_routes = {
    'planguard.tasks.billing_tasks.*': {'queue': 'billing'},
}
