# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Queues, routes, limits and the beat schedule for the GovContract worker.
#
# Queues:
#   default   - anything unrouted
#   ai_tasks  - OpenAI document review (slow, rate limited by the provider)
#   email     - SMTP delivery
# =============================================================================

from celery.schedules import crontab
from kombu import Queue

from app.config import settings

AI_QUEUE = "ai_tasks"
EMAIL_QUEUE = "email"
DEFAULT_QUEUE = "default"

WORKER_QUEUES = (DEFAULT_QUEUE, AI_QUEUE, EMAIL_QUEUE)

# Seconds between process_ai_queue runs when celery beat is used
AI_QUEUE_INTERVAL_SECONDS = 60.0


class CeleryConfig:
    """Applied to the Celery app via app.config_from_object()."""

    broker_url = settings.REDIS_URL
    result_backend = settings.REDIS_URL
    broker_connection_retry_on_startup = True

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    # A queue item is only acknowledged once its analysis is stored
    task_acks_late = True
    worker_prefetch_multiplier = 1
    task_track_started = True

    # One batch is AI_QUEUE_BATCH_SIZE sequential OpenAI calls
    task_soft_time_limit = 90 * settings.AI_QUEUE_BATCH_SIZE
    task_time_limit = 120 * settings.AI_QUEUE_BATCH_SIZE

    result_expires = 3600

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    task_default_queue = DEFAULT_QUEUE
    task_queues = [Queue(name, routing_key=name) for name in WORKER_QUEUES]
    task_routes = {
        "workers.tasks.process_ai_queue": {"queue": AI_QUEUE},
        "workers.tasks.send_email": {"queue": EMAIL_QUEUE},
    }

    task_annotations = {
        "workers.tasks.send_email": {"rate_limit": "30/m"},
    }

    # -------------------------------------------------------------------------
    # Periodic Tasks (celery beat)
    # -------------------------------------------------------------------------

    beat_schedule = {
        "process-ai-queue": {
            "task": "workers.tasks.process_ai_queue",
            "schedule": AI_QUEUE_INTERVAL_SECONDS,
            # A missed tick is dropped rather than piling up batches
            "options": {"expires": AI_QUEUE_INTERVAL_SECONDS},
        },
        "purge-ai-cache": {
            "task": "workers.tasks.purge_ai_cache",
            "schedule": crontab(hour=3, minute=0),
        },
    }

    worker_send_task_events = True
    task_send_sent_event = True

    timezone = "UTC"
    enable_utc = True
