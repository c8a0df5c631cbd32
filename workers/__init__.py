# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# background processing.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (AI document queue, email, cache purge)
# - config.py: Worker-specific settings, queues and beat schedule
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker --loglevel=info
#
#   # Or use the installed script
#   start-worker
#
#   # Submit task (from API)
#   from workers.tasks import process_ai_queue
#   result = process_ai_queue.delay()
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
