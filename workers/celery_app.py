# =============================================================================
# workers/celery_app.py - Celery Application
# =============================================================================
# Builds the Celery app used by both the API (to enqueue) and the worker.
#
# Usage:
#   start-worker
#   celery -A workers.celery_app worker --loglevel=info -Q default,ai_tasks,email
#
#   # Periodic tasks (AI queue every minute, nightly cache purge)
#   celery -A workers.celery_app beat --loglevel=info
# =============================================================================

import logging

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun, task_retry
from dotenv import load_dotenv

from app.config import settings
from workers.config import WORKER_QUEUES

# Worker processes may start outside uvicorn; pick up .env for Celery too
load_dotenv()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _redacted(url: str) -> str:
    """Drop credentials from a redis:// URL before logging it."""
    return url.split("@")[-1] if "@" in url else url


def create_celery_app() -> Celery:
    app = Celery("govcontract_worker", include=["workers.tasks"])
    app.config_from_object("workers.config:CeleryConfig")
    logger.info(f"Celery broker: {_redacted(settings.REDIS_URL)}")
    return app


celery_app = create_celery_app()


@celery_app.task(name="workers.healthcheck")
def healthcheck() -> str:
    """healthcheck.delay().get(timeout=5) == "OK" when a worker is consuming."""
    return "OK"


# =============================================================================
# Task Lifecycle Logging
# =============================================================================

@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, **extra):
    logger.info(f"Task started: {task.name} [{task_id}]")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, retval=None, state=None, **extra):
    # Queue batches return their counts; log them with the state
    summary = f" {retval}" if isinstance(retval, dict) else ""
    logger.info(f"Task finished: {task.name} [{task_id}] {state}{summary}")


@task_retry.connect
def task_retry_handler(sender=None, request=None, reason=None, **extra):
    logger.warning(f"Task retry scheduled: {sender.name} [{request.id}] - {reason}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, **extra):
    logger.error(f"Task failed: {sender.name} [{task_id}] - {exception}")


def main():
    """Entry point for the `start-worker` script."""
    queues = ",".join(WORKER_QUEUES)
    logger.info(f"Starting GovContract worker (queues: {queues})")
    celery_app.worker_main([
        "worker",
        "--loglevel=info",
        "--concurrency=2",
        f"--queues={queues}",
    ])


if __name__ == "__main__":
    main()
