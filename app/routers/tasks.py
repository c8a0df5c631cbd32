# =============================================================================
# app/routers/tasks.py - Background Task Endpoints
# =============================================================================
# - POST /tasks/ai-queue      scheduler trigger (Bearer CRON_SECRET)
# - GET  /tasks/{task_id}     progress of any Celery task
# =============================================================================

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Path, status
from kombu.exceptions import OperationalError
from pydantic import BaseModel

from app.auth import get_current_user
from app.dependencies import verify_cron_secret

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class TaskStatusResponse(BaseModel):
    """Response model for task status."""
    task_id: str
    status: str
    progress: int | None = None
    message: str | None = None
    result: dict[str, Any] | None = None
    error: str | None = None


class TaskSubmitResponse(BaseModel):
    """Response model for task submission."""
    task_id: str
    status: str
    message: str


# =============================================================================
# Endpoints
# =============================================================================

@router.post(
    "/ai-queue",
    response_model=TaskSubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(verify_cron_secret)],
)
def trigger_ai_queue():
    """
    Enqueue one batch of queued checklist document analyses.

    Called by an external scheduler; returns 503 when the broker is down.
    """
    from workers.tasks import process_ai_queue

    try:
        task = process_ai_queue.delay()
    except OperationalError as e:
        logger.error(f"Could not enqueue AI queue batch: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Task broker is unavailable",
        )

    logger.info(f"Enqueued AI queue batch as task {task.id}")
    return TaskSubmitResponse(
        task_id=task.id,
        status="PENDING",
        message="AI queue batch enqueued",
    )


@router.get(
    "/{task_id}",
    response_model=TaskStatusResponse,
    dependencies=[Depends(get_current_user)],
)
async def get_task_status(
    task_id: Annotated[str, Path(description="Celery task ID")]
):
    """
    Get the status of a background task.

    - PENDING: waiting in queue (or unknown id)
    - STARTED: picked up by a worker
    - PROGRESS: running; progress and message are set
    - SUCCESS: result holds the task's return value
    - FAILURE: error holds the exception text
    """
    from workers.celery_app import celery_app

    result = celery_app.AsyncResult(task_id)
    response = TaskStatusResponse(task_id=task_id, status=result.status)

    if result.status == "PROGRESS":
        info = result.info or {}
        response.progress = info.get("percent", 0)
        response.message = info.get("message", "Processing...")

    elif result.status == "SUCCESS":
        response.result = result.result if isinstance(result.result, dict) else {"value": result.result}
        response.progress = 100
        response.message = "Complete"

    elif result.status == "FAILURE":
        response.error = str(result.result) if result.result else "Unknown error"
        response.message = "Failed"

    elif result.status == "PENDING":
        response.progress = 0
        response.message = "Waiting in queue..."

    elif result.status == "STARTED":
        response.progress = 0
        response.message = "Starting..."

    return response
