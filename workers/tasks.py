# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Background work that should not hold an HTTP request open.
#
# Tasks:
# - process_ai_queue: Review queued checklist documents with OpenAI
# - send_email: Deliver a templated email off the request path
# - purge_ai_cache: Delete expired ai_cache rows
# =============================================================================

import logging
from typing import Any

from celery import shared_task, current_task

from agents import get_openai_service
from app.config import settings
from lib.ai_cache import AICache
from lib.supabase_client import SupabaseClient
from lib.utils import ApplicationError, utc_now_iso

logger = logging.getLogger(__name__)

QUEUE_TABLE = "ai_analysis_queue"
FILES_TABLE = "checklist_files"


# =============================================================================
# Task State Updates
# =============================================================================

def update_progress(current: int, total: int, message: str = "Processing..."):
    """
    Update task progress for polling.

    Args:
        current: Current step number
        total: Total steps
        message: Status message
    """
    if current_task:
        current_task.update_state(
            state="PROGRESS",
            meta={
                "current": current,
                "total": total,
                "percent": int((current / total) * 100) if total else 100,
                "message": message,
            }
        )


# =============================================================================
# AI Document Queue
# =============================================================================

def fetch_queued_items(limit: int) -> list[dict[str, Any]]:
    """Highest priority first, then oldest."""
    client = SupabaseClient.get_client()
    response = (
        client.table(QUEUE_TABLE)
        .select("*")
        .eq("status", "queued")
        .order("priority", desc=True)
        .order("created_at")
        .limit(limit)
        .execute()
    )
    return response.data or []


def _analyse_item(item: dict[str, Any], attempts: int) -> dict[str, Any]:
    SupabaseClient.update(
        QUEUE_TABLE,
        {"status": "processing", "attempts": attempts, "updated_at": utc_now_iso()},
        id=item["id"],
    )

    file_row = SupabaseClient.fetch_one(FILES_TABLE, id=item["file_id"])
    if not file_row:
        raise ApplicationError(
            f"Checklist file {item['file_id']} no longer exists",
            code="FILE_NOT_FOUND",
        )

    content = SupabaseClient.download_file(settings.CHECKLIST_FILES_BUCKET, file_row["file_path"])
    analysis = get_openai_service().analyze_compliance_document(
        content,
        item.get("analysis_type") or "checklist_document",
        checklist_item=file_row.get("checklist_item_id"),
        file_type=file_row.get("file_type"),
    )

    now = utc_now_iso()
    result = {
        **analysis.model_dump(mode="json"),
        "analysis_timestamp": now,
        "file_type": file_row.get("file_type"),
        "checklist_item": file_row.get("checklist_item_id"),
        "analysis_type": item.get("analysis_type"),
    }
    SupabaseClient.update(
        FILES_TABLE,
        {"ai_analysis": result, "ai_analysis_status": "completed", "ai_analysis_updated_at": now},
        id=file_row["id"],
    )
    SupabaseClient.update(
        QUEUE_TABLE,
        {"status": "completed", "result_data": result, "processed_at": now, "error_message": None},
        id=item["id"],
    )
    return file_row


def process_queue_item(item: dict[str, Any]) -> str:
    """
    Analyse the document behind one queue item.

    Any failure requeues the item while attempts remain and marks it (and
    its file) failed after max_attempts.

    Returns the item's new status: "completed", "queued" (another attempt
    is left) or "failed".
    """
    attempts = int(item.get("attempts") or 0) + 1
    max_attempts = int(item.get("max_attempts") or 3)

    try:
        file_row = _analyse_item(item, attempts)
    except Exception as e:
        message = e.message if isinstance(e, ApplicationError) else str(e) or type(e).__name__
        status = "queued" if attempts < max_attempts else "failed"
        logger.warning(
            f"Analysis of queue item {item['id']} failed (attempt {attempts}/{max_attempts}): {message}"
        )
        SupabaseClient.update(
            QUEUE_TABLE,
            {"status": status, "attempts": attempts, "error_message": message, "updated_at": utc_now_iso()},
            id=item["id"],
        )
        if status == "failed":
            SupabaseClient.update(
                FILES_TABLE,
                {"ai_analysis_status": "failed", "ai_analysis_updated_at": utc_now_iso()},
                id=item["file_id"],
            )
        return status

    logger.info(f"Completed {item.get('analysis_type')} analysis for file {file_row['id']}")
    return "completed"


@shared_task(bind=True, name="workers.tasks.process_ai_queue")
def process_ai_queue(self, batch_size: int | None = None) -> dict[str, Any]:
    """
    Work through one batch of ai_analysis_queue.

    Items are handled one at a time; a failing item is requeued until it
    reaches max_attempts and never stops the rest of the batch.

    Returns:
        Dict with processed, completed, failed and requeued counts
    """
    items = fetch_queued_items(batch_size or settings.AI_QUEUE_BATCH_SIZE)
    summary = {"processed": 0, "completed": 0, "failed": 0, "requeued": 0}
    if not items:
        logger.info("AI queue is empty")
        return summary

    logger.info(f"Processing {len(items)} queued document analyses")
    for index, item in enumerate(items, start=1):
        update_progress(index - 1, len(items), f"Analysing document {index} of {len(items)}")
        status = process_queue_item(item)
        summary["processed"] += 1
        if status == "completed":
            summary["completed"] += 1
        elif status == "failed":
            summary["failed"] += 1
        else:
            summary["requeued"] += 1

    update_progress(len(items), len(items), "Done")
    logger.info(f"AI queue batch finished: {summary}")
    return summary


# =============================================================================
# Email Delivery
# =============================================================================

@shared_task(bind=True, name="workers.tasks.send_email", max_retries=3)
def send_email(self, template: str, kwargs: dict[str, Any]) -> dict[str, Any]:
    """
    Call one of the EmailService.send_* helpers by name.

    Args:
        template: Helper name without the prefix, e.g. "welcome_email"
        kwargs: Keyword arguments for the helper (JSON-serializable)

    Retries after a minute when SMTP is configured but delivery failed.
    """
    from core.services.email_service import EmailService

    sender = getattr(EmailService, f"send_{template}", None)
    # "send_email" itself is the raw transport, not a template helper
    if sender is None or template == "email":
        raise ValueError(f"Unknown email template: {template}")

    result = sender(**kwargs)
    if not result.success and settings.smtp_enabled:
        logger.warning(f"Email '{template}' failed: {result.error}; retrying")
        raise self.retry(countdown=60)
    return result.model_dump()


# =============================================================================
# Maintenance
# =============================================================================

@shared_task(bind=True, name="workers.tasks.purge_ai_cache")
def purge_ai_cache(self) -> dict[str, Any]:
    return {"removed": AICache.purge_expired()}
