# =============================================================================
# core/services/checklist_service.py - Company Checklist Persistence
# =============================================================================
# Reads and writes the single `company_checklist` row per company, and
# stores supporting documents for checklist items.
#
# Uploaded documents are saved to the bidding-checklist-files bucket, get a
# `checklist_files` row, and are queued in `ai_analysis_queue` for the
# process_ai_queue worker task.
#
# Grading logic lives in core/checklist.py; this module only persists.
# =============================================================================

import logging
from typing import Any

from app.config import settings
from app.exceptions import BadRequestError, CompanyNotFoundError, PermissionDeniedError
from core.checklist import ITEMS_BY_FIELD, boolean_fields
from core.models.company import MANAGER_ROLES
from core.services.application_service import FileUpload
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

CHECKLIST_TABLE = "company_checklist"
CHECKLIST_FILES_TABLE = "checklist_files"
AI_QUEUE_TABLE = "ai_analysis_queue"

ANALYSIS_TYPES = ("checklist_document", "financial_document", "certification_document")
DEFAULT_MAX_ATTEMPTS = 3


def require_manager(profile: dict[str, Any], action: str = "manage the checklist") -> None:
    """
    Raises:
        PermissionDeniedError: Profile role is not company_owner or admin
        CompanyNotFoundError: Profile is not linked to a company
    """
    if profile.get("role") not in MANAGER_ROLES:
        raise PermissionDeniedError(action, list(MANAGER_ROLES))
    if not profile.get("company_id"):
        raise CompanyNotFoundError()


class ChecklistService:

    @staticmethod
    def get_or_create(company_id: str) -> dict[str, Any]:
        """Return the company's checklist, creating an empty one on first use."""
        checklist = SupabaseClient.fetch_one(CHECKLIST_TABLE, company_id=company_id)
        if checklist:
            return checklist

        logger.info(f"Creating checklist for company {company_id}")
        return SupabaseClient.insert(CHECKLIST_TABLE, {"company_id": company_id})

    @staticmethod
    def _write(company_id: str, columns: dict[str, Any]) -> dict[str, Any]:
        updated = SupabaseClient.update(CHECKLIST_TABLE, columns, company_id=company_id)
        if updated:
            return updated
        return SupabaseClient.insert(CHECKLIST_TABLE, {"company_id": company_id, **columns})

    @staticmethod
    def update_field(
        profile: dict[str, Any],
        field: str,
        value: bool | str,
    ) -> dict[str, Any]:
        """
        Set one checklist item.

        Raises:
            PermissionDeniedError: Caller is not a company manager
            BadRequestError: Unknown field, or value type does not match the item
        """
        require_manager(profile)

        item = ITEMS_BY_FIELD.get(field)
        if item is None:
            raise BadRequestError(
                f"Unknown checklist field: {field}",
                code="UNKNOWN_CHECKLIST_FIELD",
                suggestion="Use a field from GET /api/v1/company/checklist/items",
            )
        if item.input_type == "boolean" and not isinstance(value, bool):
            raise BadRequestError(f"{field} expects true or false", code="INVALID_CHECKLIST_VALUE")
        if item.input_type != "boolean" and not isinstance(value, str):
            raise BadRequestError(f"{field} expects a text value", code="INVALID_CHECKLIST_VALUE")

        checklist = ChecklistService._write(
            profile["company_id"],
            {field: value, "last_updated_by": profile["id"], "updated_at": utc_now_iso()},
        )
        logger.info(f"Checklist {field} set for company {profile['company_id']}")
        return checklist

    @staticmethod
    def bulk_update(
        profile: dict[str, Any],
        updates: dict[str, Any],
        notes: str | None = None,
    ) -> dict[str, Any]:
        """
        Apply many boolean items at once.

        Non-boolean values and unknown fields are ignored; notes are written
        when provided.
        """
        require_manager(profile)

        allowed = boolean_fields()
        columns: dict[str, Any] = {
            field: value
            for field, value in updates.items()
            if field in allowed and isinstance(value, bool)
        }
        skipped = len(updates) - len(columns)
        if skipped:
            logger.debug(f"Ignored {skipped} non-boolean checklist updates")

        if notes is not None:
            columns["notes"] = notes
        columns["last_updated_by"] = profile["id"]
        columns["updated_at"] = utc_now_iso()

        return ChecklistService._write(profile["company_id"], columns)

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    @staticmethod
    def upload_document(
        profile: dict[str, Any],
        checklist_item_id: str,
        upload: FileUpload,
        analysis_type: str = "checklist_document",
        priority: int = 0,
    ) -> dict[str, Any]:
        """
        Store a supporting document and queue it for AI analysis.

        Returns:
            {"file": checklist_files row, "queue_item": ai_analysis_queue row}
        """
        require_manager(profile, "upload checklist documents")

        if checklist_item_id not in ITEMS_BY_FIELD:
            raise BadRequestError(f"Unknown checklist item: {checklist_item_id}", code="UNKNOWN_CHECKLIST_FIELD")
        if analysis_type not in ANALYSIS_TYPES:
            raise BadRequestError(
                f"Unknown analysis type: {analysis_type}",
                suggestion=f"Use one of: {', '.join(ANALYSIS_TYPES)}",
            )

        company_id = profile["company_id"]
        path = f"{company_id}/{checklist_item_id}/{upload.safe_name}"
        SupabaseClient.upload_file(settings.CHECKLIST_FILES_BUCKET, path, upload.content, upload.content_type)

        file_row = SupabaseClient.insert(
            CHECKLIST_FILES_TABLE,
            {
                "company_id": company_id,
                "checklist_item_id": checklist_item_id,
                "file_name": upload.filename,
                "file_path": path,
                "file_type": upload.content_type,
                "file_size": len(upload.content),
                "uploaded_by": profile["id"],
                "ai_analysis_status": "queued",
            },
        )
        queue_item = SupabaseClient.insert(
            AI_QUEUE_TABLE,
            {
                "file_id": file_row["id"],
                "company_id": company_id,
                "analysis_type": analysis_type,
                "status": "queued",
                "priority": priority,
                "attempts": 0,
                "max_attempts": DEFAULT_MAX_ATTEMPTS,
            },
        )

        logger.info(f"Queued {upload.filename} for {analysis_type} analysis (file {file_row['id']})")
        return {"file": file_row, "queue_item": queue_item}

    @staticmethod
    def list_documents(company_id: str) -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        response = (
            client.table(CHECKLIST_FILES_TABLE)
            .select("*")
            .eq("company_id", company_id)
            .order("created_at", desc=True)
            .execute()
        )
        return response.data or []
