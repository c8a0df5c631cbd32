# =============================================================================
# core/services/application_service.py - Application Business Logic
# =============================================================================
# Handles a company's applications to opportunities.
#
# Lifecycle rules (see core/models/application.py):
# - New applications start as draft
# - draft -> submitted -> under_review -> awarded | rejected
# - After submission only status and notes may change
# - Only drafts can be deleted
# - submitted_at is stamped on the first move to submitted
# =============================================================================

import logging
import math
import re
from dataclasses import dataclass
from typing import Any

from app.config import settings
from app.exceptions import (
    ApplicationExistsError,
    ApplicationLockedError,
    ApplicationNotFoundError,
    BadRequestError,
    InvalidStatusTransitionError,
    JurisdictionAccessError,
    OpportunityNotFoundError,
)
from core.models.application import (
    ApplicationContent,
    ApplicationStatus,
    ApplicationUpdate,
    POST_SUBMISSION_FIELDS,
    SortField,
)
from core.services.email_service import EmailService
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

APPLICATIONS_TABLE = "applications"
APPLICATION_FILES_TABLE = "application_files"

# Opportunity columns embedded in application listings
OPPORTUNITY_EMBED = (
    "opportunities (title, agency, solicitation_number, due_date, "
    "estimated_value_min, estimated_value_max)"
)

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class FileUpload:
    """An uploaded file already read into memory by the router."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def safe_name(self) -> str:
        return _UNSAFE_FILENAME.sub("_", self.filename).strip("_") or "file"


class ApplicationService:
    """Application CRUD, submission and status lifecycle."""

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @staticmethod
    def list_applications(
        company_id: str,
        page: int = 1,
        limit: int = 20,
        status: ApplicationStatus | None = None,
        sort_by: SortField = SortField.CREATED_AT,
        sort_order: str = "desc",
    ) -> dict[str, Any]:
        """
        Page through the company's applications.

        Returns:
            {"applications": [...], "pagination": {page, limit, total, total_pages}}
        """
        client = SupabaseClient.get_client()
        query = (
            client.table(APPLICATIONS_TABLE)
            .select(f"*, {OPPORTUNITY_EMBED}", count="exact")
            .eq("company_id", company_id)
        )
        if status:
            query = query.eq("status", status.value)

        offset = (page - 1) * limit
        response = (
            query.order(sort_by.value, desc=sort_order != "asc")
            .range(offset, offset + limit - 1)
            .execute()
        )

        total = response.count or 0
        return {
            "applications": response.data or [],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if limit else 0,
            },
        }

    @staticmethod
    def get_application(company_id: str, application_id: str) -> dict[str, Any]:
        """
        Raises:
            ApplicationNotFoundError: Missing or owned by another company
        """
        application = SupabaseClient.fetch_one(APPLICATIONS_TABLE, id=application_id)
        if not application or str(application.get("company_id")) != str(company_id):
            raise ApplicationNotFoundError(application_id)
        return application

    @staticmethod
    def _find_existing(company_id: str, opportunity_id: str) -> dict[str, Any] | None:
        client = SupabaseClient.get_client()
        response = (
            client.table(APPLICATIONS_TABLE)
            .select("id, status")
            .eq("company_id", company_id)
            .eq("opportunity_id", opportunity_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    @staticmethod
    def _check_access(company: dict[str, Any], opportunity_id: str) -> dict[str, Any]:
        """
        Load the opportunity and check the company's plan covers it.

        Raises:
            OpportunityNotFoundError: No such opportunity
            JurisdictionAccessError: Jurisdiction not in allowed_jurisdictions
        """
        opportunity = SupabaseClient.fetch_opportunity(opportunity_id)
        if not opportunity:
            raise OpportunityNotFoundError(opportunity_id)

        allowed = company.get("allowed_jurisdictions") or []
        jurisdiction = opportunity.get("jurisdiction")
        if jurisdiction and jurisdiction not in allowed:
            raise JurisdictionAccessError(jurisdiction, allowed)
        return opportunity

    # -------------------------------------------------------------------------
    # Create / Update / Delete
    # -------------------------------------------------------------------------

    @staticmethod
    def create_application(
        company: dict[str, Any],
        opportunity_id: str,
        responses: dict[str, Any] | None = None,
        documents: list[Any] | None = None,
        notes: str = "",
    ) -> dict[str, Any]:
        """
        Create a draft application.

        Raises:
            OpportunityNotFoundError: 404
            JurisdictionAccessError: 403
            ApplicationExistsError: 409, the company already applied
        """
        ApplicationService._check_access(company, opportunity_id)

        existing = ApplicationService._find_existing(company["id"], opportunity_id)
        if existing:
            raise ApplicationExistsError(opportunity_id, existing["id"])

        now = utc_now_iso()
        application = SupabaseClient.insert(
            APPLICATIONS_TABLE,
            {
                "company_id": company["id"],
                "opportunity_id": opportunity_id,
                "status": ApplicationStatus.DRAFT.value,
                "responses": responses or {},
                "documents": documents or [],
                "notes": notes or "",
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info(f"Created draft application {application['id']} for opportunity {opportunity_id}")
        return application

    @staticmethod
    def _status_change(application: dict[str, Any], requested: ApplicationStatus) -> dict[str, Any]:
        """
        Validate a status move and return the columns to write.

        Raises:
            InvalidStatusTransitionError: Move not allowed by the lifecycle
        """
        current = ApplicationStatus(application["status"])
        if not current.can_transition_to(requested):
            raise InvalidStatusTransitionError(
                current.value,
                requested.value,
                [s.value for s in current.allowed_next()],
            )

        columns: dict[str, Any] = {"status": requested.value}
        if requested == ApplicationStatus.SUBMITTED and not application.get("submitted_at"):
            columns["submitted_at"] = utc_now_iso()
        return columns

    @staticmethod
    def update_application(
        company_id: str,
        application_id: str,
        data: ApplicationUpdate,
    ) -> dict[str, Any]:
        """
        Apply a partial update.

        Raises:
            ApplicationLockedError: Non status/notes change after submission
            InvalidStatusTransitionError: Status move breaks the lifecycle
        """
        application = ApplicationService.get_application(company_id, application_id)
        changes = data.changes()
        if not changes:
            raise BadRequestError("No fields to update", suggestion="Send at least one field")

        current = ApplicationStatus(application["status"])
        if current != ApplicationStatus.DRAFT:
            locked = set(changes) - POST_SUBMISSION_FIELDS
            if locked:
                raise ApplicationLockedError(application_id, current.value, f"change {', '.join(sorted(locked))}")

        requested = changes.pop("status", None)
        if requested and requested != current.value:
            changes.update(ApplicationService._status_change(application, ApplicationStatus(requested)))

        changes["updated_at"] = utc_now_iso()
        updated = SupabaseClient.update(APPLICATIONS_TABLE, changes, id=application_id)
        logger.info(f"Updated application {application_id}: {sorted(changes)}")
        return updated or {**application, **changes}

    @staticmethod
    def delete_application(company_id: str, application_id: str) -> None:
        """
        Raises:
            ApplicationLockedError: Application is no longer a draft
        """
        application = ApplicationService.get_application(company_id, application_id)
        if application["status"] != ApplicationStatus.DRAFT.value:
            raise ApplicationLockedError(application_id, application["status"], action="delete")

        client = SupabaseClient.get_client()
        client.table(APPLICATIONS_TABLE).delete().eq("id", application_id).execute()
        logger.info(f"Deleted draft application {application_id}")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @staticmethod
    def transition(
        company_id: str,
        application_id: str,
        status: ApplicationStatus,
        notify_email: str | None = None,
        notify_name: str | None = None,
        details: str | None = None,
    ) -> dict[str, Any]:
        """
        Move an application to a new status and email the user.

        awarded and rejected are final; every other move must follow
        draft -> submitted -> under_review -> awarded | rejected.
        """
        application = ApplicationService.get_application(company_id, application_id)
        columns = ApplicationService._status_change(application, status)
        columns["updated_at"] = utc_now_iso()

        updated = SupabaseClient.update(APPLICATIONS_TABLE, columns, id=application_id) or {
            **application,
            **columns,
        }
        logger.info(f"Application {application_id}: {application['status']} -> {status.value}")

        if notify_email:
            EmailService.send_application_status_update(
                notify_email,
                notify_name,
                ApplicationService._title(updated),
                status.value,
                details,
            )
        return updated

    @staticmethod
    def _title(application: dict[str, Any]) -> str:
        opportunity = application.get("opportunities") or {}
        if opportunity.get("title"):
            return opportunity["title"]
        if application.get("opportunity_id"):
            found = SupabaseClient.fetch_opportunity(application["opportunity_id"])
            if found and found.get("title"):
                return found["title"]
        return f"Application {application.get('id', '')}".strip()

    @staticmethod
    def submit_application(
        user_id: str,
        user_email: str | None,
        profile: dict[str, Any],
        company: dict[str, Any],
        opportunity_id: str,
        content: ApplicationContent,
        files: list[FileUpload] | None = None,
    ) -> dict[str, Any]:
        """
        Submit a complete application in one step.

        An existing draft for the same opportunity is submitted in place;
        any other existing application is a conflict. Uploaded files go to
        the application-files bucket with one application_files row each.

        Returns:
            {"application": row, "files": [file rows]}
        """
        opportunity = ApplicationService._check_access(company, opportunity_id)
        existing = ApplicationService._find_existing(company["id"], opportunity_id)

        now = utc_now_iso()
        record = {
            **content.model_dump(),
            "user_id": user_id,
            "status": ApplicationStatus.SUBMITTED.value,
            "submitted_at": now,
            "updated_at": now,
        }

        if existing:
            if existing["status"] != ApplicationStatus.DRAFT.value:
                raise ApplicationExistsError(opportunity_id, existing["id"])
            application = SupabaseClient.update(APPLICATIONS_TABLE, record, id=existing["id"]) or {
                "id": existing["id"],
                **record,
            }
        else:
            application = SupabaseClient.insert(
                APPLICATIONS_TABLE,
                {
                    **record,
                    "company_id": company["id"],
                    "opportunity_id": opportunity_id,
                    "created_at": now,
                },
            )

        file_rows = ApplicationService._store_files(company["id"], application["id"], files or [])
        logger.info(f"Submitted application {application['id']} with {len(file_rows)} files")

        if user_email:
            EmailService.send_application_status_update(
                user_email,
                profile.get("full_name"),
                opportunity.get("title") or "your application",
                ApplicationStatus.SUBMITTED.value,
            )

        return {"application": application, "files": file_rows}

    @staticmethod
    def _store_files(company_id: str, application_id: str, files: list[FileUpload]) -> list[dict[str, Any]]:
        rows = []
        for upload in files:
            if not upload.content:
                continue
            path = f"{company_id}/{application_id}/{upload.safe_name}"
            SupabaseClient.upload_file(
                settings.APPLICATION_FILES_BUCKET, path, upload.content, upload.content_type
            )
            rows.append({
                "application_id": application_id,
                "filename": upload.filename,
                "file_path": path,
                "file_size": len(upload.content),
                "file_type": upload.content_type,
                "uploaded_at": utc_now_iso(),
            })

        if not rows:
            return []

        client = SupabaseClient.get_client()
        response = client.table(APPLICATION_FILES_TABLE).insert(rows).execute()
        return response.data or rows

    # -------------------------------------------------------------------------
    # AI Results
    # -------------------------------------------------------------------------

    @staticmethod
    def save_quality_score(company_id: str, application_id: str, score: dict[str, Any]) -> None:
        """Store an AI or heuristic quality result on the application."""
        ApplicationService.get_application(company_id, application_id)
        overall = score.get("overall_score", score.get("quality_score"))
        SupabaseClient.update(
            APPLICATIONS_TABLE,
            {"quality_score": overall, "ai_analysis": score, "updated_at": utc_now_iso()},
            id=application_id,
        )
