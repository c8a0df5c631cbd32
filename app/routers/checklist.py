# =============================================================================
# app/routers/checklist.py - Company Bidding Checklist Endpoints
# =============================================================================
# Mounted at /api/v1/company/checklist. Reads are open to every member;
# writes and document uploads are limited to owners and admins (enforced
# in ChecklistService).
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from pydantic import BaseModel, Field, model_validator

from app.dependencies import CurrentCompany, CurrentProfile, read_upload
from core.checklist import (
    CHECKLIST_ITEMS,
    ChecklistCategory,
    checklist_summary,
    critical_items_missing,
    items_for,
    validate_for_application,
    validate_for_jurisdiction,
)
from core.services.checklist_service import ChecklistService

router = APIRouter()


class ChecklistFieldUpdate(BaseModel):
    field: str = Field(..., min_length=1)
    value: bool | str


class ChecklistBulkUpdate(BaseModel):
    updates: dict[str, bool | str] = Field(default_factory=dict)
    notes: str | None = None


class ValidateRequest(BaseModel):
    """Give `jurisdiction` for one level, or `jurisdictions` for an application."""

    jurisdiction: ChecklistCategory | None = None
    jurisdictions: list[ChecklistCategory] | None = None

    @model_validator(mode="after")
    def _one_of(self):
        if self.jurisdiction is None and not self.jurisdictions:
            raise ValueError("jurisdiction or jurisdictions is required")
        return self


@router.get("")
async def get_checklist(company: CurrentCompany):
    checklist = ChecklistService.get_or_create(company["id"])
    return {"checklist": checklist, "summary": checklist_summary(checklist)}


@router.put("")
async def bulk_update_checklist(body: ChecklistBulkUpdate, profile: CurrentProfile):
    """Set many yes/no items at once; text values are ignored here."""
    checklist = ChecklistService.bulk_update(profile, body.updates, notes=body.notes)
    return {"checklist": checklist, "summary": checklist_summary(checklist)}


@router.patch("")
async def update_checklist_field(body: ChecklistFieldUpdate, profile: CurrentProfile):
    checklist = ChecklistService.update_field(profile, body.field, body.value)
    return {"checklist": checklist, "summary": checklist_summary(checklist)}


@router.get("/summary")
async def get_checklist_summary(company: CurrentCompany):
    checklist = ChecklistService.get_or_create(company["id"])
    return {
        **checklist_summary(checklist),
        "critical_missing": critical_items_missing(checklist),
    }


@router.post("/validate")
async def validate_checklist(body: ValidateRequest, company: CurrentCompany):
    checklist = ChecklistService.get_or_create(company["id"])
    if body.jurisdictions:
        return validate_for_application(checklist, body.jurisdictions)
    return validate_for_jurisdiction(checklist, body.jurisdiction)


@router.get("/items")
async def list_checklist_items(category: Annotated[ChecklistCategory | None, Query()] = None):
    """The checklist catalog: valid `field` names and their input types."""
    items = items_for(category) if category else CHECKLIST_ITEMS
    return {
        "items": [
            {
                "id": item.id,
                "field": item.field,
                "label": item.label,
                "category": item.category.value,
                "input_type": item.input_type,
            }
            for item in items
        ]
    }


# =============================================================================
# Supporting Documents
# =============================================================================

@router.get("/files")
async def list_checklist_files(company: CurrentCompany):
    return {"files": ChecklistService.list_documents(company["id"])}


@router.post("/files", status_code=status.HTTP_201_CREATED)
async def upload_checklist_file(
    profile: CurrentProfile,
    checklist_item_id: Annotated[str, Form(min_length=1)],
    file: Annotated[UploadFile, File(description="Certificate, license or financial document")],
    analysis_type: Annotated[str, Form()] = "checklist_document",
    priority: Annotated[int, Form(ge=0, le=10)] = 0,
):
    """Store a document for a checklist item and queue it for AI review."""
    upload = await read_upload(file)
    return ChecklistService.upload_document(
        profile,
        checklist_item_id,
        upload,
        analysis_type=analysis_type,
        priority=priority,
    )
