# =============================================================================
# app/routers/applications.py - Application Endpoints
# =============================================================================
# CRUD and lifecycle for the caller company's applications.
#
#   draft -> submitted -> under_review -> awarded | rejected
#
# POST /applications/submit takes a multipart form (proposal sections plus
# supporting files) and submits in one step.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, File, Form, Path, Query, UploadFile, status
from pydantic import BaseModel, Field

from app.dependencies import CurrentCompany, CurrentProfile, read_upload
from core.models.application import (
    ApplicationContent,
    ApplicationCreate,
    ApplicationList,
    ApplicationStatus,
    ApplicationUpdate,
    SortField,
)
from core.services.application_service import ApplicationService

router = APIRouter()

ApplicationId = Annotated[str, Path(description="Application UUID")]


class TransitionRequest(BaseModel):
    status: ApplicationStatus
    details: str | None = Field(default=None, max_length=2000, description="Included in the email")


@router.get("", response_model=ApplicationList)
async def list_applications(
    company: CurrentCompany,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    status: ApplicationStatus | None = None,
    sort_by: SortField = SortField.CREATED_AT,
    sort_order: Annotated[str, Query(pattern="^(asc|desc)$")] = "desc",
):
    return ApplicationService.list_applications(
        company["id"],
        page=page,
        limit=limit,
        status=status,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_application(body: ApplicationCreate, company: CurrentCompany):
    """
    Start a draft application.

    403 when the company's plan does not cover the opportunity's
    jurisdiction; 409 when the company already applied.
    """
    application = ApplicationService.create_application(
        company,
        body.opportunity_id,
        responses=body.responses,
        documents=body.documents,
        notes=body.notes,
    )
    return {"application": application}


@router.post("/submit", status_code=status.HTTP_201_CREATED)
async def submit_application(
    profile: CurrentProfile,
    company: CurrentCompany,
    opportunity_id: Annotated[str, Form(min_length=1)],
    proposal_text: Annotated[str, Form()] = "",
    technical_approach: Annotated[str, Form()] = "",
    team_members: Annotated[str, Form()] = "",
    timeline: Annotated[str, Form()] = "",
    budget: Annotated[str, Form()] = "",
    relevant_experience: Annotated[str, Form()] = "",
    files: Annotated[list[UploadFile], File(description="Supporting documents")] = [],
):
    uploads = [await read_upload(f) for f in files]
    content = ApplicationContent(
        proposal_text=proposal_text,
        technical_approach=technical_approach,
        team_members=team_members,
        timeline=timeline,
        budget=budget,
        relevant_experience=relevant_experience,
    )

    result = ApplicationService.submit_application(
        user_id=profile["id"],
        user_email=profile.get("email"),
        profile=profile,
        company=company,
        opportunity_id=opportunity_id,
        content=content,
        files=uploads,
    )
    return {"success": True, **result, "message": "Application submitted successfully"}


@router.get("/{application_id}")
async def get_application(application_id: ApplicationId, company: CurrentCompany):
    return {"application": ApplicationService.get_application(company["id"], application_id)}


@router.put("/{application_id}")
async def update_application(
    application_id: ApplicationId,
    body: ApplicationUpdate,
    company: CurrentCompany,
):
    """After submission only status and notes can change."""
    application = ApplicationService.update_application(company["id"], application_id, body)
    return {"application": application}


@router.delete("/{application_id}")
async def delete_application(application_id: ApplicationId, company: CurrentCompany):
    """Only drafts can be deleted."""
    ApplicationService.delete_application(company["id"], application_id)
    return {"success": True, "message": "Application deleted"}


@router.post("/{application_id}/transition")
def transition_application(
    application_id: ApplicationId,
    body: TransitionRequest,
    profile: CurrentProfile,
    company: CurrentCompany,
):
    """Advance the lifecycle and email the caller about the new status."""
    application = ApplicationService.transition(
        company["id"],
        application_id,
        body.status,
        notify_email=profile.get("email"),
        notify_name=profile.get("full_name"),
        details=body.details,
    )
    return {"application": application}
