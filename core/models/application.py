# =============================================================================
# core/models/application.py - Application Schemas
# =============================================================================
# An application is a company's response to one opportunity.
#
# Lifecycle:
#   draft -> submitted -> under_review -> awarded | rejected
#
# awarded and rejected are final. Once an application leaves draft only its
# status and notes may change.
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    AWARDED = "awarded"
    REJECTED = "rejected"

    @property
    def is_final(self) -> bool:
        return self in (ApplicationStatus.AWARDED, ApplicationStatus.REJECTED)

    def allowed_next(self) -> list["ApplicationStatus"]:
        return list(STATUS_TRANSITIONS[self])

    def can_transition_to(self, target: "ApplicationStatus") -> bool:
        return target in STATUS_TRANSITIONS[self]


STATUS_TRANSITIONS: dict[ApplicationStatus, tuple[ApplicationStatus, ...]] = {
    ApplicationStatus.DRAFT: (ApplicationStatus.SUBMITTED,),
    ApplicationStatus.SUBMITTED: (ApplicationStatus.UNDER_REVIEW,),
    ApplicationStatus.UNDER_REVIEW: (ApplicationStatus.AWARDED, ApplicationStatus.REJECTED),
    ApplicationStatus.AWARDED: (),
    ApplicationStatus.REJECTED: (),
}

# Fields that may still change after submission
POST_SUBMISSION_FIELDS = {"status", "notes"}


class SortField(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    SUBMITTED_AT = "submitted_at"
    STATUS = "status"
    QUALITY_SCORE = "quality_score"


class ApplicationCreate(BaseModel):
    """Input for POST /applications (creates a draft)."""

    opportunity_id: str = Field(..., min_length=1)
    responses: dict[str, Any] = Field(default_factory=dict)
    documents: list[Any] = Field(default_factory=list)
    notes: str = ""


class ApplicationUpdate(BaseModel):
    """Partial update for PUT /applications/{id}."""

    status: ApplicationStatus | None = None
    notes: str | None = None
    responses: dict[str, Any] | None = None
    documents: list[Any] | None = None
    proposal_text: str | None = None
    technical_approach: str | None = None
    team_members: str | None = None
    timeline: str | None = None
    budget: str | None = None
    relevant_experience: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, mode="json")


class ApplicationContent(BaseModel):
    """
    Proposal sections captured by the submission form.

    Also the input to AI quality scoring and the rule-based fallback.
    """

    proposal_text: str = ""
    technical_approach: str = ""
    team_members: str = ""
    timeline: str = ""
    budget: str = ""
    relevant_experience: str = ""


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ApplicationList(BaseModel):
    applications: list[dict[str, Any]]
    pagination: Pagination
