# =============================================================================
# core/models/opportunity.py - Opportunity Schemas
# =============================================================================
# CombinedOpportunity is the one shape every external source is mapped into
# (USAspending awards, Grants.gov hits, SAM.gov notices) so the search
# endpoint can score and sort them together.
#
# OpportunityCreate / stored opportunities describe rows in the
# `opportunities` table (manually entered or admin-approved).
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class OpportunityType(str, Enum):
    CONTRACT = "contract"
    GRANT = "grant"


class OpportunitySource(str, Enum):
    USASPENDING = "USAspending.gov"
    GRANTS_GOV = "Grants.gov"
    SAM_GOV = "SAM.gov"
    DATABASE = "database"


class Jurisdiction(str, Enum):
    """Government level; billing plans unlock jurisdictions."""
    FEDERAL = "federal"
    STATE = "state"
    LOCAL = "local"


class OpportunityLink(BaseModel):
    rel: str = "self"
    href: str


class CombinedOpportunity(BaseModel):
    """
    Normalized opportunity returned by GET /opportunities/search.

    Example:
        {
            "id": "usa-spending-W91QF425C0001",
            "title": "Cloud migration services",
            "organization": "Department of Defense",
            "award_amount": 1250000.0,
            "source": "USAspending.gov",
            "type": "contract",
            "match_score": 90,
            "win_probability": 0.6
        }
    """

    id: str
    title: str
    description: str = ""
    organization: str = ""
    department: str = ""
    posted_date: str | None = None
    deadline: str | None = None
    award_amount: float | None = None
    location: str | None = None
    naics_codes: list[str] = Field(default_factory=list)
    set_aside: str | None = None
    links: list[OpportunityLink] = Field(default_factory=list)
    source: OpportunitySource
    type: OpportunityType
    match_score: int = Field(default=0, ge=0, le=100)
    win_probability: float = Field(default=0.0, ge=0.0, le=1.0)


class SearchMetadata(BaseModel):
    total: int
    sources: dict[str, int]
    errors: dict[str, str] = Field(default_factory=dict)
    search_params: dict[str, Any] = Field(default_factory=dict)


class OpportunitySearchResponse(BaseModel):
    success: bool = True
    opportunities: list[CombinedOpportunity]
    metadata: SearchMetadata


class OpportunityCreate(BaseModel):
    """Input for POST /opportunities (admin only)."""

    title: str = Field(..., min_length=1, max_length=500)
    agency: str | None = None
    description: str | None = None
    type: OpportunityType = OpportunityType.CONTRACT
    jurisdiction: Jurisdiction = Jurisdiction.FEDERAL
    naics_codes: list[str] = Field(default_factory=list)
    industry: str | None = None
    location: str | None = None
    estimated_value_min: float | None = Field(default=None, ge=0)
    estimated_value_max: float | None = Field(default=None, ge=0)
    due_date: str | None = Field(default=None, description="ISO-8601 response deadline")
    solicitation_number: str | None = None
    source_url: str | None = None
    company_id: str | None = Field(
        default=None,
        description="Restrict visibility to one company (request fulfilment)"
    )


# =============================================================================
# Opportunity Requests
# =============================================================================

class OpportunityRequestStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"


class SelectedOpportunity(BaseModel):
    """One opportunity an admin hand-picked for a company."""

    title: str = Field(..., min_length=1, max_length=500)
    url: str | None = None
    description: str | None = None
    agency: str | None = None
    deadline: str | None = None
    admin_notes: str | None = None
    match_score: int = Field(default=85, ge=0, le=100)
    source_data: dict[str, Any] | None = None


class ApproveOpportunities(BaseModel):
    """Input for POST /admin/opportunity-requests/{id}/approve."""

    selected_opportunities: list[SelectedOpportunity] = Field(..., min_length=1, max_length=5)
