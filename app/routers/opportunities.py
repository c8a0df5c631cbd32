# =============================================================================
# app/routers/opportunities.py - Opportunity Discovery Endpoints
# =============================================================================
# - GET  /opportunities/search   live search across USAspending, Grants.gov
#                                and SAM.gov, ranked for the caller's company
# - GET  /opportunities/awarded  past USAspending contract awards, paged
# - POST /opportunities/alert    email the caller the top search results
# - GET  /opportunities          stored opportunities (public + company-private)
# - GET  /opportunities/{id}
# - POST /opportunities          create a stored opportunity (platform admins)
#
# Search and list work anonymously; results are then scored against a
# default company profile.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel, Field

from app.auth import AuthUser, require_admin
from app.dependencies import CurrentCompany, CurrentProfile, OptionalCompany
from core.models.opportunity import (
    Jurisdiction,
    OpportunityCreate,
    OpportunitySearchResponse,
    OpportunityType,
)
from core.services.opportunity_service import OpportunityService

router = APIRouter()


class AlertRequest(BaseModel):
    keyword: str | None = Field(default=None, max_length=200)
    max_items: int = Field(default=5, ge=1, le=20)


@router.get("/search", response_model=OpportunitySearchResponse)
def search_opportunities(
    company: OptionalCompany,
    keyword: Annotated[str | None, Query(max_length=200, description="Free-text keyword")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    include_contracts: bool = True,
    include_grants: bool = True,
    include_sam: bool = True,
):
    """
    Search live government sources and rank by match score and win probability.

    A source that fails is reported in metadata.errors; the others still
    return results.
    """
    return OpportunityService.search(
        company,
        keyword=keyword,
        limit=limit,
        include_contracts=include_contracts,
        include_grants=include_grants,
        include_sam=include_sam,
    )


@router.get("/awarded", response_model=OpportunitySearchResponse)
def search_awarded_contracts(
    company: OptionalCompany,
    keyword: Annotated[str | None, Query(max_length=200)] = None,
    naics: Annotated[str | None, Query(pattern=r"^\d{2,6}$", description="NAICS code")] = None,
    state: Annotated[str | None, Query(min_length=2, max_length=2)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 25,
):
    """Historical contract awards from USAspending.gov, scored for the caller."""
    return OpportunityService.search_awarded_contracts(
        company,
        keyword=keyword,
        naics_code=naics,
        state=state.upper() if state else None,
        page=page,
        limit=limit,
    )


@router.post("/alert")
def send_opportunity_alert(
    body: AlertRequest,
    profile: CurrentProfile,
    company: CurrentCompany,
):
    """Run a search now and email the best matches to the caller."""
    results = OpportunityService.search(company, keyword=body.keyword, limit=max(body.max_items, 10))
    email = OpportunityService.send_search_alert(
        profile.get("email"), profile.get("full_name"), results, max_items=body.max_items
    )
    return {
        "email_sent": email.success,
        "opportunities": min(len(results.opportunities), body.max_items),
        "error": email.error,
    }


@router.get("")
async def list_opportunities(
    company: OptionalCompany,
    keyword: Annotated[str | None, Query(max_length=200)] = None,
    type: Annotated[OpportunityType | None, Query(description="contract or grant")] = None,
    jurisdiction: Jurisdiction | None = None,
    agency: Annotated[str | None, Query(max_length=200)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
):
    return OpportunityService.list_opportunities(
        company,
        keyword=keyword,
        opportunity_type=type.value if type else None,
        jurisdiction=jurisdiction.value if jurisdiction else None,
        agency=agency,
        page=page,
        limit=limit,
    )


@router.get("/{opportunity_id}")
async def get_opportunity(
    opportunity_id: Annotated[str, Path(description="Opportunity UUID")],
    company: OptionalCompany,
):
    return {"opportunity": OpportunityService.get_opportunity(opportunity_id, company)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_opportunity(
    body: OpportunityCreate,
    admin: AuthUser = Depends(require_admin),
):
    opportunity = OpportunityService.create_opportunity(body, created_by=str(admin.id))
    return {"opportunity": opportunity}
