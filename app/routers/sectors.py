# =============================================================================
# app/routers/sectors.py - Sector Prospect Lists
# =============================================================================
# Public registries and market figures used on the sector pages
# (healthcare, education, construction, manufacturing, government).
# SAM.gov entity searches need SAM_GOV_API_KEY.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Query

from app.exceptions import BadRequestError
from core.services.sector_service import ManufacturingIndustry, SectorService
from lib.gov_data import STATE_FIPS

router = APIRouter()

StateCode = Annotated[str, Query(min_length=2, max_length=2, description="Two-letter state code")]
OptionalState = Annotated[
    str | None, Query(min_length=2, max_length=2, description="Two-letter state code; national when omitted")
]
NameQuery = Annotated[str | None, Query(max_length=200, description="Legal business name")]
EntityLimit = Annotated[int, Query(ge=1, le=10, description="SAM.gov returns at most 10 entities per page")]


def _upper(state: str | None) -> str | None:
    return state.upper() if state else None


def _census_state(state: str | None) -> str | None:
    state = _upper(state)
    if state and state not in STATE_FIPS:
        raise BadRequestError(f"Unknown state code: {state}", code="INVALID_STATE")
    return state


@router.get("/healthcare/providers")
def healthcare_providers(
    state: StateCode = "CA",
    limit: Annotated[int, Query(ge=1, le=200)] = 20,
):
    """Healthcare organizations and practitioners from the NPPES registry."""
    return SectorService.healthcare_providers(state.upper(), limit=limit)


@router.get("/education/institutions")
def education_institutions(
    state: StateCode = "CA",
    query: Annotated[str | None, Query(max_length=200, description="Name contains")] = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 20,
):
    """Colleges and universities from IPEDS, optionally filtered by name."""
    return SectorService.education_institutions(state.upper(), query=query, limit=limit)


@router.get("/construction/census")
def construction_census(state: OptionalState = None):
    """Establishments, employment and receipts for NAICS 236, 237 and 238."""
    return SectorService.construction_census(_census_state(state))


@router.get("/construction/contractors")
def construction_contractors(
    query: NameQuery = None,
    state: OptionalState = None,
    limit: EntityLimit = 10,
):
    """Active SAM.gov registrants with a construction primary NAICS."""
    return SectorService.construction_contractors(query, _upper(state), limit=limit)


@router.get("/manufacturing/census")
def manufacturing_census(
    state: OptionalState = None,
    industry: ManufacturingIndustry | None = None,
):
    return SectorService.manufacturing_census(_census_state(state), industry)


@router.get("/manufacturing/companies")
def manufacturers(
    query: NameQuery = None,
    state: OptionalState = None,
    industry: ManufacturingIndustry | None = None,
    limit: EntityLimit = 10,
):
    """Active SAM.gov registrants with a manufacturing primary NAICS."""
    return SectorService.manufacturers(query, _upper(state), industry, limit=limit)


@router.get("/government/agencies")
def agency_spending(limit: Annotated[int, Query(ge=1, le=50)] = 10):
    """Awarding agencies ranked by contract obligations over the last year."""
    return SectorService.agency_spending(limit=limit)


@router.get("/government/treasury")
def treasury_snapshot():
    return SectorService.treasury_snapshot()
