# =============================================================================
# core/services/opportunity_service.py - Opportunity Search & Storage
# =============================================================================
# Two kinds of opportunity live here:
#
# 1. Live search results. USAspending.gov awards, Grants.gov grants and
#    SAM.gov notices are fetched one source after another, mapped to
#    CombinedOpportunity, scored against the caller's company and sorted by
#    ranking_score. One failing source is logged and contributes nothing.
#
# 2. Stored opportunities. Rows in the `opportunities` table, entered by
#    admins or created when an opportunity request is fulfilled. Rows with a
#    company_id are only visible to that company.
# =============================================================================

import logging
import math
from typing import Any

import httpx

from app.config import settings
from app.exceptions import OpportunityNotFoundError
from core.models.opportunity import (
    CombinedOpportunity,
    OpportunityCreate,
    OpportunityLink,
    OpportunitySearchResponse,
    OpportunitySource,
    OpportunityType,
    SearchMetadata,
)
from core.scoring import (
    DEFAULT_COMPANY_PROFILE,
    NO_COMPANY_CONTRACT,
    NO_COMPANY_GRANT,
    contract_match_score,
    contract_win_probability,
    grant_match_score,
    grant_win_probability,
    profile_relevance_score,
    ranking_score,
)
from core.services.email_service import EmailResult, EmailService
from lib.gov_data import GovDataError, GrantsGovClient, SamGovClient, USASpendingClient
from lib.supabase_client import SupabaseClient
from lib.utils import parse_number

logger = logging.getLogger(__name__)

OPPORTUNITIES_TABLE = "opportunities"
USASPENDING_AWARD_URL = "https://usaspending.gov/award/{award_id}"
GRANTS_GOV_DETAIL_URL = "https://www.grants.gov/search-results-detail/{grant_id}"


# =============================================================================
# Normalizers
# =============================================================================

def _money(value: Any) -> float | None:
    if value in (None, ""):
        return None
    return parse_number(value)


def normalize_usaspending_award(
    award: dict[str, Any],
    company: dict[str, Any] | None,
) -> CombinedOpportunity:
    """Map a USAspending `spending_by_award` result to a CombinedOpportunity."""
    award_id = award.get("Award ID") or award.get("generated_internal_id") or ""
    recipient = award.get("Recipient Name") or "Unknown recipient"
    agency = award.get("Awarding Agency") or ""
    sub_agency = award.get("Awarding Sub Agency")
    naics_code = award.get("naics_code")
    naics_codes = [str(naics_code)] if naics_code else []
    amount = _money(award.get("Award Amount"))

    description = f"Federal contract awarded to {recipient} by {agency}"
    if sub_agency:
        description += f" ({sub_agency})"
    description += (
        f". NAICS: {naics_code} - {award.get('naics_description')}."
        f" Performance period: {award.get('Start Date')} to {award.get('End Date')}."
    )

    if company:
        match = contract_match_score(agency, naics_codes, amount, company)
        win = contract_win_probability(naics_codes, company)
    else:
        match, win = NO_COMPANY_CONTRACT

    return CombinedOpportunity(
        id=f"usa-spending-{award_id}",
        title=award.get("Description")
        or f"{award.get('naics_description') or 'Government Contract'} - {recipient}",
        description=description,
        organization=agency,
        department=sub_agency or award.get("Funding Agency") or agency,
        posted_date=award.get("Start Date"),
        deadline=award.get("End Date"),
        award_amount=amount,
        location="Various Locations",
        naics_codes=naics_codes,
        set_aside="See contract details",
        links=[OpportunityLink(href=USASPENDING_AWARD_URL.format(award_id=award_id))] if award_id else [],
        source=OpportunitySource.USASPENDING,
        type=OpportunityType.CONTRACT,
        match_score=match,
        win_probability=win,
    )


def normalize_grant(grant: dict[str, Any], company: dict[str, Any] | None) -> CombinedOpportunity:
    """Map a Grants.gov `oppHits` record to a CombinedOpportunity."""
    agency = grant.get("agencyName") or ""
    aln = grant.get("alnist") or []

    if company:
        match = grant_match_score(agency, company)
        win = grant_win_probability(company)
    else:
        match, win = NO_COMPANY_GRANT

    grant_id = str(grant.get("id") or "")
    return CombinedOpportunity(
        id=grant_id,
        title=grant.get("title") or "",
        description=f"{grant.get('docType') or 'Grant'} opportunity from {agency or 'Federal Agency'}",
        organization=agency,
        department=grant.get("agencyCode") or "",
        posted_date=grant.get("openDate"),
        deadline=grant.get("closeDate"),
        award_amount=None,
        location=None,
        naics_codes=[],
        set_aside=", ".join(aln) if aln else "See opportunity details",
        links=[OpportunityLink(href=GRANTS_GOV_DETAIL_URL.format(grant_id=grant_id))] if grant_id else [],
        source=OpportunitySource.GRANTS_GOV,
        type=OpportunityType.GRANT,
        match_score=match,
        win_probability=win,
    )


def normalize_sam_notice(notice: dict[str, Any], company: dict[str, Any] | None) -> CombinedOpportunity:
    """
    Map a SAM.gov `opportunitiesData` notice to a CombinedOpportunity.

    fullParentPathName looks like "DEPT OF DEFENSE.DEPT OF THE ARMY.W6QK ACC";
    the first segment is the organization, the second the department.
    """
    path = [p.strip() for p in (notice.get("fullParentPathName") or "").split(".") if p.strip()]
    organization = path[0] if path else (notice.get("department") or "")
    department = path[1] if len(path) > 1 else organization
    naics_codes = [str(notice["naicsCode"])] if notice.get("naicsCode") else []
    amount = _money((notice.get("award") or {}).get("amount"))

    place = notice.get("placeOfPerformance") or {}
    city = (place.get("city") or {}).get("name")
    state = (place.get("state") or {}).get("code")
    location = ", ".join(part for part in (city, state) if part) or None

    if company:
        match = contract_match_score(organization, naics_codes, amount, company)
        win = contract_win_probability(naics_codes, company)
    else:
        match, win = NO_COMPANY_CONTRACT

    links = [OpportunityLink(href=notice["uiLink"])] if notice.get("uiLink") else []
    return CombinedOpportunity(
        id=f"sam-{notice.get('noticeId', '')}",
        title=notice.get("title") or "Contract Opportunity",
        description=f"{notice.get('type') or 'Notice'} {notice.get('solicitationNumber') or ''}".strip(),
        organization=organization,
        department=department,
        posted_date=notice.get("postedDate"),
        deadline=notice.get("responseDeadLine"),
        award_amount=amount,
        location=location,
        naics_codes=naics_codes,
        set_aside=notice.get("typeOfSetAsideDescription"),
        links=links,
        source=OpportunitySource.SAM_GOV,
        type=OpportunityType.CONTRACT,
        match_score=match,
        win_probability=win,
    )


# =============================================================================
# Service
# =============================================================================

class OpportunityService:
    """Live multi-source search plus stored opportunity CRUD."""

    # -------------------------------------------------------------------------
    # Live Search
    # -------------------------------------------------------------------------

    @staticmethod
    def search(
        company: dict[str, Any] | None,
        keyword: str | None = None,
        limit: int = 50,
        include_contracts: bool = True,
        include_grants: bool = True,
        include_sam: bool = True,
        http_client: httpx.Client | None = None,
    ) -> OpportunitySearchResponse:
        """
        Search every enabled source and rank the combined results.

        Args:
            company: Caller's company row; DEFAULT_COMPANY_PROFILE when None
            keyword: Free-text keyword passed to each source
            limit: Maximum results returned (split evenly between sources)
            include_contracts: Query USAspending.gov
            include_grants: Query Grants.gov
            include_sam: Query SAM.gov (skipped when SAM_GOV_API_KEY is unset)
            http_client: Shared httpx client (tests pass a MockTransport one)

        Returns:
            OpportunitySearchResponse sorted by ranking_score, best first
        """
        profile = company or DEFAULT_COMPANY_PROFILE
        include_sam = include_sam and settings.sam_gov_enabled

        enabled = [
            name for name, on in (
                ("contracts", include_contracts),
                ("grants", include_grants),
                ("sam", include_sam),
            ) if on
        ]
        per_source = max(1, limit // len(enabled)) if enabled else 0

        results: list[CombinedOpportunity] = []
        counts = {"contracts": 0, "grants": 0, "sam": 0}
        errors: dict[str, str] = {}

        if include_contracts:
            try:
                with USASpendingClient(http_client) as client:
                    awards = client.search_awards(keyword=keyword, limit=per_source)
                mapped = [normalize_usaspending_award(a, profile) for a in awards]
                results.extend(mapped)
                counts["contracts"] = len(mapped)
            except GovDataError as e:
                logger.error(f"USAspending.gov search failed: {e.message}")
                errors["contracts"] = e.message

        if include_grants:
            try:
                with GrantsGovClient(http_client) as client:
                    grants = client.search(keyword=keyword, rows=per_source)
                mapped = [normalize_grant(g, profile) for g in grants]
                results.extend(mapped)
                counts["grants"] = len(mapped)
            except GovDataError as e:
                logger.error(f"Grants.gov search failed: {e.message}")
                errors["grants"] = e.message

        if include_sam:
            try:
                with SamGovClient(http_client=http_client) as client:
                    notices = client.search(keyword=keyword, limit=per_source)
                mapped = [normalize_sam_notice(n, profile) for n in notices]
                results.extend(mapped)
                counts["sam"] = len(mapped)
            except GovDataError as e:
                logger.error(f"SAM.gov search failed: {e.message}")
                errors["sam"] = e.message

        # sorted() is stable, so equal scores keep source order
        results = sorted(
            results,
            key=lambda o: ranking_score(o.match_score, o.win_probability),
            reverse=True,
        )[:limit]

        logger.info(f"Opportunity search '{keyword or ''}' returned {len(results)} results")
        return OpportunitySearchResponse(
            opportunities=results,
            metadata=SearchMetadata(
                total=len(results),
                sources=counts,
                errors=errors,
                search_params={
                    "keyword": keyword or "",
                    "limit": limit,
                    "include_contracts": include_contracts,
                    "include_grants": include_grants,
                    "include_sam": include_sam,
                },
            ),
        )

    @staticmethod
    def search_awarded_contracts(
        company: dict[str, Any] | None,
        keyword: str | None = None,
        naics_code: str | None = None,
        state: str | None = None,
        page: int = 1,
        limit: int = 25,
        http_client: httpx.Client | None = None,
    ) -> OpportunitySearchResponse:
        """
        Page through past contract awards on USAspending.gov, largest first.

        Unlike `search`, the upstream order is kept and a USAspending failure
        is raised as GovDataError.
        """
        profile = company or DEFAULT_COMPANY_PROFILE
        with USASpendingClient(http_client) as client:
            awards = client.search_awards(
                keyword=keyword,
                limit=limit,
                naics_codes=[naics_code] if naics_code else None,
                state=state,
                page=page,
            )

        results = [normalize_usaspending_award(a, profile) for a in awards]
        return OpportunitySearchResponse(
            opportunities=results,
            metadata=SearchMetadata(
                total=len(results),
                sources={"contracts": len(results)},
                search_params={
                    "keyword": keyword or "",
                    "naics_code": naics_code,
                    "state": state,
                    "page": page,
                    "limit": limit,
                },
            ),
        )

    @staticmethod
    def send_search_alert(
        email: str,
        full_name: str | None,
        search: OpportunitySearchResponse,
        max_items: int = 5,
    ) -> EmailResult:
        """Email the user the top results of a saved search."""
        top = [
            {
                "title": o.title,
                "agency": o.organization,
                "deadline": o.deadline,
                "match_score": o.match_score,
                "url": o.links[0].href if o.links else None,
            }
            for o in search.opportunities[:max_items]
        ]
        return EmailService.send_opportunity_alert(email, full_name, top)

    # -------------------------------------------------------------------------
    # Stored Opportunities
    # -------------------------------------------------------------------------

    @staticmethod
    def list_opportunities(
        company: dict[str, Any] | None,
        keyword: str | None = None,
        opportunity_type: str | None = None,
        jurisdiction: str | None = None,
        agency: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        """
        Page through stored opportunities visible to the company.

        Each row gets a `relevance_score` from profile_relevance_score.
        """
        client = SupabaseClient.get_client()
        query = client.table(OPPORTUNITIES_TABLE).select("*", count="exact")

        if company:
            query = query.or_(f"company_id.is.null,company_id.eq.{company['id']}")
        else:
            query = query.is_("company_id", "null")
        if keyword:
            query = query.ilike("title", f"%{keyword}%")
        if opportunity_type:
            query = query.eq("type", opportunity_type)
        if jurisdiction:
            query = query.eq("jurisdiction", jurisdiction)
        if agency:
            query = query.ilike("agency", f"%{agency}%")

        offset = (page - 1) * limit
        response = (
            query.order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )

        rows = response.data or []
        total = response.count if response.count is not None else len(rows)

        profile = company or {}
        industries = [profile["industry"]] if profile.get("industry") else []
        for row in rows:
            row["relevance_score"] = profile_relevance_score(
                row.get("title"),
                row.get("agency"),
                industries=industries,
                keywords=[keyword] if keyword else [],
                company_type=profile.get("company_type"),
            )

        return {
            "opportunities": rows,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if limit else 0,
            },
        }

    @staticmethod
    def get_opportunity(opportunity_id: str, company: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Raises:
            OpportunityNotFoundError: Missing, or private to another company
        """
        opportunity = SupabaseClient.fetch_opportunity(opportunity_id)
        if not opportunity:
            raise OpportunityNotFoundError(opportunity_id)

        owner = opportunity.get("company_id")
        if owner and (not company or str(owner) != str(company.get("id"))):
            raise OpportunityNotFoundError(opportunity_id)
        return opportunity

    @staticmethod
    def create_opportunity(data: OpportunityCreate, created_by: str | None = None) -> dict[str, Any]:
        row = data.model_dump(exclude_none=True, mode="json")
        row.setdefault("status", "active")
        if created_by:
            row["created_by"] = created_by
        opportunity = SupabaseClient.insert(OPPORTUNITIES_TABLE, row)
        logger.info(f"Created opportunity {opportunity['id']}: {data.title}")
        return opportunity
