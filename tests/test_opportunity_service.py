# =============================================================================
# tests/test_opportunity_service.py - Opportunity Search & Storage Tests
# =============================================================================
# Live search runs against an httpx.MockTransport that answers for every
# government API; stored opportunities use FakeSupabase.
# =============================================================================

import json

import httpx
import pytest

from app.exceptions import OpportunityNotFoundError
from core.models.opportunity import OpportunitySource, OpportunityType
from core.services.opportunity_service import (
    OpportunityService,
    normalize_grant,
    normalize_sam_notice,
    normalize_usaspending_award,
)
from lib.gov_data import GovDataError

AWARD = {
    "Award ID": "W91-1",
    "Recipient Name": "Beta Corp",
    "Awarding Agency": "Department of Defense",
    "Awarding Sub Agency": "Department of the Army",
    "Award Amount": 400000,
    "naics_code": "541512",
    "naics_description": "Computer Systems Design Services",
    "Description": "Cloud services",
    "Start Date": "2024-01-01",
    "End Date": "2025-01-01",
}

GRANT = {
    "id": "G-1",
    "title": "Community Health Grant",
    "agencyName": "Department of Health",
    "agencyCode": "HHS",
    "docType": "synopsis",
    "openDate": "01/15/2025",
    "closeDate": "04/15/2025",
    "alnist": ["93.224"],
}


def gov_api(awards=None, grants=None, grants_status=200, seen=None):
    """MockTransport client answering USAspending and Grants.gov."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else {}
        if seen is not None:
            seen[request.url.host] = body
        if request.url.host == "api.usaspending.gov":
            return httpx.Response(200, json={"results": awards or []})
        if request.url.host == "api.grants.gov":
            if grants_status != 200:
                return httpx.Response(grants_status, text="error")
            return httpx.Response(200, json={"errorcode": 0, "data": {"oppHits": grants or []}})
        return httpx.Response(404)

    return httpx.Client(transport=httpx.MockTransport(handler))


# =============================================================================
# Normalizers
# =============================================================================

class TestNormalizers:

    def test_usaspending_award(self, company):
        opportunity = normalize_usaspending_award(AWARD, company)

        assert opportunity.id == "usa-spending-W91-1"
        assert opportunity.title == "Cloud services"
        assert opportunity.department == "Department of the Army"
        assert opportunity.naics_codes == ["541512"]
        assert opportunity.source == OpportunitySource.USASPENDING
        assert opportunity.links[0].href == "https://usaspending.gov/award/W91-1"
        assert opportunity.match_score == 100
        assert opportunity.win_probability == pytest.approx(0.65)

    def test_usaspending_without_company(self):
        opportunity = normalize_usaspending_award(AWARD, None)

        assert opportunity.match_score == 75
        assert opportunity.win_probability == pytest.approx(0.4)

    def test_grant(self, company):
        opportunity = normalize_grant(GRANT, company)

        assert opportunity.type == OpportunityType.GRANT
        assert opportunity.set_aside == "93.224"
        assert opportunity.match_score == 55
        assert opportunity.win_probability == pytest.approx(0.45)

    def test_sam_notice_path_and_place(self, company):
        notice = {
            "noticeId": "abc",
            "title": "Network Upgrade",
            "fullParentPathName": "DEPT OF DEFENSE.DEPT OF THE NAVY.NAVSUP",
            "naicsCode": "541512",
            "placeOfPerformance": {"city": {"name": "Norfolk"}, "state": {"code": "VA"}},
            "uiLink": "https://sam.gov/opp/abc/view",
            "type": "Solicitation",
            "solicitationNumber": "N001",
        }

        opportunity = normalize_sam_notice(notice, company)

        assert opportunity.id == "sam-abc"
        assert opportunity.organization == "DEPT OF DEFENSE"
        assert opportunity.department == "DEPT OF THE NAVY"
        assert opportunity.location == "Norfolk, VA"
        assert opportunity.description == "Solicitation N001"
        assert opportunity.source == OpportunitySource.SAM_GOV


# =============================================================================
# Live Search
# =============================================================================

class TestSearch:

    def test_combined_results_sorted_by_ranking(self, company):
        result = OpportunityService.search(
            company, keyword="cloud", limit=10, http_client=gov_api([AWARD], [GRANT])
        )

        assert [o.id for o in result.opportunities] == ["usa-spending-W91-1", "G-1"]
        assert result.metadata.total == 2
        assert result.metadata.sources == {"contracts": 1, "grants": 1, "sam": 0}
        assert result.metadata.errors == {}

    def test_limit_split_between_enabled_sources(self, company):
        seen = {}

        OpportunityService.search(company, limit=10, http_client=gov_api(seen=seen))

        assert seen["api.usaspending.gov"]["limit"] == 5
        assert seen["api.grants.gov"]["rows"] == 5

    def test_failing_source_is_reported_not_raised(self, company):
        result = OpportunityService.search(
            company, http_client=gov_api([AWARD], grants_status=500)
        )

        assert [o.id for o in result.opportunities] == ["usa-spending-W91-1"]
        assert "grants" in result.metadata.errors
        assert result.metadata.sources["grants"] == 0

    def test_malformed_payload_is_reported_not_raised(self, company):
        def handler(request):
            if request.url.host == "api.usaspending.gov":
                return httpx.Response(200, json=[AWARD])
            return httpx.Response(200, json={"errorcode": 0, "data": {"oppHits": [GRANT]}})

        result = OpportunityService.search(
            company, http_client=httpx.Client(transport=httpx.MockTransport(handler))
        )

        assert [o.id for o in result.opportunities] == ["G-1"]
        assert "contracts" in result.metadata.errors

    def test_sam_skipped_without_api_key(self, company):
        result = OpportunityService.search(company, http_client=gov_api())

        assert result.metadata.search_params["include_sam"] is False

    def test_result_limit(self, company):
        awards = [dict(AWARD, **{"Award ID": f"A-{i}"}) for i in range(4)]

        result = OpportunityService.search(
            company, limit=3, include_grants=False, http_client=gov_api(awards)
        )

        assert len(result.opportunities) == 3



class TestAwardedContracts:

    def test_filters_and_upstream_order(self, company):
        seen = {}
        awards = [dict(AWARD, **{"Award ID": "A-1"}), dict(AWARD, **{"Award ID": "A-2", "naics_code": "236220"})]

        result = OpportunityService.search_awarded_contracts(
            company, keyword="cloud", naics_code="541512", state="VA", page=2, limit=10,
            http_client=gov_api(awards, seen=seen),
        )

        assert [o.id for o in result.opportunities] == ["usa-spending-A-1", "usa-spending-A-2"]
        body = seen["api.usaspending.gov"]
        assert body["page"] == 2
        assert body["limit"] == 10
        assert body["filters"]["naics_codes"] == ["541512"]
        assert body["filters"]["place_of_performance_locations"][0]["state"] == "VA"
        assert result.metadata.search_params["page"] == 2

    def test_upstream_failure_raises(self, company):
        failing = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(503)))

        with pytest.raises(GovDataError):
            OpportunityService.search_awarded_contracts(company, http_client=failing)


# =============================================================================
# Stored Opportunities
# =============================================================================

class TestStoredOpportunities:

    def test_list_scopes_to_company_and_scores(self, fake_supabase, company):
        fake_supabase.tables["opportunities"] = [
            {"id": "o1", "title": "Technology refresh", "agency": "GSA"},
            {"id": "o2", "title": "Road paving", "agency": "DOT"},
        ]

        result = OpportunityService.list_opportunities(company, page=1, limit=1)

        [query] = fake_supabase.queries_for("opportunities")
        assert query.called("or_")[0][0][0] == "company_id.is.null,company_id.eq.company-123"
        assert query.called("range")[0][0] == (0, 0)
        scores = [row["relevance_score"] for row in result["opportunities"]]
        assert scores == [70, 50]
        assert result["pagination"]["total"] == 2
        assert result["pagination"]["total_pages"] == 2

    def test_list_without_company_only_public(self, fake_supabase):
        OpportunityService.list_opportunities(None)

        [query] = fake_supabase.queries_for("opportunities")
        assert query.called("is_")[0][0] == ("company_id", "null")

    def test_get_public_opportunity(self, fake_supabase, opportunity):
        fake_supabase.tables["opportunities"] = [opportunity]

        assert OpportunityService.get_opportunity("opp-1")["title"] == opportunity["title"]

    def test_private_opportunity_hidden_from_other_company(self, fake_supabase, opportunity, company):
        fake_supabase.tables["opportunities"] = [dict(opportunity, company_id="someone-else")]

        with pytest.raises(OpportunityNotFoundError):
            OpportunityService.get_opportunity("opp-1", company)

    def test_missing_opportunity(self, fake_supabase):
        with pytest.raises(OpportunityNotFoundError):
            OpportunityService.get_opportunity("nope")
