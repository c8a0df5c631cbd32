# =============================================================================
# tests/test_gov_data.py - Government API Client Tests
# =============================================================================
# Clients run against httpx.MockTransport; no network access.
# =============================================================================

import json
from datetime import date

import httpx
import pytest

from lib.gov_data import (
    CensusClient,
    EducationDataClient,
    GovDataError,
    GrantsGovClient,
    NPPESClient,
    SamGovClient,
    TreasuryClient,
    USASpendingClient,
)


def mock_http(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestUSASpending:

    def test_request_body_and_results(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"results": [{"Award ID": "W91-1"}]})

        client = USASpendingClient(http_client=mock_http(handler))
        results = client.search_awards("cloud", limit=5, naics_codes=["541512"])

        assert results == [{"Award ID": "W91-1"}]
        assert seen["method"] == "POST"
        body = seen["body"]
        assert body["limit"] == 5
        assert body["sort"] == "Award Amount"
        assert body["order"] == "desc"
        assert body["filters"]["keywords"] == ["cloud"]
        assert body["filters"]["naics_codes"] == ["541512"]
        assert body["filters"]["award_type_codes"] == ["A", "B", "C", "D"]

    def test_http_error_raises(self):
        client = USASpendingClient(
            http_client=mock_http(lambda request: httpx.Response(503, text="unavailable"))
        )

        with pytest.raises(GovDataError) as exc_info:
            client.search_awards("cloud")

        assert exc_info.value.status_code == 503
        assert exc_info.value.code == "GOV_DATA_ERROR"

    def test_invalid_json_raises(self):
        client = USASpendingClient(
            http_client=mock_http(lambda request: httpx.Response(200, text="<html>"))
        )

        with pytest.raises(GovDataError):
            client.search_awards()

    @pytest.mark.parametrize("payload", [[{"Award ID": "W91-1"}], None, "ok"])
    def test_non_object_payload_raises(self, payload):
        client = USASpendingClient(
            http_client=mock_http(lambda request: httpx.Response(200, json=payload))
        )

        with pytest.raises(GovDataError, match="expected dict"):
            client.search_awards()

    def test_state_and_page(self):
        seen = {}

        def handler(request):
            seen.update(json.loads(request.content))
            return httpx.Response(200, json={"results": []})

        USASpendingClient(http_client=mock_http(handler)).search_awards(state="VA", page=3)

        assert seen["page"] == 3
        assert seen["filters"]["place_of_performance_locations"] == [{"country": "USA", "state": "VA"}]

    def test_spending_by_agency(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"results": [{"name": "Department of Defense", "amount": 4.1e11}]})

        rows = USASpendingClient(http_client=mock_http(handler)).spending_by_agency(limit=5)

        assert rows == [{"name": "Department of Defense", "amount": 4.1e11}]
        assert seen["path"] == "/api/v2/search/spending_by_category/awarding_agency/"
        assert seen["body"]["limit"] == 5
        assert seen["body"]["filters"]["award_type_codes"] == ["A", "B", "C", "D"]


class TestGrantsGov:

    def test_hits_returned(self):
        def handler(request):
            body = json.loads(request.content)
            assert body["oppStatuses"] == "forecasted|posted"
            return httpx.Response(
                200, json={"errorcode": 0, "data": {"oppHits": [{"id": "G-1"}]}}
            )

        client = GrantsGovClient(http_client=mock_http(handler))

        assert client.search("health", rows=3) == [{"id": "G-1"}]

    def test_api_error_code(self):
        client = GrantsGovClient(
            http_client=mock_http(
                lambda request: httpx.Response(200, json={"errorcode": 7, "msg": "bad query"})
            )
        )

        with pytest.raises(GovDataError, match="bad query"):
            client.search("x")


class TestSamGov:

    def test_requires_api_key(self):
        client = SamGovClient(api_key="", http_client=mock_http(lambda r: httpx.Response(200)))

        with pytest.raises(GovDataError, match="not configured"):
            client.search("cloud")

    def test_query_params(self):
        seen = {}

        def handler(request):
            seen.update(dict(request.url.params))
            return httpx.Response(200, json={"opportunitiesData": [{"noticeId": "N-1"}]})

        client = SamGovClient(api_key="sam-key", http_client=mock_http(handler))
        notices = client.search("cloud", limit=10, posted_to=date(2025, 3, 31))

        assert notices == [{"noticeId": "N-1"}]
        assert seen["api_key"] == "sam-key"
        assert seen["title"] == "cloud"
        assert seen["postedTo"] == "03/31/2025"
        assert seen["postedFrom"] == "12/31/2024"

    def test_entity_search_params(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen.update(dict(request.url.params))
            return httpx.Response(200, json={"totalRecords": 57, "entityData": [{"entityRegistration": {}}]})

        client = SamGovClient(api_key="sam-key", http_client=mock_http(handler))
        entities, total = client.search_entities(["236220", "237310"], name="Acme", state="VA", limit=50)

        assert len(entities) == 1
        assert total == 57
        assert seen["path"] == "/entity-information/v3/entities"
        assert seen["primaryNaics"] == "236220,237310"
        assert seen["legalBusinessName"] == "Acme"
        assert seen["physicalAddressProvinceOrStateCode"] == "VA"
        assert seen["size"] == "10"

    def test_entity_search_requires_api_key(self):
        client = SamGovClient(api_key="", http_client=mock_http(lambda r: httpx.Response(200)))

        with pytest.raises(GovDataError, match="not configured"):
            client.search_entities(["236220"])


class TestSectorClients:

    def test_nppes_returns_total(self):
        client = NPPESClient(
            http_client=mock_http(
                lambda r: httpx.Response(200, json={"result_count": 42, "results": [{"number": 1}]})
            )
        )

        results, total = client.search_providers("CA", limit=1)

        assert results == [{"number": 1}]
        assert total == 42

    def test_education_filters_by_name(self):
        payload = {
            "results": [
                {"institution_name": "Sacramento State"},
                {"institution_name": "UC Davis"},
                {"institution_name": "Sacramento City College"},
            ]
        }
        client = EducationDataClient(http_client=mock_http(lambda r: httpx.Response(200, json=payload)))

        results, total = client.search_institutions("CA", query="sacramento", limit=1)

        assert total == 2
        assert results == [{"institution_name": "Sacramento State"}]


class TestCensus:

    def test_rows_keyed_by_header(self):
        seen = {}

        def handler(request):
            seen["naics"] = request.url.params.get_list("NAICS2017")
            seen["for"] = request.url.params["for"]
            return httpx.Response(200, json=[
                ["NAME", "NAICS2017", "NAICS2017_LABEL", "ESTAB", "EMP", "PAYANN", "RCPTOT", "state"],
                ["California", "236", "Construction of buildings", "41000", "250000", "19000000", "150000000", "06"],
            ])

        rows = CensusClient(http_client=mock_http(handler)).economic_census(["236", "237"], state="CA")

        assert rows == [{
            "NAME": "California",
            "NAICS2017": "236",
            "NAICS2017_LABEL": "Construction of buildings",
            "ESTAB": "41000",
            "EMP": "250000",
            "PAYANN": "19000000",
            "RCPTOT": "150000000",
            "state": "06",
        }]
        assert seen["naics"] == ["236", "237"]
        assert seen["for"] == "state:06"

    def test_national_by_default(self):
        seen = {}

        def handler(request):
            seen["for"] = request.url.params["for"]
            return httpx.Response(200, json=[["NAICS2017", "EMP", "us"], ["31-33", "11000000", "1"]])

        rows = CensusClient(http_client=mock_http(handler)).manufactures_survey(["31-33"])

        assert rows == [{"NAICS2017": "31-33", "EMP": "11000000", "us": "1"}]
        assert seen["for"] == "us:*"

    def test_no_content_is_empty(self):
        client = CensusClient(http_client=mock_http(lambda r: httpx.Response(204)))

        assert client.economic_census(["236"], state="WY") == []

    def test_object_payload_raises(self):
        client = CensusClient(http_client=mock_http(lambda r: httpx.Response(200, json={"error": "x"})))

        with pytest.raises(GovDataError, match="expected list"):
            client.economic_census(["236"])

    def test_unknown_state(self):
        client = CensusClient(http_client=mock_http(lambda r: httpx.Response(200, json=[])))

        with pytest.raises(GovDataError, match="Unknown state"):
            client.economic_census(["236"], state="ZZ")


class TestTreasury:

    def test_dataset_query(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen.update(dict(request.url.params))
            return httpx.Response(200, json={"data": [{"record_date": "2025-03-31"}], "meta": {}})

        client = TreasuryClient(http_client=mock_http(handler))
        rows = client.debt_to_the_penny(since=date(2024, 4, 1))

        assert rows == [{"record_date": "2025-03-31"}]
        assert seen["path"].endswith("/accounting/od/debt_to_penny")
        assert seen["filter"] == "record_date:gte:2024-04-01"
        assert seen["sort"] == "-record_date"
        assert seen["page[size]"] == "3"
