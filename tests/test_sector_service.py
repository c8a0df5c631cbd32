# =============================================================================
# tests/test_sector_service.py - Sector Page Data Tests
# =============================================================================
# Each service call runs against an httpx.MockTransport standing in for the
# Census, SAM.gov, USAspending or Treasury API.
# =============================================================================

import httpx
import pytest

from core.services.sector_service import (
    ManufacturingIndustry,
    SectorService,
    manufacturing_type,
    map_entity,
)

ENTITY = {
    "entityRegistration": {
        "ueiSAM": "ABC123DEF456",
        "legalBusinessName": "Ridgeline Builders LLC",
        "cageCode": "7XY12",
        "registrationStatus": "Active",
    },
    "coreData": {
        "physicalAddress": {
            "addressLine1": "100 Main St",
            "addressLine2": "Suite 4",
            "city": "Richmond",
            "stateOrProvinceCode": "VA",
            "zipCode": "23219",
        },
        "entityInformation": {"entityStartDate": "2009-05-01", "entityURL": "ridgeline.test"},
        "naicsInformation": [{"naicsCode": "336413", "naicsDescription": "Aircraft parts"}],
    },
}


def mock_http(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_map_entity():
    record = map_entity(ENTITY)

    assert record["uei"] == "ABC123DEF456"
    assert record["name"] == "Ridgeline Builders LLC"
    assert record["location"] == {
        "address": "100 Main St Suite 4",
        "city": "Richmond",
        "state": "VA",
        "zip": "23219",
    }
    assert record["naics_codes"] == [{"code": "336413", "description": "Aircraft parts"}]


@pytest.mark.parametrize("code, label", [
    ("336413", "Aerospace & Defense"),
    ("336111", "Transportation Equipment"),
    ("334413", "Computer & Electronic Products"),
    ("312111", "Food & Beverage Manufacturing"),
    ("339112", "General Manufacturing"),
    (None, "General Manufacturing"),
])
def test_manufacturing_type(code, label):
    assert manufacturing_type(code) == label


class TestCensusFigures:

    def test_construction_totals(self):
        payload = [
            ["NAME", "NAICS2017", "NAICS2017_LABEL", "ESTAB", "EMP", "PAYANN", "RCPTOT", "us"],
            ["United States", "236", "Buildings", "200000", "1500000", "90000000", "500000000", "1"],
            ["United States", "238", "Specialty trades", "450000", "4000000", "(D)", "700000000", "1"],
        ]

        result = SectorService.construction_census(
            http_client=mock_http(lambda r: httpx.Response(200, json=payload))
        )

        assert result["census_data"][1]["annual_payroll"] == 0
        assert result["summary"] == {
            "total_establishments": 650000,
            "total_employees": 5500000,
            "total_receipts": 1200000000,
        }
        assert result["metadata"]["geographic_scope"] == "United States"

    def test_manufacturing_industry_codes(self):
        seen = {}

        def handler(request):
            seen["naics"] = request.url.params.get_list("NAICS2017")
            return httpx.Response(200, json=[
                ["NAICS2017", "NAICS2017_LABEL", "EMP", "PAYANN", "VAS", "VS", "state"],
                ["3361", "Motor vehicles", "12000", "900000", "5000000", "20000000", "26"],
            ])

        result = SectorService.manufacturing_census(
            "MI", ManufacturingIndustry.AUTOMOTIVE, http_client=mock_http(handler)
        )

        assert seen["naics"] == ["3361", "3362", "3363"]
        assert result["summary"]["total_value_added"] == 5000000
        assert result["metadata"]["industry"] == "automotive"


class TestEntitySearch:

    def test_construction_contractors(self, monkeypatch):
        from app.config import settings

        monkeypatch.setattr(settings, "SAM_GOV_API_KEY", "sam-key")
        seen = {}

        def handler(request):
            seen.update(dict(request.url.params))
            return httpx.Response(200, json={"totalRecords": 31, "entityData": [ENTITY]})

        result = SectorService.construction_contractors("Ridgeline", "VA", http_client=mock_http(handler))

        assert result["contractors"][0]["cage_code"] == "7XY12"
        assert result["metadata"]["total"] == 31
        assert seen["primaryNaics"].startswith("236118,")

    def test_manufacturers_are_classified(self, monkeypatch):
        from app.config import settings

        monkeypatch.setattr(settings, "SAM_GOV_API_KEY", "sam-key")
        seen = {}

        def handler(request):
            seen.update(dict(request.url.params))
            return httpx.Response(200, json={"totalRecords": 1, "entityData": [ENTITY]})

        result = SectorService.manufacturers(
            industry=ManufacturingIndustry.AEROSPACE, http_client=mock_http(handler)
        )

        assert result["manufacturers"][0]["manufacturing_type"] == "Aerospace & Defense"
        assert seen["primaryNaics"].split(",")[0] == "336411"


class TestGovernment:

    def test_agency_spending_total(self):
        payload = {"results": [
            {"name": "Department of Defense", "code": "097", "amount": 400000000000.0},
            {"name": "General Services Administration", "code": "047", "amount": 20000000000.0},
        ]}

        result = SectorService.agency_spending(
            http_client=mock_http(lambda r: httpx.Response(200, json=payload))
        )

        assert [a["code"] for a in result["agencies"]] == ["097", "047"]
        assert result["summary"]["total_obligations"] == 420000000000.0

    def test_treasury_snapshot(self):
        paths = []

        def handler(request):
            paths.append(request.url.path.rsplit("/accounting/", 1)[1])
            return httpx.Response(200, json={"data": [{"record_date": "2025-03-31"}]})

        result = SectorService.treasury_snapshot(http_client=mock_http(handler))

        assert paths == ["dts/operating_cash_balance", "od/debt_to_penny", "mts/mts_table_4"]
        assert result["debt"] == [{"record_date": "2025-03-31"}]
        assert "since" in result["metadata"]
