# =============================================================================
# core/services/sector_service.py - Sector Registries
# =============================================================================
# Prospect lists and market statistics for the sector pages:
# - healthcare providers (NPPES) and colleges (IPEDS)
# - construction and manufacturing industry figures (Census Bureau) and
#   registered firms (SAM.gov entity registrations)
# - federal agency contract spending (USAspending) and Treasury fiscal data
# Records are flattened to the few fields the UI shows.
# =============================================================================

import logging
from datetime import date, timedelta
from enum import Enum
from typing import Any

import httpx

from lib.gov_data import (
    CensusClient,
    EducationDataClient,
    NPPESClient,
    SamGovClient,
    TreasuryClient,
    USASpendingClient,
)
from lib.utils import parse_number

logger = logging.getLogger(__name__)

# Economic Census subsectors: buildings, heavy and civil, specialty trades
CONSTRUCTION_CENSUS_NAICS = ["236", "237", "238"]

CONSTRUCTION_ENTITY_NAICS = [
    "236118", "236220", "237110", "237120", "237130", "237310", "237990",
    "238110", "238120", "238130", "238140", "238150", "238160", "238170",
    "238190", "238210", "238220", "238290", "238310", "238320", "238330",
    "238340", "238350", "238390", "238910", "238990",
]


class ManufacturingIndustry(str, Enum):
    AEROSPACE = "aerospace"
    ELECTRONICS = "electronics"
    AUTOMOTIVE = "automotive"
    CHEMICALS = "chemicals"
    MACHINERY = "machinery"
    FOOD = "food"


MANUFACTURING_CENSUS_NAICS = {
    ManufacturingIndustry.AEROSPACE: ["3364"],
    ManufacturingIndustry.ELECTRONICS: ["334"],
    ManufacturingIndustry.AUTOMOTIVE: ["3361", "3362", "3363"],
    ManufacturingIndustry.CHEMICALS: ["325"],
    ManufacturingIndustry.MACHINERY: ["333"],
    ManufacturingIndustry.FOOD: ["311", "312"],
}
ALL_MANUFACTURING_NAICS = ["31-33"]

MANUFACTURING_ENTITY_NAICS = {
    ManufacturingIndustry.AEROSPACE: ["336411", "336412", "336413", "336414", "336415", "336419"],
    ManufacturingIndustry.ELECTRONICS: [
        "334111", "334112", "334118", "334210", "334220", "334290",
        "334310", "334413", "334414", "334417", "334418", "334419",
    ],
    ManufacturingIndustry.AUTOMOTIVE: [
        "336111", "336112", "336120", "336211", "336212", "336213", "336214",
        "336310", "336320", "336330", "336340", "336350", "336360", "336370", "336390",
    ],
}
GENERAL_MANUFACTURING_NAICS = [
    "311", "312", "313", "314", "315", "316", "321", "322", "323", "324", "325",
    "326", "327", "331", "332", "333", "334", "335", "336", "337", "339",
]

# Longest prefix wins
MANUFACTURING_TYPES = [
    ("3364", "Aerospace & Defense"),
    ("336", "Transportation Equipment"),
    ("334", "Computer & Electronic Products"),
    ("333", "Machinery Manufacturing"),
    ("332", "Fabricated Metal Products"),
    ("325", "Chemical Manufacturing"),
    ("311", "Food & Beverage Manufacturing"),
    ("312", "Food & Beverage Manufacturing"),
]

TREASURY_LOOKBACK_DAYS = 365


def _count(value: Any) -> int:
    """Census figures arrive as strings; suppressed cells become 0."""
    return int(parse_number(value))


def manufacturing_type(naics_code: str | None) -> str:
    code = naics_code or ""
    for prefix, label in MANUFACTURING_TYPES:
        if code.startswith(prefix):
            return label
    return "General Manufacturing"


def map_provider(provider: dict[str, Any]) -> dict[str, Any]:
    basic = provider.get("basic") or {}
    addresses = provider.get("addresses") or [{}]
    organization = basic.get("organization_name")
    name = organization or " ".join(
        part for part in (basic.get("first_name"), basic.get("last_name")) if part
    )
    return {
        "npi": provider.get("number"),
        "name": name,
        "type": "Organization" if organization else "Individual",
        "city": addresses[0].get("city"),
        "state": addresses[0].get("state"),
        "specialties": [t.get("desc") for t in provider.get("taxonomies") or [] if t.get("desc")],
    }


def map_institution(institution: dict[str, Any]) -> dict[str, Any]:
    return {
        "unitid": institution.get("unitid"),
        "name": institution.get("institution_name"),
        "city": institution.get("institution_city"),
        "state": institution.get("institution_state"),
        "type": institution.get("sector_label"),
        "website": institution.get("institution_website"),
        "enrollment": institution.get("enrollment_total"),
    }


def map_construction_row(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": row.get("NAME"),
        "naics_code": row.get("NAICS2017"),
        "naics_description": row.get("NAICS2017_LABEL"),
        "establishments": _count(row.get("ESTAB")),
        "employees": _count(row.get("EMP")),
        "annual_payroll": _count(row.get("PAYANN")),
        "total_receipts": _count(row.get("RCPTOT")),
    }


def map_manufacturing_row(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "naics_code": row.get("NAICS2017"),
        "naics_label": row.get("NAICS2017_LABEL"),
        "employees": _count(row.get("EMP")),
        "annual_payroll": _count(row.get("PAYANN")),
        "value_added": _count(row.get("VAS")),
        "value_of_shipments": _count(row.get("VS")),
    }


def map_entity(entity: dict[str, Any]) -> dict[str, Any]:
    """Flatten a SAM.gov entity registration."""
    registration = entity.get("entityRegistration") or {}
    core = entity.get("coreData") or {}
    address = core.get("physicalAddress") or {}
    information = core.get("entityInformation") or {}
    naics = [
        {"code": n.get("naicsCode"), "description": n.get("naicsDescription")}
        for n in core.get("naicsInformation") or []
    ]
    street = " ".join(
        part for part in (address.get("addressLine1"), address.get("addressLine2")) if part
    )
    return {
        "uei": registration.get("ueiSAM"),
        "name": registration.get("legalBusinessName") or "Unknown",
        "cage_code": registration.get("cageCode"),
        "registration_status": registration.get("registrationStatus"),
        "registration_expiration": registration.get("registrationExpirationDate"),
        "entity_structure": registration.get("entityStructureDesc"),
        "business_start_date": information.get("entityStartDate"),
        "website": information.get("entityURL"),
        "location": {
            "address": street,
            "city": address.get("city"),
            "state": address.get("stateOrProvinceCode"),
            "zip": address.get("zipCode"),
        },
        "naics_codes": naics,
    }


class SectorService:

    @staticmethod
    def healthcare_providers(
        state: str,
        limit: int = 20,
        http_client: httpx.Client | None = None,
    ) -> dict[str, Any]:
        with NPPESClient(http_client) as client:
            results, total = client.search_providers(state=state, limit=limit)

        logger.info(f"NPPES returned {len(results)} providers for {state}")
        return {
            "providers": [map_provider(p) for p in results],
            "metadata": {
                "total": total,
                "state": state,
                "source": "NPPES Healthcare Provider Registry",
            },
        }

    @staticmethod
    def education_institutions(
        state: str,
        query: str | None = None,
        limit: int = 20,
        http_client: httpx.Client | None = None,
    ) -> dict[str, Any]:
        with EducationDataClient(http_client) as client:
            results, total = client.search_institutions(state=state, query=query, limit=limit)

        return {
            "institutions": [map_institution(i) for i in results],
            "metadata": {
                "total": total,
                "state": state,
                "query": query or "",
                "data_source": "IPEDS (Integrated Postsecondary Education Data System)",
            },
        }

    # -------------------------------------------------------------------------
    # Construction & Manufacturing
    # -------------------------------------------------------------------------

    @staticmethod
    def construction_census(state: str | None = None, http_client: httpx.Client | None = None) -> dict[str, Any]:
        """Economic Census figures for the three construction subsectors."""
        with CensusClient(http_client) as client:
            rows = client.economic_census(CONSTRUCTION_CENSUS_NAICS, state=state)

        sectors = [map_construction_row(r) for r in rows]
        return {
            "census_data": sectors,
            "summary": {
                "total_establishments": sum(s["establishments"] for s in sectors),
                "total_employees": sum(s["employees"] for s in sectors),
                "total_receipts": sum(s["total_receipts"] for s in sectors),
            },
            "metadata": {
                "data_source": "US Census Bureau Economic Census",
                "year": 2017,
                "geographic_scope": state or "United States",
            },
        }

    @staticmethod
    def construction_contractors(
        query: str | None = None,
        state: str | None = None,
        limit: int = 10,
        http_client: httpx.Client | None = None,
    ) -> dict[str, Any]:
        with SamGovClient(http_client=http_client) as client:
            entities, total = client.search_entities(
                CONSTRUCTION_ENTITY_NAICS, name=query, state=state, limit=limit
            )

        return {
            "contractors": [map_entity(e) for e in entities],
            "metadata": {
                "total": total,
                "query": query or "",
                "state": state,
                "data_source": "SAM.gov Entity Registrations",
            },
        }

    @staticmethod
    def manufacturing_census(
        state: str | None = None,
        industry: ManufacturingIndustry | None = None,
        http_client: httpx.Client | None = None,
    ) -> dict[str, Any]:
        """Annual Survey of Manufactures figures, all manufacturing or one industry."""
        naics = MANUFACTURING_CENSUS_NAICS[industry] if industry else ALL_MANUFACTURING_NAICS
        with CensusClient(http_client) as client:
            rows = client.manufactures_survey(naics, state=state)

        sectors = [map_manufacturing_row(r) for r in rows]
        return {
            "census_data": sectors,
            "summary": {
                "total_employees": sum(s["employees"] for s in sectors),
                "total_payroll": sum(s["annual_payroll"] for s in sectors),
                "total_value_added": sum(s["value_added"] for s in sectors),
            },
            "metadata": {
                "data_source": "US Census Bureau Annual Survey of Manufactures",
                "year": 2020,
                "industry": industry.value if industry else "all",
                "geographic_scope": state or "United States",
            },
        }

    @staticmethod
    def manufacturers(
        query: str | None = None,
        state: str | None = None,
        industry: ManufacturingIndustry | None = None,
        limit: int = 10,
        http_client: httpx.Client | None = None,
    ) -> dict[str, Any]:
        naics = MANUFACTURING_ENTITY_NAICS.get(industry, GENERAL_MANUFACTURING_NAICS)
        with SamGovClient(http_client=http_client) as client:
            entities, total = client.search_entities(naics, name=query, state=state, limit=limit)

        manufacturers = []
        for entity in entities:
            record = map_entity(entity)
            primary = record["naics_codes"][0]["code"] if record["naics_codes"] else None
            record["manufacturing_type"] = manufacturing_type(primary)
            manufacturers.append(record)

        return {
            "manufacturers": manufacturers,
            "metadata": {
                "total": total,
                "query": query or "",
                "state": state,
                "industry": industry.value if industry else "all",
                "data_source": "SAM.gov Entity Registrations",
            },
        }

    # -------------------------------------------------------------------------
    # Government
    # -------------------------------------------------------------------------

    @staticmethod
    def agency_spending(limit: int = 10, http_client: httpx.Client | None = None) -> dict[str, Any]:
        """Top awarding agencies by contract obligations over the last year."""
        with USASpendingClient(http_client) as client:
            rows = client.spending_by_agency(limit=limit)

        agencies = [
            {"name": r.get("name"), "code": r.get("code"), "amount": parse_number(r.get("amount"))}
            for r in rows
        ]
        return {
            "agencies": agencies,
            "summary": {"total_obligations": sum(a["amount"] for a in agencies)},
            "metadata": {"data_source": "USAspending.gov", "period_days": 365},
        }

    @staticmethod
    def treasury_snapshot(http_client: httpx.Client | None = None) -> dict[str, Any]:
        """Latest operating cash, public debt and receipts from Treasury Fiscal Data."""
        since = date.today() - timedelta(days=TREASURY_LOOKBACK_DAYS)
        with TreasuryClient(http_client) as client:
            snapshot = {
                "operating_cash": client.operating_cash(since),
                "debt": client.debt_to_the_penny(since),
                "receipts": client.receipts(since),
            }

        logger.info(f"Treasury snapshot since {since.isoformat()}")
        return {
            **snapshot,
            "metadata": {"data_source": "Treasury Fiscal Data API", "since": since.isoformat()},
        }
