# =============================================================================
# lib/gov_data.py - Public Government Data API Clients
# =============================================================================
# Thin httpx clients for the open-data APIs the platform aggregates:
# - USAspending.gov   federal contract awards
# - Grants.gov        federal grant opportunities
# - SAM.gov           contract opportunity notices (needs an API key)
# - NPPES             healthcare provider registry
# - Urban Institute   IPEDS higher-education institutions
# - Census Bureau     Economic Census and Annual Survey of Manufactures
# - Treasury          Fiscal Data (cash balances, debt, receipts)
#
# Clients return the provider's raw records. Mapping into the platform's
# opportunity shape lives in core/services/opportunity_service.py.
#
# Every failure (transport error, non-2xx, API-level error flag, bad JSON,
# a payload of the wrong shape) becomes a GovDataError. Nothing is retried.
#
# Usage:
#   with USASpendingClient() as usa:
#       awards = usa.search_awards(keyword="cybersecurity", limit=25)
# =============================================================================

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

import httpx

from app.config import settings
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)


USASPENDING_AWARDS_URL = "https://api.usaspending.gov/api/v2/search/spending_by_award/"
USASPENDING_AGENCY_SPENDING_URL = (
    "https://api.usaspending.gov/api/v2/search/spending_by_category/awarding_agency/"
)
GRANTS_GOV_SEARCH_URL = "https://api.grants.gov/v1/api/search2"
SAM_GOV_SEARCH_URL = "https://api.sam.gov/opportunities/v2/search"
SAM_GOV_ENTITY_URL = "https://api.sam.gov/entity-information/v3/entities"
NPPES_URL = "https://npiregistry.cms.hhs.gov/api/"
IPEDS_URL = (
    "https://educationdata.urban.org/api/v1/college-university/ipeds/"
    "institutional-characteristics/2022/"
)
ECONOMIC_CENSUS_URL = "https://api.census.gov/data/2017/ecnbasic"
MANUFACTURES_SURVEY_URL = "https://api.census.gov/data/2020/asm/sector"
TREASURY_ACCOUNTING_URL = "https://api.fiscaldata.treasury.gov/services/api/fiscal_service/v1/accounting/"

# Definitive contracts, purchase orders, delivery orders, BPA calls
CONTRACT_AWARD_TYPES = ["A", "B", "C", "D"]

# Census geography predicates use FIPS codes, not postal abbreviations
STATE_FIPS = {
    "AL": "01", "AK": "02", "AZ": "04", "AR": "05", "CA": "06", "CO": "08", "CT": "09",
    "DE": "10", "DC": "11", "FL": "12", "GA": "13", "HI": "15", "ID": "16", "IL": "17",
    "IN": "18", "IA": "19", "KS": "20", "KY": "21", "LA": "22", "ME": "23", "MD": "24",
    "MA": "25", "MI": "26", "MN": "27", "MS": "28", "MO": "29", "MT": "30", "NE": "31",
    "NV": "32", "NH": "33", "NJ": "34", "NM": "35", "NY": "36", "NC": "37", "ND": "38",
    "OH": "39", "OK": "40", "OR": "41", "PA": "42", "RI": "44", "SC": "45", "SD": "46",
    "TN": "47", "TX": "48", "UT": "49", "VT": "50", "VA": "51", "WA": "53", "WV": "54",
    "WI": "55", "WY": "56", "PR": "72",
}

# Rows per request on the SAM.gov entity API
SAM_ENTITY_PAGE_SIZE = 10

USASPENDING_FIELDS = [
    "Award ID",
    "Recipient Name",
    "Awarding Agency",
    "Awarding Sub Agency",
    "Funding Agency",
    "Award Amount",
    "Start Date",
    "End Date",
    "Description",
    "naics_code",
    "naics_description",
]


class GovDataError(ApplicationError):
    """A government data API call failed."""

    def __init__(
        self,
        message: str,
        source: str,
        status_code: int | None = None,
        suggestion: str | None = None,
    ):
        details = {"source": source}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            message,
            code="GOV_DATA_ERROR",
            suggestion=suggestion or "The upstream API may be down; try again later",
            details=details,
        )
        self.source = source
        self.status_code = status_code


# =============================================================================
# Base Client
# =============================================================================

class GovApiClient:
    """
    Shared request/response handling for the government API clients.

    Pass `http_client` to reuse a connection pool or to inject an
    httpx.MockTransport in tests; otherwise a client is created with the
    configured timeout and User-Agent and closed by `close()`.
    """

    source = "government API"

    def __init__(self, http_client: httpx.Client | None = None):
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(
            timeout=settings.GOV_API_TIMEOUT_SECONDS,
            headers={
                "User-Agent": settings.GOV_API_USER_AGENT,
                "Accept": "application/json",
            },
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def _request(self, method: str, url: str, expect: type = dict, **kwargs: Any) -> Any:
        """
        Perform a request and return the decoded JSON body.

        `expect` is the top-level JSON type the endpoint returns (dict for
        most APIs, list for the Census API). A 204 yields an empty one.
        """
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise GovDataError(f"{self.source} request failed: {e}", source=self.source)

        if response.status_code >= 400:
            raise GovDataError(
                f"{self.source} returned HTTP {response.status_code}: {response.text[:200]}",
                source=self.source,
                status_code=response.status_code,
            )
        if response.status_code == 204:
            return expect()

        try:
            data = response.json()
        except ValueError as e:
            raise GovDataError(f"{self.source} returned invalid JSON: {e}", source=self.source)

        if not isinstance(data, expect):
            raise GovDataError(
                f"{self.source} returned a JSON {type(data).__name__}, expected {expect.__name__}",
                source=self.source,
            )
        return data


# =============================================================================
# Contracts & Grants
# =============================================================================

def _time_period(lookback_days: int) -> list[dict[str, str]]:
    today = date.today()
    return [{
        "start_date": (today - timedelta(days=lookback_days)).isoformat(),
        "end_date": today.isoformat(),
    }]


class USASpendingClient(GovApiClient):
    """Federal contract awards from USAspending.gov."""

    source = "USAspending.gov"

    def search_awards(
        self,
        keyword: str | None = None,
        limit: int = 25,
        naics_codes: list[str] | None = None,
        lookback_days: int = 365,
        state: str | None = None,
        page: int = 1,
    ) -> list[dict[str, Any]]:
        """
        Search contract awards, largest first.

        Args:
            keyword: Free-text keyword filter
            limit: Maximum awards to return
            naics_codes: Optional NAICS filter
            lookback_days: Size of the action-date window ending today
            state: Two-letter place-of-performance state
            page: 1-based result page

        Returns:
            Raw award dicts keyed by the USASPENDING_FIELDS names
        """
        filters: dict[str, Any] = {
            "award_type_codes": CONTRACT_AWARD_TYPES,
            "time_period": _time_period(lookback_days),
        }
        if keyword:
            filters["keywords"] = [keyword]
        if naics_codes:
            filters["naics_codes"] = naics_codes
        if state:
            filters["place_of_performance_locations"] = [{"country": "USA", "state": state}]

        body = {
            "filters": filters,
            "fields": USASPENDING_FIELDS,
            "page": max(1, page),
            "limit": max(1, limit),
            "sort": "Award Amount",
            "order": "desc",
        }

        data = self._request("POST", USASPENDING_AWARDS_URL, json=body)
        results = data.get("results") or []
        logger.info(f"USAspending.gov returned {len(results)} awards")
        return results

    def spending_by_agency(self, limit: int = 10, lookback_days: int = 365) -> list[dict[str, Any]]:
        """
        Contract obligations grouped by awarding agency, largest first.

        Returns:
            Raw category rows (`name`, `code`, `amount`, ...)
        """
        body = {
            "filters": {
                "award_type_codes": CONTRACT_AWARD_TYPES,
                "time_period": _time_period(lookback_days),
            },
            "limit": max(1, limit),
            "page": 1,
        }

        data = self._request("POST", USASPENDING_AGENCY_SPENDING_URL, json=body)
        return data.get("results") or []


class GrantsGovClient(GovApiClient):
    """Open and forecasted grants from Grants.gov search2."""

    source = "Grants.gov"

    def search(
        self,
        keyword: str | None = None,
        rows: int = 25,
        agencies: str = "",
    ) -> list[dict[str, Any]]:
        """
        Search posted and forecasted grant opportunities.

        Returns:
            Raw `oppHits` records

        Raises:
            GovDataError: On HTTP failure or a non-zero `errorcode`
        """
        body = {
            "rows": max(1, rows),
            "keyword": keyword or "",
            "oppNum": "",
            "eligibilities": "",
            "agencies": agencies,
            "oppStatuses": "forecasted|posted",
            "aln": "",
            "fundingCategories": "",
        }

        data = self._request("POST", GRANTS_GOV_SEARCH_URL, json=body)
        if data.get("errorcode") != 0:
            raise GovDataError(
                f"Grants.gov error: {data.get('msg') or data.get('errorcode')}",
                source=self.source,
            )

        payload = data.get("data")
        hits = (payload.get("oppHits") if isinstance(payload, dict) else None) or []
        logger.info(f"Grants.gov returned {len(hits)} grants")
        return hits


class SamGovClient(GovApiClient):
    """Contract opportunity notices from SAM.gov."""

    source = "SAM.gov"

    def __init__(self, api_key: str | None = None, http_client: httpx.Client | None = None):
        super().__init__(http_client)
        self.api_key = api_key if api_key is not None else settings.SAM_GOV_API_KEY

    def search(
        self,
        keyword: str | None = None,
        limit: int = 25,
        posted_from: date | None = None,
        posted_to: date | None = None,
    ) -> list[dict[str, Any]]:
        """
        Search notices posted in a date window (default: last 90 days).

        Raises:
            GovDataError: If no API key is configured or the call fails
        """
        self._require_key()
        posted_to = posted_to or date.today()
        posted_from = posted_from or posted_to - timedelta(days=90)
        params = {
            "api_key": self.api_key,
            "limit": max(1, limit),
            "offset": 0,
            "postedFrom": posted_from.strftime("%m/%d/%Y"),
            "postedTo": posted_to.strftime("%m/%d/%Y"),
        }
        if keyword:
            params["title"] = keyword

        data = self._request("GET", SAM_GOV_SEARCH_URL, params=params)
        notices = data.get("opportunitiesData") or []
        logger.info(f"SAM.gov returned {len(notices)} notices")
        return notices

    def search_entities(
        self,
        naics_codes: list[str],
        name: str | None = None,
        state: str | None = None,
        limit: int = SAM_ENTITY_PAGE_SIZE,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        Active registered entities whose primary NAICS is in `naics_codes`.

        Returns:
            (raw entityData records, totalRecords reported by the API)

        Raises:
            GovDataError: If no API key is configured or the call fails
        """
        self._require_key()
        params = {
            "api_key": self.api_key,
            "registrationStatus": "A",
            "includeSections": "entityRegistration,coreData",
            "primaryNaics": ",".join(naics_codes),
            "size": min(max(1, limit), SAM_ENTITY_PAGE_SIZE),
            "page": 0,
        }
        if name:
            params["legalBusinessName"] = name
        if state:
            params["physicalAddressProvinceOrStateCode"] = state

        data = self._request("GET", SAM_GOV_ENTITY_URL, params=params)
        entities = data.get("entityData") or []
        logger.info(f"SAM.gov returned {len(entities)} entities")
        return entities, data.get("totalRecords", len(entities))

    def _require_key(self) -> None:
        if not self.api_key:
            raise GovDataError(
                "SAM.gov API key is not configured",
                source=self.source,
                suggestion="Set SAM_GOV_API_KEY to enable SAM.gov search",
            )


# =============================================================================
# Sector Registries
# =============================================================================

class NPPESClient(GovApiClient):
    """CMS National Plan and Provider Enumeration System."""

    source = "NPPES"

    def search_providers(self, state: str, limit: int = 20) -> tuple[list[dict[str, Any]], int]:
        """
        Returns:
            (raw provider records, total result_count reported by the API)
        """
        data = self._request(
            "GET",
            NPPES_URL,
            params={"version": "2.1", "state": state, "limit": limit, "skip": 0},
        )
        results = data.get("results") or []
        return results, data.get("result_count", len(results))


class EducationDataClient(GovApiClient):
    """Urban Institute Education Data API (IPEDS institutional characteristics)."""

    source = "IPEDS"

    def search_institutions(
        self,
        state: str,
        query: str | None = None,
        limit: int | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        Institutions in a state, optionally filtered by a name substring.

        Returns:
            (up to `limit` raw records, number of records matching the filter)
        """
        data = self._request("GET", IPEDS_URL, params={"state": state})
        results = data.get("results") or []
        if query:
            needle = query.lower()
            results = [r for r in results if needle in (r.get("institution_name") or "").lower()]
        total = len(results)
        return (results[:limit] if limit else results), total


# =============================================================================
# Industry & Fiscal Statistics
# =============================================================================

class CensusClient(GovApiClient):
    """
    Census Bureau data API.

    Responses are a JSON array of arrays whose first row is the header;
    rows are returned as dicts keyed by that header.
    """

    source = "Census Bureau"

    def economic_census(self, naics_codes: list[str], state: str | None = None) -> list[dict[str, Any]]:
        """2017 Economic Census establishments, employment, payroll and receipts."""
        return self._table(
            ECONOMIC_CENSUS_URL,
            ["NAME", "NAICS2017", "NAICS2017_LABEL", "ESTAB", "EMP", "PAYANN", "RCPTOT"],
            naics_codes,
            state,
        )

    def manufactures_survey(self, naics_codes: list[str], state: str | None = None) -> list[dict[str, Any]]:
        """2020 Annual Survey of Manufactures employment, payroll, value added and shipments."""
        return self._table(
            MANUFACTURES_SURVEY_URL,
            ["NAICS2017", "NAICS2017_LABEL", "EMP", "PAYANN", "VAS", "VS"],
            naics_codes,
            state,
        )

    def _table(
        self,
        url: str,
        fields: list[str],
        naics_codes: list[str],
        state: str | None,
    ) -> list[dict[str, Any]]:
        if state and state not in STATE_FIPS:
            raise GovDataError(
                f"Unknown state code: {state}",
                source=self.source,
                suggestion="Use a two-letter USPS state code",
            )

        params = {
            "get": ",".join(fields),
            # Repeated predicate, one NAICS2017=... per code
            "NAICS2017": naics_codes,
            "for": f"state:{STATE_FIPS[state]}" if state else "us:*",
        }
        data = self._request("GET", url, expect=list, params=params)
        if not data:
            return []

        header, rows = data[0], data[1:]
        return [dict(zip(header, row)) for row in rows]


class TreasuryClient(GovApiClient):
    """Treasury Fiscal Data API (Daily/Monthly Treasury Statement, Debt to the Penny)."""

    source = "Treasury Fiscal Data"

    def operating_cash(self, since: date, limit: int = 5) -> list[dict[str, Any]]:
        return self._dataset(
            "dts/operating_cash_balance",
            ["record_date", "account_type", "close_today_bal", "open_today_bal"],
            since,
            limit,
        )

    def debt_to_the_penny(self, since: date, limit: int = 3) -> list[dict[str, Any]]:
        return self._dataset(
            "od/debt_to_penny",
            ["record_date", "debt_held_public_amt", "intragov_hold_amt", "tot_pub_debt_out_amt"],
            since,
            limit,
        )

    def receipts(self, since: date, limit: int = 10) -> list[dict[str, Any]]:
        return self._dataset(
            "mts/mts_table_4",
            ["record_date", "classification_desc", "current_month_gross_rcpt_amt", "current_fytd_gross_rcpt_amt"],
            since,
            limit,
        )

    def _dataset(self, path: str, fields: list[str], since: date, limit: int) -> list[dict[str, Any]]:
        """Most recent records of one dataset, newest first."""
        params = {
            "fields": ",".join(fields),
            "filter": f"record_date:gte:{since.isoformat()}",
            "sort": "-record_date",
            "page[size]": max(1, limit),
        }
        data = self._request("GET", TREASURY_ACCOUNTING_URL + path, params=params)
        return data.get("data") or []
