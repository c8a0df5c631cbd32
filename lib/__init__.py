# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database and storage
# - ai_cache.py: Database-backed cache for AI results, tiered TTLs
# - gov_data.py: HTTP clients for USAspending, Grants.gov, SAM.gov,
#   NPPES, the Education Data API, the Census Bureau and Treasury
# - utils.py: Shared utilities (error base class, UUIDs, parsing, time)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.ai_cache import AICache, CacheTier, make_cache_key
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
from lib.utils import ApplicationError, normalize_uuid

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # AI cache
    "AICache",
    "CacheTier",
    "make_cache_key",
    # Government data
    "CensusClient",
    "EducationDataClient",
    "GovDataError",
    "GrantsGovClient",
    "NPPESClient",
    "SamGovClient",
    "TreasuryClient",
    "USASpendingClient",
    # Utils
    "ApplicationError",
    "normalize_uuid",
]
