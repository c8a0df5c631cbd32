# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - FakeSupabase: an in-memory stand-in for the Supabase query builder
# - Sample company / profile / opportunity rows
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("ADMIN_EMAILS", "admin@govcontract.test")
os.environ.setdefault("APP_URL", "https://app.govcontract.test")

from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest

from lib.supabase_client import SupabaseClient


# =============================================================================
# Fake Supabase
# =============================================================================

class FakeQuery:
    """
    Chainable stand-in for a PostgREST query.

    Every builder call is recorded in `calls` and returns the query itself;
    execute() returns the rows configured for the table. A `.single()`
    query with no rows raises the PostgREST "no rows" error, like the real
    client does.
    """

    def __init__(self, table: str, rows: list[dict[str, Any]]):
        self.table = table
        self.rows = rows
        self.calls: list[tuple[str, tuple, dict]] = []

    def __getattr__(self, name: str):
        if name.startswith("__"):
            raise AttributeError(name)

        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return method

    def called(self, name: str) -> list[tuple[tuple, dict]]:
        return [(args, kwargs) for call, args, kwargs in self.calls if call == name]

    def execute(self):
        if self.called("single"):
            if not self.rows:
                raise Exception("JSON object requested, multiple (or no) rows returned (PGRST116)")
            return SimpleNamespace(data=self.rows[0], count=1)
        return SimpleNamespace(data=self.rows, count=len(self.rows))


class FakeSupabase:
    """
    Minimal Supabase client: `tables` maps table name to the rows every
    query on that table returns. All queries are kept in `queries`.
    """

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None):
        self.tables = dict(tables or {})
        self.queries: list[FakeQuery] = []
        self.storage = MagicMock()

    def table(self, name: str) -> FakeQuery:
        query = FakeQuery(name, list(self.tables.get(name, [])))
        self.queries.append(query)
        return query

    def queries_for(self, table: str) -> list[FakeQuery]:
        return [q for q in self.queries if q.table == table]

    def writes(self, table: str, operation: str) -> list[Any]:
        """Payloads passed to insert/update/upsert on `table`."""
        return [
            args[0]
            for query in self.queries_for(table)
            for args, _ in query.called(operation)
        ]


@pytest.fixture
def fake_supabase():
    """Install a FakeSupabase as the shared client for one test."""
    fake = FakeSupabase()
    SupabaseClient._instance = fake
    yield fake
    SupabaseClient.reset()


# =============================================================================
# Sample Rows
# =============================================================================

@pytest.fixture
def company():
    """A companies row for a small technology contractor."""
    return {
        "id": "company-123",
        "name": "Acme Federal Solutions",
        "industry": "Technology",
        "company_type": "small_business",
        "size": "Small",
        "location": "Washington, DC",
        "headquarters_location": "Washington, DC",
        "naics_codes": ["541511", "541512"],
        "certifications": ["8(a)", "SDVOSB"],
        "annual_revenue": "$2,000,000",
        "years_in_business": "12",
        "employee_count": "20",
        "past_performance_rating": "4.6",
        "subscription_tier": "free",
        "subscription_status": "active",
        "allowed_jurisdictions": ["federal"],
        "max_users": 1,
    }


@pytest.fixture
def profile(company):
    """A profiles row for the owner of `company`."""
    return {
        "id": "user-123",
        "email": "owner@acme.test",
        "full_name": "Jordan Rivera",
        "role": "company_owner",
        "company_id": company["id"],
    }


@pytest.fixture
def member_profile(company):
    return {
        "id": "user-456",
        "email": "member@acme.test",
        "full_name": "Sam Lee",
        "role": "member",
        "company_id": company["id"],
    }


@pytest.fixture
def opportunity():
    """An opportunities row."""
    return {
        "id": "opp-1",
        "title": "Cloud Modernization Services",
        "agency": "Department of Defense",
        "type": "contract",
        "jurisdiction": "federal",
        "status": "active",
        "company_id": None,
        "due_date": "2099-01-01T00:00:00+00:00",
        "naics_code": "541512",
    }
