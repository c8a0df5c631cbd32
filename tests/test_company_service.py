# =============================================================================
# tests/test_company_service.py - Company & Team Tests
# =============================================================================

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from app.exceptions import BadRequestError, CompanyNotFoundError
from core.models.company import CompanyCreate, CompanyUpdate, TeamInvite
from core.services.company_service import CompanyService
from core.services.email_service import EmailResult
from lib.supabase_client import SupabaseClient


@pytest.fixture
def db(fake_supabase):
    with patch.object(SupabaseClient, "fetch_company") as fetch_company, \
            patch.object(SupabaseClient, "fetch_profile") as fetch_profile, \
            patch.object(SupabaseClient, "insert") as insert, \
            patch.object(SupabaseClient, "update") as update:
        yield SimpleNamespace(
            fake=fake_supabase,
            fetch_company=fetch_company,
            fetch_profile=fetch_profile,
            insert=insert,
            update=update,
        )


@pytest.fixture
def email():
    with patch("core.services.company_service.EmailService") as mock:
        mock.send_team_invitation.return_value = EmailResult(success=True, message_id="<m>")
        yield mock


class TestGetCompany:

    def test_profile_without_company(self, db):
        with pytest.raises(CompanyNotFoundError):
            CompanyService.get_company({"id": "u1", "company_id": None})

    def test_deleted_company(self, db):
        db.fetch_company.return_value = None

        with pytest.raises(CompanyNotFoundError) as exc_info:
            CompanyService.get_company({"id": "u1", "company_id": "gone"})

        assert exc_info.value.status_code == 404


class TestCreateCompany:

    def test_links_existing_profile_as_owner(self, db):
        db.fetch_profile.return_value = {"id": "u1", "company_id": None}
        db.insert.return_value = {"id": "company-1", "name": "Acme"}

        company = CompanyService.create_company("u1", CompanyCreate(name="Acme"))

        assert company["id"] == "company-1"
        table, row = db.insert.call_args.args
        assert table == "companies"
        assert row["industry"] == "General"
        assert row["created_by"] == "u1"
        table, link = db.update.call_args.args
        assert table == "profiles"
        assert link["company_id"] == "company-1"
        assert link["role"] == "company_owner"

    def test_creates_missing_profile(self, db):
        db.fetch_profile.return_value = None
        db.insert.side_effect = [{"id": "company-1"}, {"id": "u1"}]

        CompanyService.create_company("u1", CompanyCreate(name="Acme"))

        table, row = db.insert.call_args_list[1].args
        assert table == "profiles"
        assert row["id"] == "u1"
        db.update.assert_not_called()

    def test_one_company_per_user(self, db):
        db.fetch_profile.return_value = {"id": "u1", "company_id": "company-9"}

        with pytest.raises(BadRequestError) as exc_info:
            CompanyService.create_company("u1", CompanyCreate(name="Acme"))

        assert exc_info.value.code == "COMPANY_EXISTS"


class TestUpdateCompany:

    def test_empty_update(self, db):
        with pytest.raises(BadRequestError):
            CompanyService.update_company("company-123", CompanyUpdate())

    def test_partial_update(self, db):
        db.update.return_value = {"id": "company-123", "website": "https://acme.test"}

        CompanyService.update_company("company-123", CompanyUpdate(website="https://acme.test"))

        changes = db.update.call_args.args[1]
        assert changes["website"] == "https://acme.test"
        assert "name" not in changes


class TestInviteMember:

    def test_invitation_email(self, db, email, company, profile):
        company = dict(company, max_users=5)
        db.fake.tables["profiles"] = [{"email": "owner@acme.test"}]
        db.insert.return_value = {"id": "inv-1"}

        invitation, result = CompanyService.invite_member(
            company, profile, TeamInvite(email=" New@Acme.test ")
        )

        assert invitation["id"] == "inv-1"
        assert result.success
        row = db.insert.call_args.args[1]
        assert row["email"] == "new@acme.test"
        assert row["status"] == "pending"
        kwargs = email.send_team_invitation.call_args.kwargs
        assert kwargs["invite_url"] == "https://app.govcontract.test/signup?invite=inv-1"
        assert kwargs["inviter_name"] == "Jordan Rivera"

    def test_existing_member(self, db, email, company, profile):
        db.fake.tables["profiles"] = [{"email": "Member@Acme.test"}]

        with pytest.raises(BadRequestError) as exc_info:
            CompanyService.invite_member(dict(company, max_users=5), profile, TeamInvite(email="member@acme.test"))

        assert exc_info.value.code == "ALREADY_MEMBER"

    def test_seat_limit(self, db, email, company, profile):
        db.fake.tables["profiles"] = [{"email": "owner@acme.test"}]

        with pytest.raises(BadRequestError) as exc_info:
            CompanyService.invite_member(company, profile, TeamInvite(email="new@acme.test"))

        assert exc_info.value.code == "SEAT_LIMIT_REACHED"
        db.insert.assert_not_called()
