# =============================================================================
# core/services/company_service.py - Company & Team Business Logic
# =============================================================================
# CRUD for the caller's company plus team management. A user belongs to at
# most one company, recorded as profiles.company_id.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import BadRequestError, CompanyNotFoundError
from core.models.company import CompanyCreate, CompanyUpdate, ProfileRole, TeamInvite
from core.services.email_service import EmailResult, EmailService
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)


class CompanyService:
    """Company lifecycle and team membership."""

    @staticmethod
    def get_company(profile: dict[str, Any]) -> dict[str, Any]:
        """
        Get the company the profile belongs to.

        Raises:
            CompanyNotFoundError: Profile has no company or it was deleted
        """
        company_id = profile.get("company_id")
        if not company_id:
            raise CompanyNotFoundError()

        company = SupabaseClient.fetch_company(company_id)
        if not company:
            raise CompanyNotFoundError(str(company_id))
        return company

    @staticmethod
    def create_company(user_id: str | UUID, data: CompanyCreate) -> dict[str, Any]:
        """
        Create a company and make the caller its owner.

        The profile is linked (company_id) and promoted to company_owner.

        Raises:
            BadRequestError: The user already belongs to a company
        """
        profile = SupabaseClient.fetch_profile(user_id)
        if profile and profile.get("company_id"):
            raise BadRequestError(
                "You already belong to a company",
                code="COMPANY_EXISTS",
                suggestion="Update your existing company with PUT /api/v1/companies instead",
            )

        row = data.to_row()
        row["created_by"] = str(user_id)
        company = SupabaseClient.insert("companies", row)

        link = {
            "company_id": company["id"],
            "role": ProfileRole.COMPANY_OWNER.value,
            "updated_at": utc_now_iso(),
        }
        if profile:
            SupabaseClient.update("profiles", link, id=user_id)
        else:
            SupabaseClient.insert("profiles", {"id": str(user_id), **link})

        logger.info(f"Created company {company['id']} owned by {user_id}")
        return company

    @staticmethod
    def update_company(company_id: str, data: CompanyUpdate) -> dict[str, Any]:
        changes = data.to_row()
        if not changes:
            raise BadRequestError(
                "No fields to update",
                suggestion="Send at least one company field in the request body",
            )

        changes["updated_at"] = utc_now_iso()
        company = SupabaseClient.update("companies", changes, id=company_id)
        if not company:
            raise CompanyNotFoundError(company_id)

        logger.info(f"Updated company {company_id}: {sorted(changes)}")
        return company

    @staticmethod
    def delete_company(company_id: str, user_id: str | UUID) -> None:
        """Delete the company and unlink the caller's profile."""
        client = SupabaseClient.get_client()
        client.table("companies").delete().eq("id", company_id).execute()
        SupabaseClient.update("profiles", {"company_id": None}, id=user_id)
        logger.info(f"Deleted company {company_id}")

    # -------------------------------------------------------------------------
    # Team
    # -------------------------------------------------------------------------

    @staticmethod
    def list_members(company_id: str) -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        response = (
            client.table("profiles")
            .select("id, email, full_name, role, created_at")
            .eq("company_id", company_id)
            .order("created_at")
            .execute()
        )
        return response.data or []

    @staticmethod
    def invite_member(
        company: dict[str, Any],
        inviter: dict[str, Any],
        invite: TeamInvite,
    ) -> tuple[dict[str, Any], EmailResult]:
        """
        Record a pending invitation and email the invitee.

        Raises:
            BadRequestError: Invitee is already a member, or the company's
                seat limit (max_users) is reached
        """
        email = invite.email.strip().lower()
        members = CompanyService.list_members(company["id"])

        if any((m.get("email") or "").lower() == email for m in members):
            raise BadRequestError(
                f"{email} is already a member of {company.get('name')}",
                code="ALREADY_MEMBER",
            )

        max_users = company.get("max_users")
        if max_users and len(members) >= int(max_users):
            raise BadRequestError(
                f"Your plan allows {max_users} users",
                code="SEAT_LIMIT_REACHED",
                suggestion="Upgrade your subscription to add more team members",
            )

        invitation = SupabaseClient.insert(
            "team_invitations",
            {
                "company_id": company["id"],
                "email": email,
                "role": invite.role.value,
                "invited_by": inviter.get("id"),
                "status": "pending",
            },
        )

        invite_url = f"{settings.APP_URL.rstrip('/')}/signup?invite={invitation['id']}"
        result = EmailService.send_team_invitation(
            email=email,
            inviter_name=inviter.get("full_name") or inviter.get("email") or "A teammate",
            company_name=company.get("name") or "your company",
            role=invite.role.value,
            invite_url=invite_url,
        )
        logger.info(f"Invited {email} to company {company['id']} (email sent: {result.success})")
        return invitation, result
