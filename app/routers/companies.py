# =============================================================================
# app/routers/companies.py - Company Profile & Team Endpoints
# =============================================================================
# The caller's own company: every route acts on the company linked to the
# caller's profile, so no company ID appears in the URL.
# =============================================================================

from typing import Any

from fastapi import APIRouter, Depends, status

from app.auth import (
    AuthUser,
    get_current_company,
    get_current_profile,
    get_current_user,
    require_company_manager,
)
from app.exceptions import PermissionDeniedError
from core.models.company import CompanyCreate, CompanyUpdate, ProfileRole, TeamInvite
from core.services.company_service import CompanyService

router = APIRouter()


@router.get("")
async def get_company(company: dict[str, Any] = Depends(get_current_company)):
    return {"company": company}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_company(
    body: CompanyCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create a company and become its owner.

    Missing industry, size and location default to "General", "Small" and
    "United States".
    """
    company = CompanyService.create_company(user.id, body)
    return {"company": company, "message": "Company created successfully"}


@router.put("")
async def update_company(
    body: CompanyUpdate,
    profile: dict[str, Any] = Depends(require_company_manager),
):
    company = CompanyService.update_company(profile["company_id"], body)
    return {"company": company}


@router.delete("")
async def delete_company(profile: dict[str, Any] = Depends(get_current_profile)):
    """Only the company owner may delete the company."""
    if profile.get("role") != ProfileRole.COMPANY_OWNER.value:
        raise PermissionDeniedError("delete the company", [ProfileRole.COMPANY_OWNER.value])

    company = CompanyService.get_company(profile)
    CompanyService.delete_company(company["id"], profile["id"])
    return {"success": True, "message": "Company deleted"}


# =============================================================================
# Team
# =============================================================================

@router.get("/team")
async def list_team(company: dict[str, Any] = Depends(get_current_company)):
    members = CompanyService.list_members(company["id"])
    return {
        "members": members,
        "count": len(members),
        "max_users": company.get("max_users"),
    }


@router.post("/team/invite", status_code=status.HTTP_201_CREATED)
def invite_team_member(
    body: TeamInvite,
    profile: dict[str, Any] = Depends(require_company_manager),
    company: dict[str, Any] = Depends(get_current_company),
):
    """Invite someone by email; fails when the plan's seat limit is reached."""
    invitation, email = CompanyService.invite_member(company, profile, body)
    return {"invitation": invitation, "email_sent": email.success}
