# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# These routes read the caller's identity and finish account setup
# (profiles row, optional company, welcome email).
# =============================================================================

import logging
from typing import Any

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, UserResponse
from app.config import settings
from core.models.company import ProfileRole, ProfileSetup
from core.services.company_service import CompanyService
from core.services.email_service import EmailService
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

router = APIRouter()


def _is_admin(user: AuthUser) -> bool:
    return bool(user.email) and user.email.lower() in settings.admin_emails_list


@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> UserResponse:
    """
    Get the caller's identity, profile and company.

    Users who signed up but never finished setup get a response with
    profile_complete=false instead of a 404.
    """
    profile = SupabaseClient.fetch_profile(user.id)
    if not profile:
        return UserResponse(id=user.id, email=user.email, is_admin=_is_admin(user))

    company = None
    if profile.get("company_id"):
        company = SupabaseClient.fetch_company(profile["company_id"])

    return UserResponse(
        id=user.id,
        email=profile.get("email") or user.email,
        full_name=profile.get("full_name"),
        role=profile.get("role"),
        company_id=profile.get("company_id"),
        is_admin=_is_admin(user),
        profile_complete=company is not None,
        company=company,
        created_at=profile.get("created_at"),
    )


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email
    }


@router.post("/setup-profile")
def setup_profile(
    body: ProfileSetup,
    user: AuthUser = Depends(get_current_user),
) -> dict[str, Any]:
    """
    Create or update the caller's profile, optionally creating their company.

    A welcome email is sent when a company is created here.

    Raises:
        400: COMPANY_EXISTS if a company is supplied but the user already has one
    """
    profile = SupabaseClient.fetch_profile(user.id)
    columns: dict[str, Any] = {"email": user.email, "updated_at": utc_now_iso()}
    if body.full_name is not None:
        columns["full_name"] = body.full_name

    if profile:
        profile = SupabaseClient.update("profiles", columns, id=user.id) or {**profile, **columns}
    else:
        profile = SupabaseClient.insert(
            "profiles",
            {"id": str(user.id), "role": ProfileRole.MEMBER.value, **columns},
        )
        logger.info(f"Created profile for user {user.id}")

    company = None
    email_sent = False
    if body.company is not None:
        company = CompanyService.create_company(user.id, body.company)
        profile = SupabaseClient.fetch_profile(user.id) or profile
        if user.email:
            result = EmailService.send_welcome_email(user.email, profile.get("full_name"), company["name"])
            email_sent = result.success
    elif profile.get("company_id"):
        company = SupabaseClient.fetch_company(profile["company_id"])

    return {
        "success": True,
        "profile": profile,
        "company": company,
        "welcome_email_sent": email_sent,
    }
