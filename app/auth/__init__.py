# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication using Supabase Auth, plus the profile /
# company / role dependencies built on top of it.
#
# Usage:
#   from app.auth import get_current_company
#
#   @router.get("/dashboard")
#   def dashboard(company: dict = Depends(get_current_company)):
#       ...
# =============================================================================

from app.auth.dependencies import (
    get_current_company,
    get_current_profile,
    get_current_user,
    get_current_user_optional,
    require_admin,
    require_company_manager,
)
from app.auth.models import AuthUser, UserResponse

__all__ = [
    "get_current_company",
    "get_current_profile",
    "get_current_user",
    "get_current_user_optional",
    "require_admin",
    "require_company_manager",
    "AuthUser",
    "UserResponse",
]
