# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Dependency chain for authenticated routes:
#
#   get_current_user      Supabase JWT -> AuthUser (401 on failure)
#   get_current_profile   AuthUser -> profiles row (404 if setup unfinished)
#   get_current_company   profile -> companies row (404 if not linked)
#   require_company_manager  profile role is company_owner or admin (403)
#   require_admin         user email listed in ADMIN_EMAILS (403)
#
# Token verification supports both:
# - ES256 (Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret) as fallback
#
# Usage:
#   @router.get("/company")
#   def read(company: dict = Depends(get_current_company)):
#       return company
# =============================================================================

import logging
import time
from typing import Any, Optional
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from app.auth.models import AuthUser
from app.config import settings
from app.exceptions import PermissionDeniedError, ProfileNotFoundError
from core.models.company import MANAGER_ROLES
from core.services.company_service import CompanyService
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer()
security_optional = HTTPBearer(auto_error=False)

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _fetch_jwks() -> dict:
    """Fetch the project's JWKS, cached for an hour; stale keys beat no keys."""
    global _jwks_cache, _jwks_cache_time

    now = time.time()
    if _jwks_cache and (now - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    jwks_url = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"
    try:
        response = httpx.get(jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = now
        logger.debug(f"Fetched JWKS from {jwks_url}")
        return _jwks_cache
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        return _jwks_cache or {"keys": []}


def _get_signing_key(token: str) -> tuple[Any, str]:
    """
    Pick the verification key for a token.

    Returns:
        (key, algorithm): a JWK dict for asymmetric tokens, else the HS256 secret
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        return settings.SUPABASE_JWT_SECRET, "HS256"

    alg = header.get("alg", "HS256")
    kid = header.get("kid")
    if alg == "HS256":
        return settings.SUPABASE_JWT_SECRET, "HS256"

    if kid:
        for key in _fetch_jwks().get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"Could not find key for alg={alg}, kid={kid}, falling back to HS256")
    return settings.SUPABASE_JWT_SECRET, "HS256"


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """
    Verify the Supabase access token and return the caller.

    Raises:
        HTTPException: 401 if the token is missing, expired or invalid
    """
    token = credentials.credentials

    try:
        signing_key, algorithm = _get_signing_key(token)
        payload = jwt.decode(
            token,
            signing_key,
            algorithms=[algorithm],
            audience="authenticated"
        )
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {e}")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing 'sub' claim")
        raise _unauthorized("Invalid token: missing user ID")

    try:
        user_uuid = UUID(user_id)
    except ValueError:
        logger.warning(f"Invalid UUID in token: {user_id}")
        raise _unauthorized("Invalid token: malformed user ID")

    logger.debug(f"Authenticated user: {user_id}")
    return AuthUser(id=user_uuid, email=payload.get("email"))


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional)
) -> Optional[AuthUser]:
    """Like get_current_user, but anonymous (or bad-token) callers get None."""
    if credentials is None:
        return None

    try:
        return await get_current_user(credentials)
    except HTTPException:
        return None


# =============================================================================
# Profile & Company
# =============================================================================

def get_current_profile(user: AuthUser = Depends(get_current_user)) -> dict[str, Any]:
    """
    Raises:
        ProfileNotFoundError: The user has not finished profile setup
    """
    profile = SupabaseClient.fetch_profile(user.id)
    if not profile:
        raise ProfileNotFoundError(str(user.id))
    return profile


def get_current_company(profile: dict[str, Any] = Depends(get_current_profile)) -> dict[str, Any]:
    """
    Raises:
        CompanyNotFoundError: Profile has no company, or the company row is gone
    """
    return CompanyService.get_company(profile)


def require_company_manager(profile: dict[str, Any] = Depends(get_current_profile)) -> dict[str, Any]:
    """Return the profile if its role may manage the company (owner or admin)."""
    if profile.get("role") not in MANAGER_ROLES:
        raise PermissionDeniedError("manage this company", list(MANAGER_ROLES))
    return profile


def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Platform admins are configured by email in ADMIN_EMAILS."""
    if not user.email or user.email.lower() not in settings.admin_emails_list:
        logger.warning(f"Non-admin user {user.id} attempted an admin action")
        raise PermissionDeniedError("access admin endpoints")
    return user
