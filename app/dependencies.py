# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
# =============================================================================

import hmac
import logging
from typing import Annotated, Any

from fastapi import Depends, Header, HTTPException, UploadFile, status

from app.auth import AuthUser, get_current_company, get_current_profile, get_current_user_optional
from app.config import settings
from app.exceptions import FileTooLargeError
from core.services.application_service import FileUpload
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


def get_optional_company(
    user: AuthUser | None = Depends(get_current_user_optional),
) -> dict[str, Any] | None:
    """
    The caller's company when signed in and set up, else None.

    Public endpoints (opportunity search) score against a default profile
    when this is None.
    """
    if user is None:
        return None
    profile = SupabaseClient.fetch_profile(user.id)
    if not profile or not profile.get("company_id"):
        return None
    return SupabaseClient.fetch_company(profile["company_id"])


def verify_cron_secret(authorization: Annotated[str | None, Header()] = None) -> None:
    """
    Guard for scheduler-triggered endpoints: `Authorization: Bearer <CRON_SECRET>`.

    Always rejects when CRON_SECRET is unset.
    """
    expected = f"Bearer {settings.CRON_SECRET}"
    # Compare bytes: compare_digest rejects non-ASCII str with TypeError
    valid = bool(authorization) and hmac.compare_digest(authorization.encode(), expected.encode())
    if not settings.CRON_SECRET or not valid:
        logger.warning("Rejected cron request with missing or invalid secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def read_upload(file: UploadFile) -> FileUpload:
    """
    Read a multipart file into memory, enforcing MAX_UPLOAD_SIZE_MB.

    Raises:
        FileTooLargeError: 413
    """
    content = await file.read()
    if len(content) > settings.max_upload_size_bytes:
        raise FileTooLargeError(len(content) / (1024 * 1024), settings.MAX_UPLOAD_SIZE_MB)

    filename = file.filename or "upload"
    logger.info(f"Received upload: {filename} ({len(content) / (1024 * 1024):.2f}MB)")
    return FileUpload(
        filename=filename,
        content=content,
        content_type=file.content_type or "application/octet-stream",
    )


# Type aliases for dependency injection
CurrentProfile = Annotated[dict[str, Any], Depends(get_current_profile)]
CurrentCompany = Annotated[dict[str, Any], Depends(get_current_company)]
OptionalCompany = Annotated[dict[str, Any] | None, Depends(get_optional_company)]
