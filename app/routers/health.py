# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# /health        process is up (load balancers)
# /health/live   liveness for container restarts
# /health/ready  Supabase database + the two document buckets are reachable,
#                plus which optional integrations are configured. A disabled
#                integration is reported, not treated as unhealthy.
# =============================================================================

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str


class ChecksResponse(BaseModel):
    database: str = "unknown"
    storage: str = "unknown"


class IntegrationsResponse(BaseModel):
    """False means the feature is switched off by configuration."""
    stripe: bool
    smtp: bool
    sam_gov: bool
    openai: bool


class ReadinessResponse(BaseModel):
    status: str
    checks: ChecksResponse
    integrations: IntegrationsResponse
    timestamp: str


def _check_database() -> str:
    try:
        SupabaseClient.get_client().table("companies").select("id").limit(1).execute()
    except Exception as e:
        logger.warning(f"Readiness: database check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"
    return "healthy"


def _check_storage() -> str:
    required = {settings.CHECKLIST_FILES_BUCKET, settings.APPLICATION_FILES_BUCKET}
    try:
        buckets = SupabaseClient.get_client().storage.list_buckets()
    except Exception as e:
        logger.warning(f"Readiness: storage check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"

    missing = required - {getattr(bucket, "name", None) for bucket in buckets}
    if missing:
        return f"unhealthy: missing buckets {', '.join(sorted(missing))}"
    return "healthy"


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(
        status="healthy",
        timestamp=utc_now_iso(),
        environment=settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/live")
async def liveness_check():
    return {"status": "alive", "timestamp": utc_now_iso()}


@router.get("/health/ready", response_model=ReadinessResponse)
def readiness_check():
    """Ready only when both the database and the document buckets respond."""
    checks = ChecksResponse(database=_check_database(), storage=_check_storage())
    ready = checks.database == "healthy" and checks.storage == "healthy"

    return ReadinessResponse(
        status="ready" if ready else "degraded",
        checks=checks,
        integrations=IntegrationsResponse(
            stripe=settings.stripe_enabled,
            smtp=settings.smtp_enabled,
            sam_gov=settings.sam_gov_enabled,
            openai=bool(settings.OPENAI_API_KEY),
        ),
        timestamp=utc_now_iso(),
    )
