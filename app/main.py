# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the GovContract API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    GovContractException,
    application_error_handler,
    govcontract_exception_handler,
)
from app.routers import (
    admin,
    ai,
    applications,
    billing,
    checklist,
    companies,
    dashboard,
    health,
    opportunities,
    opportunity_requests,
    sectors,
    tasks,
    webhooks,
)
from app.auth import routes as auth_routes
from lib.utils import ApplicationError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the effective configuration on startup."""
    logger.info(f"Starting GovContract API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(
        "Integrations: "
        f"stripe={settings.stripe_enabled} smtp={settings.smtp_enabled} sam_gov={settings.sam_gov_enabled}"
    )

    yield

    logger.info("Shutting down GovContract API")


# Create FastAPI application
app = FastAPI(
    title="GovContract API",
    description="""
## Government Contracting Platform API

Helps small businesses find, qualify for and win government contracts.

### How It Works

1. **Set Up a Company** - Profile, certifications, NAICS codes
2. **Search Opportunities** - Federal awards, grants and SAM.gov notices, scored for fit
3. **Prepare** - Bidding checklist, AI document review, proposal drafting
4. **Apply** - Draft, submit and track applications through award
5. **Subscribe** - Plans unlock state and local jurisdictions and more seats

### Quick Start

```bash
# Search opportunities (public)
curl "http://localhost:8000/api/v1/opportunities/search?keyword=cybersecurity"

# Your dashboard
curl http://localhost:8000/api/v1/dashboard -H "Authorization: Bearer $TOKEN"
```
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Current user and profile setup"},
        {"name": "Companies", "description": "Company profile and team"},
        {"name": "Opportunities", "description": "Search and stored opportunities"},
        {"name": "Sectors", "description": "Healthcare and education directories"},
        {"name": "Applications", "description": "Application lifecycle"},
        {"name": "AI", "description": "Rule-based and OpenAI analysis"},
        {"name": "Checklist", "description": "Bidding readiness checklist and documents"},
        {"name": "Billing", "description": "Plans, checkout and usage"},
        {"name": "Webhooks", "description": "Payment provider callbacks"},
        {"name": "Opportunity Requests", "description": "Ask the team to find opportunities"},
        {"name": "Admin", "description": "Request review (admin emails only)"},
        {"name": "Dashboard", "description": "Company overview"},
        {"name": "Tasks", "description": "Background task triggers and progress"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(GovContractException)
async def handle_govcontract_exception(request: Request, exc: GovContractException):
    """Handle API exceptions (status, code and suggestion come from the exception)."""
    return await govcontract_exception_handler(request, exc)


@app.exception_handler(ApplicationError)
async def handle_application_error(request: Request, exc: ApplicationError):
    """Upstream failures (Supabase, OpenAI, government APIs) become 502."""
    logger.error(f"Upstream error on {request.url.path}: {exc}")
    return await application_error_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(auth_routes.router, prefix="/api/v1/auth", tags=["Auth"])

# Health check endpoints
app.include_router(health.router, prefix="/api/v1", tags=["Health"])

# Company and team endpoints
app.include_router(companies.router, prefix="/api/v1/companies", tags=["Companies"])

# Opportunity search and storage
app.include_router(opportunities.router, prefix="/api/v1/opportunities", tags=["Opportunities"])

# Sector directories
app.include_router(sectors.router, prefix="/api/v1/sectors", tags=["Sectors"])

# Application lifecycle
app.include_router(applications.router, prefix="/api/v1/applications", tags=["Applications"])

# AI analysis
app.include_router(ai.router, prefix="/api/v1/ai", tags=["AI"])

# Bidding checklist
app.include_router(checklist.router, prefix="/api/v1/company/checklist", tags=["Checklist"])

# Billing
app.include_router(billing.router, prefix="/api/v1/billing", tags=["Billing"])

# Payment provider webhooks
app.include_router(webhooks.router, prefix="/api/v1/webhooks", tags=["Webhooks"])

# Opportunity requests
app.include_router(
    opportunity_requests.router,
    prefix="/api/v1/opportunity-requests",
    tags=["Opportunity Requests"],
)

# Admin review
app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])

# Dashboard
app.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["Dashboard"])

# Task triggers and status
app.include_router(tasks.router, prefix="/api/v1/tasks", tags=["Tasks"])


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "GovContract API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
