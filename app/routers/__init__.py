# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health and readiness checks
# - companies.py: Company profile and team invitations
# - opportunities.py: Multi-source search, alerts, stored opportunities
# - sectors.py: Healthcare provider and education institution directories
# - applications.py: Application CRUD, submission and status transitions
# - ai.py: Rule-based and OpenAI analysis
# - checklist.py: Bidding checklist and supporting documents
# - billing.py: Plans, checkout, portal, usage, commission payments
# - webhooks.py: Stripe webhook receiver
# - opportunity_requests.py: Users asking for curated opportunities
# - admin.py: Admin review of opportunity requests
# - dashboard.py: Company overview
# - tasks.py: Background task trigger and status
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import admin
from . import ai
from . import applications
from . import billing
from . import checklist
from . import companies
from . import dashboard
from . import health
from . import opportunities
from . import opportunity_requests
from . import sectors
from . import tasks
from . import webhooks

__all__ = [
    "admin",
    "ai",
    "applications",
    "billing",
    "checklist",
    "companies",
    "dashboard",
    "health",
    "opportunities",
    "opportunity_requests",
    "sectors",
    "tasks",
    "webhooks",
]
