# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================
# Stateless service classes (all @staticmethod) used by the routers and the
# Celery tasks. Each service scopes its Supabase queries by company_id.
# =============================================================================

from .application_service import ApplicationService, FileUpload
from .billing_service import BillingService
from .checklist_service import ChecklistService, require_manager
from .company_service import CompanyService
from .dashboard_service import DashboardService
from .email_service import EmailResult, EmailService, render_email
from .opportunity_request_service import OpportunityRequestService
from .opportunity_service import OpportunityService
from .sector_service import SectorService

__all__ = [
    "ApplicationService",
    "FileUpload",
    "BillingService",
    "ChecklistService",
    "require_manager",
    "CompanyService",
    "DashboardService",
    "EmailResult",
    "EmailService",
    "render_email",
    "OpportunityRequestService",
    "OpportunityService",
    "SectorService",
]
