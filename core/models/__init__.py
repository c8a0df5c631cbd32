# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# Pydantic schemas that define the API contract:
# - company.py: companies, profiles, roles, team invites
# - opportunity.py: normalized search results and stored opportunities
# - application.py: application lifecycle and payloads
# - billing.py: subscription plans and billing requests
# =============================================================================

# -----------------------------------------------------------------------------
# Company Models
# -----------------------------------------------------------------------------
from .company import (
    CompanyCreate,
    CompanySize,
    CompanyUpdate,
    MANAGER_ROLES,
    ProfileRole,
    ProfileSetup,
    TeamInvite,
)

# -----------------------------------------------------------------------------
# Opportunity Models
# -----------------------------------------------------------------------------
from .opportunity import (
    ApproveOpportunities,
    CombinedOpportunity,
    Jurisdiction,
    OpportunityCreate,
    OpportunityLink,
    OpportunityRequestStatus,
    OpportunitySearchResponse,
    OpportunitySource,
    OpportunityType,
    SearchMetadata,
    SelectedOpportunity,
)

# -----------------------------------------------------------------------------
# Application Models
# -----------------------------------------------------------------------------
from .application import (
    ApplicationContent,
    ApplicationCreate,
    ApplicationList,
    ApplicationStatus,
    ApplicationUpdate,
    Pagination,
    POST_SUBMISSION_FIELDS,
    SortField,
    STATUS_TRANSITIONS,
)

# -----------------------------------------------------------------------------
# Billing Models
# -----------------------------------------------------------------------------
from .billing import (
    BillingInterval,
    CheckoutRequest,
    CommissionRequest,
    PlanTier,
    SessionUrlResponse,
    SUBSCRIPTION_PLANS,
    SubscriptionPlan,
    UsageStats,
)

__all__ = [
    # Company
    "CompanyCreate",
    "CompanySize",
    "CompanyUpdate",
    "MANAGER_ROLES",
    "ProfileRole",
    "ProfileSetup",
    "TeamInvite",
    # Opportunity
    "ApproveOpportunities",
    "CombinedOpportunity",
    "Jurisdiction",
    "OpportunityCreate",
    "OpportunityLink",
    "OpportunityRequestStatus",
    "OpportunitySearchResponse",
    "OpportunitySource",
    "OpportunityType",
    "SearchMetadata",
    "SelectedOpportunity",
    # Application
    "ApplicationContent",
    "ApplicationCreate",
    "ApplicationList",
    "ApplicationStatus",
    "ApplicationUpdate",
    "Pagination",
    "POST_SUBMISSION_FIELDS",
    "SortField",
    "STATUS_TRANSITIONS",
    # Billing
    "BillingInterval",
    "CheckoutRequest",
    "CommissionRequest",
    "PlanTier",
    "SessionUrlResponse",
    "SUBSCRIPTION_PLANS",
    "SubscriptionPlan",
    "UsageStats",
]
