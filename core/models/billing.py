# =============================================================================
# core/models/billing.py - Subscription Plan Schemas
# =============================================================================
# Plan catalog and billing request/response models. Each plan caps seats and
# unlocks a set of jurisdictions; the company's allowed_jurisdictions column
# is rewritten from the plan whenever Stripe reports a subscription change.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field


class BillingInterval(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"


class PlanTier(str, Enum):
    STARTER = "starter"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"


class SubscriptionPlan(BaseModel):
    id: PlanTier
    name: str
    monthly_price: int
    annual_price: int
    max_users: int
    allowed_jurisdictions: list[str]
    features: list[str]

    def price_id(self, interval: BillingInterval) -> str:
        """Plan price identifier sent as Checkout product metadata, e.g. price_professional_annual."""
        return f"price_{self.id.value}_{interval.value}"

    def amount(self, interval: BillingInterval) -> int:
        return self.monthly_price if interval == BillingInterval.MONTHLY else self.annual_price


SUBSCRIPTION_PLANS: dict[PlanTier, SubscriptionPlan] = {
    PlanTier.STARTER: SubscriptionPlan(
        id=PlanTier.STARTER,
        name="Starter",
        monthly_price=99,
        annual_price=990,
        max_users=1,
        allowed_jurisdictions=["federal"],
        features=[
            "Federal opportunities only",
            "1 user",
            "Basic AI analysis",
            "Email support",
            "10 applications per month",
        ],
    ),
    PlanTier.PROFESSIONAL: SubscriptionPlan(
        id=PlanTier.PROFESSIONAL,
        name="Professional",
        monthly_price=299,
        annual_price=2990,
        max_users=5,
        allowed_jurisdictions=["federal", "state"],
        features=[
            "Federal + State opportunities",
            "5 users",
            "Advanced AI analysis",
            "Priority support",
            "Unlimited applications",
            "Win probability scoring",
            "Competitor research",
        ],
    ),
    PlanTier.ENTERPRISE: SubscriptionPlan(
        id=PlanTier.ENTERPRISE,
        name="Enterprise",
        monthly_price=999,
        annual_price=9990,
        max_users=25,
        allowed_jurisdictions=["federal", "state", "local"],
        features=[
            "All jurisdictions (Federal, State, Local)",
            "25 users",
            "Premium AI analysis",
            "Dedicated support",
            "Custom integrations",
            "Advanced analytics",
            "Team collaboration tools",
            "API access",
        ],
    ),
}


class CheckoutRequest(BaseModel):
    plan_id: PlanTier
    interval: BillingInterval = BillingInterval.MONTHLY


class CommissionRequest(BaseModel):
    application_id: str
    contract_value: float = Field(..., gt=0)
    commission_rate: float = Field(default=0.03, gt=0, le=0.5)


class SessionUrlResponse(BaseModel):
    url: str
    session_id: str | None = None


class UsageStats(BaseModel):
    current_users: int
    max_users: int
    opportunities_viewed: int
    applications_submitted: int
    ai_credits_used: int
