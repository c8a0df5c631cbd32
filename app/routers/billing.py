# =============================================================================
# app/routers/billing.py - Subscription & Payment Endpoints
# =============================================================================
# Plans are public; everything else acts on the caller's company. Checkout,
# portal and commission payments require a company owner or admin.
#
# Stripe calls back into /api/v1/webhooks/stripe (app/routers/webhooks.py).
# =============================================================================

from typing import Any

from fastapi import APIRouter, Depends

from app.auth import require_company_manager
from app.dependencies import CurrentCompany
from core.models.billing import (
    CheckoutRequest,
    CommissionRequest,
    SUBSCRIPTION_PLANS,
    SessionUrlResponse,
    UsageStats,
)
from core.services.billing_service import BillingService

router = APIRouter()


@router.get("/plans")
async def list_plans():
    return {"plans": [plan.model_dump(mode="json") for plan in SUBSCRIPTION_PLANS.values()]}


@router.post("/checkout", response_model=SessionUrlResponse)
def create_checkout(
    body: CheckoutRequest,
    company: CurrentCompany,
    manager: dict[str, Any] = Depends(require_company_manager),
):
    """Start Stripe Checkout; redirect the browser to the returned url."""
    return BillingService.create_checkout_session(
        company, manager.get("email"), body.plan_id, body.interval
    )


@router.post("/portal", response_model=SessionUrlResponse)
def create_portal(
    company: CurrentCompany,
    manager: dict[str, Any] = Depends(require_company_manager),
):
    return BillingService.create_portal_session(company)


@router.get("/subscription")
async def get_subscription(company: CurrentCompany):
    return BillingService.get_subscription(company)


@router.get("/usage", response_model=UsageStats)
async def get_usage(company: CurrentCompany):
    return BillingService.get_usage(company)


@router.post("/commission")
def create_commission(
    body: CommissionRequest,
    company: CurrentCompany,
    manager: dict[str, Any] = Depends(require_company_manager),
):
    """Success fee on an awarded contract (default 3% of contract value)."""
    return BillingService.create_commission_payment(
        company, body.application_id, body.contract_value, body.commission_rate
    )
