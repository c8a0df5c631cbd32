# =============================================================================
# core/services/billing_service.py - Subscriptions & Payments (Stripe)
# =============================================================================
# Stripe integration for plan subscriptions and success-fee commissions.
#
# Flow:
#   1. create_checkout_session -> user pays on Stripe Checkout
#   2. Stripe calls POST /api/v1/webhooks/stripe
#   3. process_webhook verifies the signature and updates `subscriptions`,
#      `payments` and the company's plan columns (subscription_tier,
#      allowed_jurisdictions, max_users)
#
# Every entry point raises PaymentsNotConfiguredError (503) when
# STRIPE_SECRET_KEY is unset.
# =============================================================================

import json
import logging
from typing import Any, Callable

import stripe

from app.config import settings
from app.exceptions import (
    ApplicationNotFoundError,
    BadRequestError,
    InvalidWebhookError,
    PaymentProviderError,
    PaymentsNotConfiguredError,
)
from core.models.application import ApplicationStatus
from core.models.billing import (
    BillingInterval,
    PlanTier,
    SUBSCRIPTION_PLANS,
    SessionUrlResponse,
    SubscriptionPlan,
    UsageStats,
)
from core.services.email_service import EmailService
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

CUSTOMERS_TABLE = "stripe_customers"
SUBSCRIPTIONS_TABLE = "subscriptions"
PAYMENTS_TABLE = "payments"

# Company plan columns after a subscription ends
LAPSED_PLAN_COLUMNS = {
    "subscription_tier": "free",
    "subscription_status": "canceled",
    "allowed_jurisdictions": ["federal"],
    "max_users": 1,
}

_STRIPE_INTERVAL = {BillingInterval.MONTHLY: "month", BillingInterval.ANNUAL: "year"}


def _configure() -> None:
    if not settings.stripe_enabled:
        raise PaymentsNotConfiguredError()
    stripe.api_key = settings.STRIPE_SECRET_KEY


def _subscription_url(query: str = "") -> str:
    return f"{settings.APP_URL.rstrip('/')}/company/subscription{query}"


def _plan_for(plan_id: str | None) -> SubscriptionPlan | None:
    try:
        return SUBSCRIPTION_PLANS[PlanTier(plan_id)]
    except ValueError:
        return None


class BillingService:

    # -------------------------------------------------------------------------
    # Customers & Sessions
    # -------------------------------------------------------------------------

    @staticmethod
    def get_or_create_customer(company: dict[str, Any], email: str | None) -> str:
        """Return the company's Stripe customer id, creating the customer once."""
        _configure()
        existing = SupabaseClient.fetch_one(CUSTOMERS_TABLE, company_id=company["id"])
        if existing:
            return existing["stripe_customer_id"]

        try:
            customer = stripe.Customer.create(
                email=email,
                name=company.get("name"),
                metadata={"company_id": str(company["id"])},
            )
        except stripe.StripeError as e:
            raise PaymentProviderError("customer creation", str(e))

        SupabaseClient.insert(
            CUSTOMERS_TABLE,
            {"company_id": company["id"], "stripe_customer_id": customer.id, "email": email},
        )
        logger.info(f"Created Stripe customer {customer.id} for company {company['id']}")
        return customer.id

    @staticmethod
    def create_checkout_session(
        company: dict[str, Any],
        email: str | None,
        plan_id: PlanTier,
        interval: BillingInterval = BillingInterval.MONTHLY,
    ) -> SessionUrlResponse:
        """Start a subscription-mode Stripe Checkout for one plan."""
        _configure()
        plan = SUBSCRIPTION_PLANS[plan_id]
        customer_id = BillingService.get_or_create_customer(company, email)
        metadata = {
            "company_id": str(company["id"]),
            "plan_id": plan.id.value,
            "interval": interval.value,
        }

        try:
            session = stripe.checkout.Session.create(
                mode="subscription",
                customer=customer_id,
                line_items=[{
                    "price_data": {
                        "currency": "usd",
                        "unit_amount": plan.amount(interval) * 100,
                        "recurring": {"interval": _STRIPE_INTERVAL[interval]},
                        "product_data": {
                            "name": f"GovContractAI {plan.name}",
                            "metadata": {"price_id": plan.price_id(interval)},
                        },
                    },
                    "quantity": 1,
                }],
                success_url=_subscription_url("?success=true&session_id={CHECKOUT_SESSION_ID}"),
                cancel_url=_subscription_url("?canceled=true"),
                metadata=metadata,
                subscription_data={"metadata": metadata},
            )
        except stripe.StripeError as e:
            raise PaymentProviderError("checkout", str(e))

        logger.info(f"Checkout session {session.id} for company {company['id']} ({plan.id.value}/{interval.value})")
        return SessionUrlResponse(url=session.url, session_id=session.id)

    @staticmethod
    def create_portal_session(company: dict[str, Any]) -> SessionUrlResponse:
        """
        Raises:
            BadRequestError: The company has never checked out
        """
        _configure()
        customer = SupabaseClient.fetch_one(CUSTOMERS_TABLE, company_id=company["id"])
        if not customer:
            raise BadRequestError(
                "No billing account found for this company",
                code="NO_BILLING_ACCOUNT",
                suggestion="Subscribe to a plan first with POST /api/v1/billing/checkout",
            )

        try:
            session = stripe.billing_portal.Session.create(
                customer=customer["stripe_customer_id"],
                return_url=_subscription_url(),
            )
        except stripe.StripeError as e:
            raise PaymentProviderError("billing portal", str(e))

        return SessionUrlResponse(url=session.url, session_id=session.id)

    # -------------------------------------------------------------------------
    # Subscription State
    # -------------------------------------------------------------------------

    @staticmethod
    def get_subscription(company: dict[str, Any]) -> dict[str, Any]:
        client = SupabaseClient.get_client()
        response = (
            client.table(SUBSCRIPTIONS_TABLE)
            .select("*")
            .eq("company_id", company["id"])
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        subscription = response.data[0] if response.data else None
        plan = _plan_for((subscription or {}).get("plan_id") or company.get("subscription_tier"))

        return {
            "subscription": subscription,
            "plan": plan.model_dump(mode="json") if plan else None,
            "plans": [p.model_dump(mode="json") for p in SUBSCRIPTION_PLANS.values()],
        }

    @staticmethod
    def _count(table: str, **filters: Any) -> int:
        client = SupabaseClient.get_client()
        query = client.table(table).select("id", count="exact")
        for column, value in filters.items():
            query = query.eq(column, value)
        return query.execute().count or 0

    @staticmethod
    def get_usage(company: dict[str, Any]) -> UsageStats:
        plan = _plan_for(company.get("subscription_tier"))
        client = SupabaseClient.get_client()
        submitted = (
            client.table("applications")
            .select("id", count="exact")
            .eq("company_id", company["id"])
            .neq("status", ApplicationStatus.DRAFT.value)
            .execute()
        )

        return UsageStats(
            current_users=BillingService._count("profiles", company_id=company["id"]),
            max_users=company.get("max_users") or (plan.max_users if plan else 1),
            opportunities_viewed=BillingService._count("opportunity_matches", company_id=company["id"]),
            applications_submitted=submitted.count or 0,
            ai_credits_used=BillingService._count("ai_analyses", company_id=company["id"]),
        )

    # -------------------------------------------------------------------------
    # Commissions
    # -------------------------------------------------------------------------

    @staticmethod
    def create_commission_payment(
        company: dict[str, Any],
        application_id: str,
        contract_value: float,
        commission_rate: float = 0.03,
    ) -> dict[str, Any]:
        """
        Create a PaymentIntent for the success fee on an awarded contract.

        Raises:
            ApplicationNotFoundError: Not the company's application
            BadRequestError: Application has not been awarded
        """
        _configure()
        application = SupabaseClient.fetch_one("applications", id=application_id)
        if not application or str(application.get("company_id")) != str(company["id"]):
            raise ApplicationNotFoundError(application_id)
        if application.get("status") != ApplicationStatus.AWARDED.value:
            raise BadRequestError(
                "Commission applies to awarded applications only",
                code="APPLICATION_NOT_AWARDED",
            )

        amount = round(contract_value * commission_rate, 2)
        customer_id = BillingService.get_or_create_customer(company, None)
        try:
            intent = stripe.PaymentIntent.create(
                amount=int(round(amount * 100)),
                currency="usd",
                customer=customer_id,
                automatic_payment_methods={"enabled": True},
                metadata={
                    "type": "commission",
                    "company_id": str(company["id"]),
                    "application_id": application_id,
                },
            )
        except stripe.StripeError as e:
            raise PaymentProviderError("commission payment", str(e))

        SupabaseClient.insert(
            PAYMENTS_TABLE,
            {
                "company_id": company["id"],
                "application_id": application_id,
                "stripe_payment_intent_id": intent.id,
                "amount": amount,
                "commission_rate": commission_rate,
                "contract_value": contract_value,
                "type": "commission",
                "status": "pending",
            },
        )
        logger.info(f"Commission {intent.id} of ${amount:,.2f} for application {application_id}")
        return {"payment_intent_id": intent.id, "client_secret": intent.client_secret, "amount": amount}

    # -------------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------------

    @staticmethod
    def process_webhook(payload: bytes, signature: str | None) -> dict[str, Any]:
        """
        Verify and apply a Stripe webhook event.

        Raises:
            PaymentsNotConfiguredError: Stripe or the webhook secret is unset
            InvalidWebhookError: Missing or invalid signature
        """
        _configure()
        if not settings.STRIPE_WEBHOOK_SECRET:
            raise PaymentsNotConfiguredError()
        if not signature:
            raise InvalidWebhookError("missing stripe-signature header")

        try:
            stripe.Webhook.construct_event(
                payload=payload, sig_header=signature, secret=settings.STRIPE_WEBHOOK_SECRET
            )
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise InvalidWebhookError(str(e))

        # Signature checked above; work on the plain JSON body
        event = json.loads(payload)
        event_type = event.get("type", "")
        obj = (event.get("data") or {}).get("object") or {}

        handler = _WEBHOOK_HANDLERS.get(event_type)
        if handler is None:
            logger.debug(f"Ignoring Stripe event {event_type}")
            return {"received": True, "type": event_type, "handled": False}

        handler(obj)
        logger.info(f"Processed Stripe event {event.get('id')} ({event_type})")
        return {"received": True, "type": event_type, "handled": True}

    @staticmethod
    def _apply_plan(company_id: str, plan: SubscriptionPlan) -> None:
        SupabaseClient.update(
            "companies",
            {
                "subscription_tier": plan.id.value,
                "subscription_status": "active",
                "allowed_jurisdictions": plan.allowed_jurisdictions,
                "max_users": plan.max_users,
                "updated_at": utc_now_iso(),
            },
            id=company_id,
        )

    @staticmethod
    def _on_checkout_completed(session: dict[str, Any]) -> None:
        metadata = session.get("metadata") or {}
        company_id = metadata.get("company_id")
        plan = _plan_for(metadata.get("plan_id"))
        if not company_id or not plan:
            logger.warning(f"Checkout session {session.get('id')} has no company/plan metadata")
            return

        client = SupabaseClient.get_client()
        client.table(SUBSCRIPTIONS_TABLE).upsert(
            {
                "company_id": company_id,
                "stripe_subscription_id": session.get("subscription"),
                "stripe_customer_id": session.get("customer"),
                "plan_id": plan.id.value,
                "interval": metadata.get("interval", BillingInterval.MONTHLY.value),
                "status": "active",
                "updated_at": utc_now_iso(),
            },
            on_conflict="stripe_subscription_id",
        ).execute()
        BillingService._apply_plan(company_id, plan)

        email = session.get("customer_email") or (session.get("customer_details") or {}).get("email")
        if email:
            EmailService.send_subscription_update(email, None, plan.name, "upgraded")

    @staticmethod
    def _on_subscription_updated(subscription: dict[str, Any]) -> None:
        metadata = subscription.get("metadata") or {}
        status = subscription.get("status", "")
        columns: dict[str, Any] = {"status": status, "updated_at": utc_now_iso()}
        if subscription.get("current_period_end"):
            columns["current_period_end"] = subscription["current_period_end"]
        if subscription.get("cancel_at_period_end") is not None:
            columns["cancel_at_period_end"] = subscription["cancel_at_period_end"]

        SupabaseClient.update(SUBSCRIPTIONS_TABLE, columns, stripe_subscription_id=subscription.get("id"))

        plan = _plan_for(metadata.get("plan_id"))
        if plan and metadata.get("company_id") and status in ("active", "trialing"):
            BillingService._apply_plan(metadata["company_id"], plan)

    @staticmethod
    def _on_subscription_deleted(subscription: dict[str, Any]) -> None:
        SupabaseClient.update(
            SUBSCRIPTIONS_TABLE,
            {"status": "canceled", "updated_at": utc_now_iso()},
            stripe_subscription_id=subscription.get("id"),
        )
        company_id = (subscription.get("metadata") or {}).get("company_id")
        if company_id:
            SupabaseClient.update("companies", {**LAPSED_PLAN_COLUMNS, "updated_at": utc_now_iso()}, id=company_id)

    @staticmethod
    def _on_payment_failed(invoice: dict[str, Any]) -> None:
        subscription_id = invoice.get("subscription")
        if subscription_id:
            SupabaseClient.update(
                SUBSCRIPTIONS_TABLE,
                {"status": "past_due", "updated_at": utc_now_iso()},
                stripe_subscription_id=subscription_id,
            )
        logger.warning(f"Invoice {invoice.get('id')} payment failed for subscription {subscription_id}")

    @staticmethod
    def _on_payment_succeeded(intent: dict[str, Any]) -> None:
        SupabaseClient.update(
            PAYMENTS_TABLE,
            {"status": "succeeded", "paid_at": utc_now_iso()},
            stripe_payment_intent_id=intent.get("id"),
        )


_WEBHOOK_HANDLERS: dict[str, Callable[[dict[str, Any]], None]] = {
    "checkout.session.completed": BillingService._on_checkout_completed,
    "customer.subscription.updated": BillingService._on_subscription_updated,
    "customer.subscription.deleted": BillingService._on_subscription_deleted,
    "invoice.payment_failed": BillingService._on_payment_failed,
    "payment_intent.succeeded": BillingService._on_payment_succeeded,
}
