# =============================================================================
# tests/test_billing.py - Stripe Billing Tests
# =============================================================================
# Stripe API calls are patched at the SDK resource (stripe.checkout.Session,
# stripe.Webhook, ...); the SDK's exception classes stay real.
# =============================================================================

import json
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from app.config import settings
from app.exceptions import (
    ApplicationNotFoundError,
    BadRequestError,
    InvalidWebhookError,
    PaymentProviderError,
    PaymentsNotConfiguredError,
)
from core.models.billing import SUBSCRIPTION_PLANS, BillingInterval, PlanTier
from core.services.billing_service import LAPSED_PLAN_COLUMNS, BillingService
from lib.supabase_client import SupabaseClient


@pytest.fixture
def stripe_keys(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "whsec_123")


@pytest.fixture
def db(fake_supabase):
    with patch.object(SupabaseClient, "fetch_one") as fetch_one, \
            patch.object(SupabaseClient, "insert") as insert, \
            patch.object(SupabaseClient, "update") as update:
        yield SimpleNamespace(fake=fake_supabase, fetch_one=fetch_one, insert=insert, update=update)


@pytest.fixture
def email():
    with patch("core.services.billing_service.EmailService") as mock:
        yield mock


# =============================================================================
# Plans
# =============================================================================

class TestPlans:

    def test_price_lookup_key_and_amounts(self):
        plan = SUBSCRIPTION_PLANS[PlanTier.PROFESSIONAL]

        assert plan.price_id(BillingInterval.ANNUAL) == "price_professional_annual"
        assert plan.amount(BillingInterval.MONTHLY) == 299
        assert plan.amount(BillingInterval.ANNUAL) == 2990

    def test_jurisdictions_grow_with_tier(self):
        assert SUBSCRIPTION_PLANS[PlanTier.STARTER].allowed_jurisdictions == ["federal"]
        assert SUBSCRIPTION_PLANS[PlanTier.ENTERPRISE].allowed_jurisdictions == ["federal", "state", "local"]


# =============================================================================
# Checkout & Portal
# =============================================================================

class TestCheckout:

    def test_requires_stripe_key(self, db, company, monkeypatch):
        monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "")

        with pytest.raises(PaymentsNotConfiguredError) as exc_info:
            BillingService.create_checkout_session(company, "owner@acme.test", PlanTier.STARTER)

        assert exc_info.value.status_code == 503

    def test_checkout_session(self, stripe_keys, db, company):
        db.fetch_one.return_value = {"stripe_customer_id": "cus_1"}
        session = SimpleNamespace(id="cs_1", url="https://checkout.stripe.com/cs_1")

        with patch("stripe.checkout.Session.create", return_value=session) as create:
            result = BillingService.create_checkout_session(
                company, "owner@acme.test", PlanTier.PROFESSIONAL, BillingInterval.MONTHLY
            )

        assert result.url == "https://checkout.stripe.com/cs_1"
        assert result.session_id == "cs_1"
        kwargs = create.call_args.kwargs
        assert kwargs["mode"] == "subscription"
        assert kwargs["customer"] == "cus_1"
        assert kwargs["line_items"] == [{
            "price_data": {
                "currency": "usd",
                "unit_amount": 29900,
                "recurring": {"interval": "month"},
                "product_data": {
                    "name": "GovContractAI Professional",
                    "metadata": {"price_id": "price_professional_monthly"},
                },
            },
            "quantity": 1,
        }]
        assert kwargs["metadata"] == {
            "company_id": "company-123",
            "plan_id": "professional",
            "interval": "monthly",
        }
        assert kwargs["success_url"].startswith(
            "https://app.govcontract.test/company/subscription?success=true"
        )

    def test_creates_customer_once(self, stripe_keys, db, company):
        db.fetch_one.return_value = None

        with patch("stripe.Customer.create", return_value=SimpleNamespace(id="cus_new")) as create:
            customer_id = BillingService.get_or_create_customer(company, "owner@acme.test")

        assert customer_id == "cus_new"
        assert create.call_args.kwargs["metadata"] == {"company_id": "company-123"}
        table, row = db.insert.call_args[0]
        assert table == "stripe_customers"
        assert row["stripe_customer_id"] == "cus_new"

    def test_stripe_error_becomes_provider_error(self, stripe_keys, db, company):
        db.fetch_one.return_value = None

        with patch("stripe.Customer.create", side_effect=stripe.APIConnectionError("down")):
            with pytest.raises(PaymentProviderError) as exc_info:
                BillingService.get_or_create_customer(company, None)

        assert exc_info.value.status_code == 502

    def test_portal_needs_billing_account(self, stripe_keys, db, company):
        db.fetch_one.return_value = None

        with pytest.raises(BadRequestError) as exc_info:
            BillingService.create_portal_session(company)

        assert exc_info.value.code == "NO_BILLING_ACCOUNT"


# =============================================================================
# Usage & Commission
# =============================================================================

def test_usage_counts(fake_supabase, company):
    fake_supabase.tables.update({
        "profiles": [{"id": "u1"}, {"id": "u2"}],
        "opportunity_matches": [{"id": 1}, {"id": 2}, {"id": 3}],
        "applications": [{"id": "a1"}],
        "ai_analyses": [{"id": 1}] * 4,
    })
    company = dict(company, subscription_tier="professional", max_users=None)

    usage = BillingService.get_usage(company)

    assert usage.current_users == 2
    assert usage.max_users == 5
    assert usage.opportunities_viewed == 3
    assert usage.applications_submitted == 1
    assert usage.ai_credits_used == 4
    [applications] = fake_supabase.queries_for("applications")
    assert applications.called("neq")[0][0] == ("status", "draft")


class TestCommission:

    def test_requires_awarded_application(self, stripe_keys, db, company):
        db.fetch_one.return_value = {"id": "app-1", "company_id": "company-123", "status": "submitted"}

        with pytest.raises(BadRequestError) as exc_info:
            BillingService.create_commission_payment(company, "app-1", 250_000)

        assert exc_info.value.code == "APPLICATION_NOT_AWARDED"

    def test_other_company_application(self, stripe_keys, db, company):
        db.fetch_one.return_value = {"id": "app-1", "company_id": "other", "status": "awarded"}

        with pytest.raises(ApplicationNotFoundError):
            BillingService.create_commission_payment(company, "app-1", 250_000)

    def test_payment_intent_for_three_percent(self, stripe_keys, db, company):
        db.fetch_one.side_effect = [
            {"id": "app-1", "company_id": "company-123", "status": "awarded"},
            {"stripe_customer_id": "cus_1"},
        ]
        intent = SimpleNamespace(id="pi_1", client_secret="pi_1_secret")

        with patch("stripe.PaymentIntent.create", return_value=intent) as create:
            result = BillingService.create_commission_payment(company, "app-1", 250_000)

        assert result == {"payment_intent_id": "pi_1", "client_secret": "pi_1_secret", "amount": 7500.0}
        assert create.call_args.kwargs["amount"] == 750_000
        assert create.call_args.kwargs["metadata"]["type"] == "commission"
        table, row = db.insert.call_args[0]
        assert table == "payments"
        assert row["status"] == "pending"


# =============================================================================
# Webhooks
# =============================================================================

def event(event_type: str, obj: dict) -> bytes:
    return json.dumps({"id": "evt_1", "type": event_type, "data": {"object": obj}}).encode()


class TestWebhooks:

    def test_missing_signature(self, stripe_keys, db):
        with pytest.raises(InvalidWebhookError):
            BillingService.process_webhook(b"{}", None)

    def test_missing_webhook_secret(self, stripe_keys, db, monkeypatch):
        monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "")

        with pytest.raises(PaymentsNotConfiguredError):
            BillingService.process_webhook(b"{}", "t=1,v1=abc")

    def test_bad_signature(self, stripe_keys, db):
        error = stripe.SignatureVerificationError("No signatures found", "t=1,v1=abc")

        with patch("stripe.Webhook.construct_event", side_effect=error):
            with pytest.raises(InvalidWebhookError):
                BillingService.process_webhook(b"{}", "t=1,v1=abc")

    def test_checkout_completed_applies_plan(self, stripe_keys, db, email):
        payload = event("checkout.session.completed", {
            "id": "cs_1",
            "subscription": "sub_1",
            "customer": "cus_1",
            "customer_email": "owner@acme.test",
            "metadata": {"company_id": "company-123", "plan_id": "enterprise", "interval": "annual"},
        })

        with patch("stripe.Webhook.construct_event"):
            result = BillingService.process_webhook(payload, "t=1,v1=abc")

        assert result == {"received": True, "type": "checkout.session.completed", "handled": True}
        [subscription] = db.fake.writes("subscriptions", "upsert")
        assert subscription["stripe_subscription_id"] == "sub_1"
        assert subscription["plan_id"] == "enterprise"
        assert subscription["interval"] == "annual"

        table, columns = db.update.call_args[0]
        assert table == "companies"
        assert columns["subscription_tier"] == "enterprise"
        assert columns["allowed_jurisdictions"] == ["federal", "state", "local"]
        assert columns["max_users"] == 25
        assert db.update.call_args.kwargs == {"id": "company-123"}
        email.send_subscription_update.assert_called_once_with(
            "owner@acme.test", None, "Enterprise", "upgraded"
        )

    def test_subscription_deleted_reverts_to_free(self, stripe_keys, db):
        payload = event("customer.subscription.deleted", {
            "id": "sub_1",
            "metadata": {"company_id": "company-123"},
        })

        with patch("stripe.Webhook.construct_event"):
            BillingService.process_webhook(payload, "t=1,v1=abc")

        subscription_call, company_call = db.update.call_args_list
        assert subscription_call.args[1]["status"] == "canceled"
        assert subscription_call.kwargs == {"stripe_subscription_id": "sub_1"}
        for column, value in LAPSED_PLAN_COLUMNS.items():
            assert company_call.args[1][column] == value

    def test_payment_failed_marks_past_due(self, stripe_keys, db):
        payload = event("invoice.payment_failed", {"id": "in_1", "subscription": "sub_1"})

        with patch("stripe.Webhook.construct_event"):
            BillingService.process_webhook(payload, "t=1,v1=abc")

        assert db.update.call_args.args[1]["status"] == "past_due"

    def test_unknown_event_is_acknowledged(self, stripe_keys, db):
        payload = event("customer.created", {"id": "cus_1"})

        with patch("stripe.Webhook.construct_event"):
            result = BillingService.process_webhook(payload, "t=1,v1=abc")

        assert result["handled"] is False
        db.update.assert_not_called()
