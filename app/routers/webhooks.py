# =============================================================================
# app/routers/webhooks.py - Inbound Provider Webhooks
# =============================================================================
# Stripe posts subscription and payment events here. The raw body is passed
# through untouched; signature verification needs the exact bytes.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Header, Request

from app.exceptions import InvalidWebhookError
from core.services.billing_service import BillingService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Annotated[str | None, Header(alias="stripe-signature")] = None,
):
    """
    Verify and apply a Stripe event.

    Raises:
        400: Missing or invalid stripe-signature header
        503: Stripe is not configured
    """
    if not stripe_signature:
        raise InvalidWebhookError("missing stripe-signature header")

    payload = await request.body()
    return BillingService.process_webhook(payload, stripe_signature)
