"""Stripe checkout and webhook endpoints."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ....application.services.billing_service import BillingService
from ....application.validation.validator import validate_or_raise
from ....core.dependencies import get_billing_service, get_stripe_service
from ....services.stripe_service import StripeService, WebhookSignatureError
from ...api.dependencies import read_json_body
from ...api.schemas.stripe_schemas import CheckoutSessionResponse, WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Stripe Payments"])


@router.post("/checkout", response_model=CheckoutSessionResponse)
def create_checkout(
    payload: Dict[str, Any] = Depends(read_json_body),
    billing_service: BillingService = Depends(get_billing_service),
) -> CheckoutSessionResponse:
    """Create a Checkout session for a subscription or an exclusive lead purchase."""
    form = validate_or_raise("checkout", payload)
    session = billing_service.create_checkout_session(form)
    return CheckoutSessionResponse(session_id=session.session_id, url=session.url)


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_service: StripeService = Depends(get_stripe_service),
    billing_service: BillingService = Depends(get_billing_service),
):
    """
    Receive Stripe events.

    Signature failures are rejected with 400. Once verified, the event is
    always acknowledged so Stripe does not retry; processing errors are logged.
    """
    payload = await request.body()
    try:
        event = stripe_service.construct_event(payload, request.headers.get("stripe-signature"))
    except WebhookSignatureError as exc:
        return JSONResponse(status_code=400, content={"error": f"Webhook Error: {exc}"})

    try:
        billing_service.handle_event(event)
    except Exception:
        logger.exception("Webhook handler failed for event %s", _event_id(event))

    return WebhookAck()


def _event_id(event: Any) -> str:
    try:
        return str(event["id"])
    except (KeyError, TypeError):
        return "?"
