"""Stripe payment integration service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import stripe

from ..core.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)


class WebhookSignatureError(ValueError):
    """Raised when a webhook payload cannot be authenticated."""


@dataclass(slots=True, frozen=True)
class CheckoutSession:
    session_id: str
    url: Optional[str]


class StripeService:
    """Thin wrapper around the Stripe SDK calls the marketplace relies on."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        publishable_key: Optional[str] = None,
        webhook_secret: Optional[str] = None,
    ) -> None:
        self.publishable_key = publishable_key
        self.webhook_secret = webhook_secret
        self._secret_key = secret_key
        if secret_key:
            stripe.api_key = secret_key
        else:
            logger.warning("STRIPE_SECRET_KEY not set; checkout sessions cannot be created")

    @property
    def is_configured(self) -> bool:
        return bool(self._secret_key)

    def create_checkout_session(
        self,
        *,
        mode: str,
        price_id: Optional[str],
        customer_email: str,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
    ) -> CheckoutSession:
        """
        Create a hosted Checkout session for a single line item.

        Raises:
            UpstreamFailure: If Stripe is not configured or the API call fails
        """
        if not self._secret_key:
            raise UpstreamFailure("Failed to create checkout session", details="Stripe is not configured")
        if not price_id:
            raise UpstreamFailure(
                "Failed to create checkout session", details=f"No Stripe price configured for {mode}"
            )

        try:
            session = stripe.checkout.Session.create(
                payment_method_types=["card"],
                mode=mode,
                line_items=[{"price": price_id, "quantity": 1}],
                customer_email=customer_email,
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=metadata,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe checkout error: %s", exc)
            raise UpstreamFailure("Failed to create checkout session", details=str(exc)) from exc

        logger.info("Created %s checkout session %s for %s", mode, session.id, customer_email)
        return CheckoutSession(session_id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify a webhook payload against the endpoint secret and decode it.

        Raises:
            WebhookSignatureError: If the secret is missing or verification fails
        """
        if not self.webhook_secret:
            raise WebhookSignatureError("Webhook secret is not configured")
        if not signature:
            raise WebhookSignatureError("Missing Stripe-Signature header")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (stripe.SignatureVerificationError, ValueError) as exc:
            logger.warning("Webhook signature verification failed: %s", exc)
            raise WebhookSignatureError(str(exc)) from exc
        return event
