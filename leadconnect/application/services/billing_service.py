"""Service for checkout sessions and Stripe webhook events."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from ...domain.models import AccountStatus, SubscriptionStatus
from ...domain.ports.persistence import CompanyRepository
from ...services.stripe_service import CheckoutSession, StripeService
from ..validation.forms import CheckoutForm
from .lead_service import LeadService

logger = logging.getLogger(__name__)

_STRIPE_STATUS_MAP = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.ACTIVE,
    "past_due": SubscriptionStatus.PAST_DUE,
    "unpaid": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELLED,
    "cancelled": SubscriptionStatus.CANCELLED,
    "incomplete_expired": SubscriptionStatus.CANCELLED,
}


def map_stripe_status(status: Optional[str]) -> str:
    return _STRIPE_STATUS_MAP.get(status or "", SubscriptionStatus.NONE)


def _get(obj: Any, key: str, default: Any = None) -> Any:
    try:
        value = obj[key]
    except (KeyError, TypeError, IndexError):
        return default
    return default if value is None else value


class BillingService:
    """Creates checkout sessions and applies payment-provider events."""

    def __init__(
        self,
        stripe_service: StripeService,
        companies: CompanyRepository,
        lead_service: LeadService,
        site_url: str,
        subscription_price_id: Optional[str] = None,
        exclusive_price_id: Optional[str] = None,
    ):
        self.stripe_service = stripe_service
        self.companies = companies
        self.lead_service = lead_service
        self.site_url = site_url.rstrip("/")
        self.subscription_price_id = subscription_price_id
        self.exclusive_price_id = exclusive_price_id
        self._handlers: Dict[str, Callable[[Any], None]] = {
            "checkout.session.completed": self.handle_checkout_completed,
            "customer.subscription.created": self.handle_subscription_changed,
            "customer.subscription.updated": self.handle_subscription_changed,
            "customer.subscription.deleted": self.handle_subscription_deleted,
            "invoice.payment_succeeded": self.handle_payment_succeeded,
            "invoice.payment_failed": self.handle_payment_failed,
        }

    def create_checkout_session(self, form: CheckoutForm) -> CheckoutSession:
        """
        Create a Stripe Checkout session for a subscription or an exclusive lead.

        Raises:
            NotFound: If an exclusive purchase names an unknown lead
            Conflict: If the lead is no longer exclusively purchasable
            UpstreamFailure: If Stripe rejects the request
        """
        metadata = {"companyName": form.company_name, "type": form.type}
        if form.type == "exclusive":
            self.lead_service.ensure_exclusively_purchasable(form.lead_id)
            metadata["leadId"] = str(form.lead_id)
            metadata["purchaseType"] = "exclusive"
            mode, price_id = "payment", self.exclusive_price_id
        else:
            metadata["subscriptionType"] = "basic"
            mode, price_id = "subscription", self.subscription_price_id

        return self.stripe_service.create_checkout_session(
            mode=mode,
            price_id=price_id,
            customer_email=form.company_email,
            success_url=f"{self.site_url}/payment-success.html?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.site_url}/company-portal.html",
            metadata=metadata,
        )

    def handle_event(self, event: Any) -> None:
        """Dispatch a verified webhook event; unknown types are logged and ignored."""
        event_type = _get(event, "type", "")
        data_object = _get(_get(event, "data", {}), "object", {})
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info("Unhandled Stripe event type: %s", event_type)
            return
        logger.info("Processing Stripe event %s (%s)", _get(event, "id", "?"), event_type)
        handler(data_object)

    # Event handlers ---------------------------------------------------------
    def handle_checkout_completed(self, session: Any) -> None:
        metadata = _get(session, "metadata", {})
        purchase_type = _get(metadata, "type")
        company_name = _get(metadata, "companyName")

        if purchase_type == "exclusive":
            lead_id = _get(metadata, "leadId")
            if not lead_id or not company_name:
                logger.warning("Exclusive checkout %s is missing lead metadata", _get(session, "id"))
                return
            self.lead_service.record_exclusive_purchase(
                int(lead_id), company_name, session_id=_get(session, "id")
            )
        elif purchase_type == "subscription":
            self._activate_subscription(session)
        else:
            logger.warning("Checkout session %s has unknown type %r", _get(session, "id"), purchase_type)

    def handle_subscription_changed(self, subscription: Any) -> None:
        self._set_subscription_status(
            _get(subscription, "customer"),
            map_stripe_status(_get(subscription, "status")),
            _get(subscription, "id"),
        )

    def handle_subscription_deleted(self, subscription: Any) -> None:
        self._set_subscription_status(
            _get(subscription, "customer"),
            SubscriptionStatus.CANCELLED,
            _get(subscription, "id"),
        )

    def handle_payment_succeeded(self, invoice: Any) -> None:
        logger.info("Payment succeeded for invoice %s", _get(invoice, "id"))

    def handle_payment_failed(self, invoice: Any) -> None:
        logger.warning("Payment failed for invoice %s", _get(invoice, "id"))
        self._set_subscription_status(
            _get(invoice, "customer"), SubscriptionStatus.PAST_DUE, _get(invoice, "subscription")
        )

    # Helpers ----------------------------------------------------------------
    def _activate_subscription(self, session: Any) -> None:
        email = _get(session, "customer_email") or _get(_get(session, "customer_details", {}), "email")
        company = self.companies.get_company_by_email(email.lower()) if email else None
        if company is None:
            logger.warning("Subscription checkout %s for unknown company; skipped", _get(session, "id"))
            return

        changes: Dict[str, Any] = {"subscription_status": SubscriptionStatus.ACTIVE}
        if _get(session, "customer"):
            changes["stripe_customer_id"] = _get(session, "customer")
        if _get(session, "subscription"):
            changes["stripe_subscription_id"] = _get(session, "subscription")
        if company.account_status == AccountStatus.EMAIL_VERIFIED:
            changes["account_status"] = AccountStatus.ACTIVE
        self.companies.update_company(company.id, **changes)
        logger.info("Subscription activated for company %s", company.id)

    def _set_subscription_status(
        self, customer_id: Optional[str], status: str, subscription_id: Optional[str]
    ) -> None:
        if not customer_id:
            logger.warning("Stripe event without customer id; cannot set status %s", status)
            return
        company = self.companies.get_company_by_stripe_customer_id(customer_id)
        if company is None:
            logger.warning("No company linked to Stripe customer %s", customer_id)
            return

        changes: Dict[str, Any] = {"subscription_status": status}
        if subscription_id:
            changes["stripe_subscription_id"] = subscription_id
        if status == SubscriptionStatus.ACTIVE and company.account_status == AccountStatus.EMAIL_VERIFIED:
            changes["account_status"] = AccountStatus.ACTIVE
        self.companies.update_company(company.id, **changes)
        logger.info("Company %s subscription status is now %s", company.id, status)
