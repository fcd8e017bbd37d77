"""Use cases around submitted leads: intake, caller-specific listings and exclusive purchase."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from ...core.exceptions import Conflict, NotFound, RateLimited, SubscriptionRequired
from ...domain import access_policy
from ...domain.models import Lead, LeadQuery, PublicLead, SessionClaims
from ...domain.ports.persistence import LeadRepository
from ...domain.ports.rate_limiting import RateLimiter
from ..validation.forms import LeadQueryParams, LeadSubmissionForm

logger = logging.getLogger(__name__)


class LeadService:
    def __init__(
        self,
        leads: LeadRepository,
        lead_price: float = 39.99,
        listing_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self._leads = leads
        self._lead_price = lead_price
        self._listing_limiter = listing_limiter

    def submit(self, form: LeadSubmissionForm) -> Lead:
        lead = self._leads.create_lead(
            {
                "first_name": form.first_name,
                "last_name": form.last_name,
                "email": form.email,
                "phone": form.phone,
                "address": form.address,
                "zip_code": form.zip_code,
                "property_type": form.property_type,
                "timeline": form.timeline,
                "details": form.details,
                "photo_urls": list(form.photo_urls),
                "price": self._lead_price,
                "purchased": False,
                "created_at": datetime.now(tz=timezone.utc),
            }
        )
        logger.info("Lead %s submitted (%s, %s)", lead.id, lead.property_type, lead.timeline)
        return lead

    def list_for_caller(
        self,
        caller: SessionClaims,
        params: LeadQueryParams,
        client_ip: str = "unknown",
        now: Optional[datetime] = None,
    ) -> List[PublicLead]:
        """
        Return one page of leads projected for ``caller``.

        Leads already bought by the caller's company are left out.

        Raises:
            RateLimited: If the caller exceeded the listing quota
        """
        if self._listing_limiter is not None:
            decision = self._listing_limiter.hit(f"{caller.user_id}:{client_ip}")
            if not decision.allowed:
                logger.warning("Lead listing rate limit hit for company %s", caller.user_id)
                raise RateLimited(decision.retry_after)

        zip_min, zip_max = params.zip_bounds()
        query = LeadQuery(
            limit=params.limit,
            offset=params.offset,
            timeline=params.timeline,
            property_type=params.property_type,
            zip_min=zip_min,
            zip_max=zip_max,
            exclude_buyer=caller.company_name,
        )
        leads = self._leads.list_leads(query)
        logger.debug("Serving %d leads to company %s", len(leads), caller.user_id)
        return access_policy.project_all(leads, caller, now)

    def get_for_caller(self, lead_id: int, caller: SessionClaims) -> PublicLead:
        if not caller.has_active_subscription:
            raise SubscriptionRequired()
        lead = self._leads.get_lead(lead_id)
        if lead is None:
            raise NotFound("Lead not found")
        return access_policy.project(lead, caller)

    def ensure_exclusively_purchasable(self, lead_id: int, now: Optional[datetime] = None) -> Lead:
        """
        Raises:
            NotFound: If the lead does not exist
            Conflict: If the exclusive window has closed or a buyer is recorded
        """
        lead = self._leads.get_lead(lead_id)
        if lead is None:
            raise NotFound("Lead not found")
        if not access_policy.is_in_exclusive_window(lead, now):
            raise Conflict("Lead is no longer available for exclusive purchase")
        return lead

    def record_exclusive_purchase(
        self,
        lead_id: int,
        buyer: str,
        session_id: Optional[str] = None,
        purchased_at: Optional[datetime] = None,
    ) -> bool:
        purchased_at = purchased_at or datetime.now(tz=timezone.utc)
        won = self._leads.mark_exclusive_purchase(lead_id, buyer, purchased_at, session_id)
        if won:
            logger.info("Lead %s exclusively purchased by %s", lead_id, buyer)
        else:
            logger.warning(
                "Exclusive purchase of lead %s by %s ignored; a buyer is already recorded",
                lead_id,
                buyer,
            )
        return won
