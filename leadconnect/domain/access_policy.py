"""Caller-specific projection of lead records."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from .models import Lead, PublicLead, SessionClaims

EXCLUSIVE_WINDOW = timedelta(hours=24)

PLACEHOLDER_FIRST_NAME = "Subscribe"
PLACEHOLDER_LAST_NAME = "to view"
PLACEHOLDER_EMAIL = "subscription@required.com"
PLACEHOLDER_PHONE = "***-***-****"
PLACEHOLDER_ADDRESS = "Subscription required to view address"


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_in_exclusive_window(lead: Lead, now: Optional[datetime] = None) -> bool:
    if lead.exclusive_purchased_by:
        return False
    if lead.created_at is None:
        return False
    now = _utc(now or datetime.now(tz=timezone.utc))
    return now - _utc(lead.created_at) < EXCLUSIVE_WINDOW


def has_contact_access(lead: Lead, caller: Optional[SessionClaims]) -> bool:
    if caller is None or not caller.has_active_subscription:
        return False
    return not lead.exclusive_purchased_by


def project(
    lead: Lead,
    caller: Optional[SessionClaims],
    now: Optional[datetime] = None,
) -> PublicLead:
    """
    Build the view of ``lead`` that ``caller`` is entitled to.

    Contact fields are returned verbatim only to subscribed callers while no
    exclusive buyer is recorded; otherwise all five are replaced by fixed
    placeholders. Everything else is always visible.
    """
    now = now or datetime.now(tz=timezone.utc)

    if has_contact_access(lead, caller):
        first_name, last_name = lead.first_name, lead.last_name
        email, phone, address = lead.email, lead.phone, lead.address
    else:
        first_name, last_name = PLACEHOLDER_FIRST_NAME, PLACEHOLDER_LAST_NAME
        email, phone, address = PLACEHOLDER_EMAIL, PLACEHOLDER_PHONE, PLACEHOLDER_ADDRESS

    return PublicLead(
        id=lead.id,
        property_type=lead.property_type,
        timeline=lead.timeline,
        details=lead.details,
        photos=list(lead.photo_urls),
        zip_code=lead.zip_code,
        date_submitted=lead.created_at.date().isoformat() if lead.created_at else None,
        price=lead.price,
        is_in_exclusive_window=is_in_exclusive_window(lead, now),
        exclusive_purchased_by=lead.exclusive_purchased_by,
        exclusive_purchase_date=(
            lead.exclusive_purchase_date.isoformat() if lead.exclusive_purchase_date else None
        ),
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        address=address,
    )


def project_all(
    leads: Iterable[Lead],
    caller: Optional[SessionClaims],
    now: Optional[datetime] = None,
) -> List[PublicLead]:
    now = now or datetime.now(tz=timezone.utc)
    return [project(lead, caller, now) for lead in leads]
