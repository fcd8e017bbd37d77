"""Row <-> entity conversion shared by the persistence backends."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from ...domain.models import Company, Lead

COMPANY_FIELDS = (
    "email",
    "company_name",
    "password_hash",
    "first_name",
    "last_name",
    "phone",
    "business_address",
    "business_type",
    "years_in_business",
    "service_areas",
    "license_number",
    "insurance_carrier",
    "website_url",
    "terms_agreed",
    "background_check_consent",
    "communication_consent",
    "professional_conduct_agreed",
    "email_verified",
    "verification_token",
    "verification_token_issued_at",
    "consumed_token_hash",
    "account_status",
    "subscription_status",
    "stripe_customer_id",
    "stripe_subscription_id",
    "created_at",
    "updated_at",
)

LEAD_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "address",
    "zip_code",
    "property_type",
    "timeline",
    "details",
    "photo_urls",
    "price",
    "purchased",
    "purchased_by",
    "exclusive_purchased_by",
    "exclusive_purchase_date",
    "stripe_session_id",
    "created_at",
)

_BOOLEAN_FIELDS = {
    "terms_agreed",
    "background_check_consent",
    "communication_consent",
    "professional_conduct_agreed",
    "email_verified",
    "purchased",
}
_TIMESTAMP_FIELDS = {
    "verification_token_issued_at",
    "created_at",
    "updated_at",
    "exclusive_purchase_date",
}


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def split_photo_urls(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, list):
        return [str(item) for item in value if item]
    return [item for item in str(value).split(" ") if item]


def to_storage(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Serialise entity attributes into column values (ISO timestamps, space-joined photos)."""
    row: Dict[str, Any] = {}
    for key, value in fields.items():
        if key in _TIMESTAMP_FIELDS:
            value = format_timestamp(value)
        elif key == "photo_urls":
            value = " ".join(value or [])
        row[key] = value
    return row


def company_from_row(row: Mapping[str, Any]) -> Company:
    kwargs = {name: row[name] for name in COMPANY_FIELDS if name in row.keys()}
    for name in _BOOLEAN_FIELDS & kwargs.keys():
        kwargs[name] = bool(kwargs[name])
    for name in _TIMESTAMP_FIELDS & kwargs.keys():
        kwargs[name] = parse_timestamp(kwargs[name])
    return Company(id=row["id"], **kwargs)


def lead_from_row(row: Mapping[str, Any]) -> Lead:
    kwargs = {name: row[name] for name in LEAD_FIELDS if name in row.keys()}
    kwargs["photo_urls"] = split_photo_urls(kwargs.get("photo_urls"))
    kwargs["purchased"] = bool(kwargs.get("purchased"))
    if kwargs.get("price") is None:
        kwargs.pop("price", None)
    else:
        kwargs["price"] = float(kwargs["price"])
    for name in _TIMESTAMP_FIELDS & kwargs.keys():
        kwargs[name] = parse_timestamp(kwargs[name])
    kwargs.setdefault("zip_code", None)
    return Lead(id=row["id"], **kwargs)
