from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

PROPERTY_TYPES = ("house", "condo", "apartment", "storage", "other")
TIMELINES = ("asap", "month", "1-3months", "flexible", "planning")

MAX_PHOTOS = 12


@dataclass(slots=True)
class Lead:
    id: int
    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    zip_code: Optional[str]
    property_type: str
    timeline: str
    details: str
    photo_urls: List[str] = field(default_factory=list)
    price: float = 39.99
    purchased: bool = False
    purchased_by: Optional[str] = None
    exclusive_purchased_by: Optional[str] = None
    exclusive_purchase_date: Optional[datetime] = None
    stripe_session_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(slots=True)
class LeadQuery:
    """Filters and paging for a lead listing."""

    limit: int = 20
    offset: int = 0
    timeline: Optional[str] = None
    property_type: Optional[str] = None
    zip_min: Optional[str] = None
    zip_max: Optional[str] = None
    exclude_buyer: Optional[str] = None


@dataclass(slots=True)
class PublicLead:
    """Caller-specific projection of a lead."""

    id: int
    property_type: str
    timeline: str
    details: str
    photos: List[str]
    zip_code: Optional[str]
    date_submitted: Optional[str]
    price: float
    is_in_exclusive_window: bool
    exclusive_purchased_by: Optional[str]
    exclusive_purchase_date: Optional[str]
    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
