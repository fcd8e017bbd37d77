"""Domain models for the LeadConnect application."""

from .company import AccountStatus, Company, SubscriptionStatus
from .lead import MAX_PHOTOS, PROPERTY_TYPES, TIMELINES, Lead, LeadQuery, PublicLead
from .session import SessionClaims

__all__ = [
    "AccountStatus",
    "Company",
    "Lead",
    "LeadQuery",
    "MAX_PHOTOS",
    "PROPERTY_TYPES",
    "PublicLead",
    "SessionClaims",
    "SubscriptionStatus",
    "TIMELINES",
]
