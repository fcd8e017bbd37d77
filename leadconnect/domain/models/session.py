from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from .company import SubscriptionStatus


@dataclass(slots=True, frozen=True)
class SessionClaims:
    """Decoded identity and entitlement carried by a session token."""

    user_id: int
    email: str
    company_name: str
    subscription_status: str
    issued_at: datetime
    expires_at: datetime

    @property
    def has_active_subscription(self) -> bool:
        return self.subscription_status == SubscriptionStatus.ACTIVE

    def to_user(self) -> Dict[str, Any]:
        return {
            "id": self.user_id,
            "email": self.email,
            "companyName": self.company_name,
            "subscriptionStatus": self.subscription_status,
        }
