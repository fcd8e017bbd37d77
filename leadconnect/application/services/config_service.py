"""Service exposing client configuration for the public and company tiers."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ...core.exceptions import RateLimited
from ...domain.access_policy import EXCLUSIVE_WINDOW
from ...domain.models import MAX_PHOTOS, SessionClaims
from ...domain.ports.rate_limiting import RateLimiter

logger = logging.getLogger(__name__)


class ConfigService:
    def __init__(
        self,
        config_limiter: RateLimiter,
        lead_price: float,
        listing_requests_per_hour: int,
        stripe_publishable_key: Optional[str] = None,
    ) -> None:
        self._limiter = config_limiter
        self._lead_price = lead_price
        self._listing_requests_per_hour = listing_requests_per_hour
        self._stripe_publishable_key = stripe_publishable_key

    def get_config(self, caller: Optional[SessionClaims], client_ip: str) -> Dict[str, Any]:
        """
        Build the capability and limits object for ``caller``.

        Raises:
            RateLimited: If the caller exceeded the config quota
        """
        key = f"{caller.user_id}:{client_ip}" if caller else client_ip
        decision = self._limiter.hit(key)
        if not decision.allowed:
            logger.warning("Config rate limit hit for %s", "company" if caller else "public caller")
            raise RateLimited(decision.retry_after)

        config: Dict[str, Any] = {
            "tier": "company" if caller else "public",
            "features": {
                "submitLead": True,
                "browseLeads": caller is not None,
                "viewContactDetails": bool(caller and caller.has_active_subscription),
                "exclusivePurchase": caller is not None,
            },
            "limits": {
                "configRequestsPerHour": self._limiter.max_requests,
                "defaultPageSize": 20,
                "maxPageSize": 100,
                "maxPhotosPerLead": MAX_PHOTOS,
                "exclusiveWindowHours": int(EXCLUSIVE_WINDOW.total_seconds() // 3600),
            },
            "pricing": {"leadPrice": self._lead_price},
            "rateLimit": {"remaining": decision.remaining},
        }
        if caller is not None:
            config["company"] = caller.to_user()
            config["limits"]["leadRequestsPerHour"] = self._listing_requests_per_hour
        if self._stripe_publishable_key:
            config["stripePublishableKey"] = self._stripe_publishable_key
        return config
