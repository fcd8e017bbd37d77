from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(slots=True, frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int


class RateLimiter(Protocol):
    """Fixed-window counter keyed by caller identity."""

    max_requests: int
    window_seconds: int

    def hit(self, key: str) -> RateLimitDecision:
        """Check the key's window and record the attempt in one step."""
        ...

    def reset(self) -> None:
        ...
