"""Error taxonomy shared by services and the HTTP layer."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class LeadConnectError(Exception):
    """Base error carrying the HTTP status it should be rendered with."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, details: Optional[Any] = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationFailed(LeadConnectError):
    """Raised when a request payload fails validation; details lists every message."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: List[str], message: Optional[str] = None) -> None:
        if message is None and len(errors) == 1:
            message = errors[0]
        super().__init__(message, details=list(errors))
        self.errors = list(errors)


class AuthenticationFailed(LeadConnectError):
    status_code = 401
    default_message = "Invalid credentials"


class InvalidToken(AuthenticationFailed):
    default_message = "Invalid token"


class TokenExpired(AuthenticationFailed):
    default_message = "Token expired"


class SubscriptionRequired(LeadConnectError):
    status_code = 403
    default_message = "Active subscription required"


class AccountDeactivated(LeadConnectError):
    status_code = 403
    default_message = "Account is deactivated"


class NotFound(LeadConnectError):
    status_code = 404
    default_message = "Resource not found"


class InvalidOrExpiredToken(NotFound):
    default_message = (
        "Invalid or expired verification token. The link may have already been used or expired."
    )


class VerificationTokenExpired(InvalidOrExpiredToken):
    status_code = 400
    default_message = "Verification token has expired. Please request a new verification email."


class Conflict(LeadConnectError):
    status_code = 409
    default_message = "Resource already exists"


class RateLimited(LeadConnectError):
    status_code = 429
    default_message = "Too many requests. Please try again later."

    def __init__(self, retry_after: int, message: Optional[str] = None) -> None:
        super().__init__(message)
        self.retry_after = max(1, int(retry_after))

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["retryAfter"] = self.retry_after
        return payload


class UpstreamFailure(LeadConnectError):
    """An external collaborator (datastore, payment provider, mail relay) failed."""

    status_code = 500
    default_message = "Internal server error. Please try again later."


class DatastoreError(UpstreamFailure):
    pass
