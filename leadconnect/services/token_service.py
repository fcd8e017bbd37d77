"""Service for issuing and verifying session tokens."""

import logging
from datetime import datetime, timedelta, timezone

import jwt

from ..core.exceptions import InvalidToken, TokenExpired
from ..domain.models import Company, SessionClaims

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ("userId", "email", "companyName", "subscriptionStatus", "iat", "exp")


class TokenService:
    """Signs HS256 session tokens carrying identity and subscription status."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expiration_hours: int = 24,
    ):
        if secret == "change-me":
            logger.warning("JWT_SECRET is not set; session tokens use an insecure default secret")
        self.secret = secret
        self.algorithm = algorithm
        self.expiration_hours = expiration_hours

    def issue(self, company: Company) -> str:
        """
        Create a session token for a company.

        Args:
            company: Authenticated company

        Returns:
            Encoded JWT string
        """
        issued_at = datetime.now(tz=timezone.utc)
        payload = {
            "userId": company.id,
            "email": company.email,
            "companyName": company.company_name,
            "subscriptionStatus": company.subscription_status,
            "iat": issued_at,
            "exp": issued_at + timedelta(hours=self.expiration_hours),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> SessionClaims:
        """
        Verify and decode a session token.

        Raises:
            TokenExpired: If ``exp`` has passed
            InvalidToken: If the signature or payload is invalid
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidToken() from exc

        if any(payload.get(claim) is None for claim in REQUIRED_CLAIMS):
            raise InvalidToken()

        return SessionClaims(
            user_id=payload["userId"],
            email=payload["email"],
            company_name=payload["companyName"],
            subscription_status=payload["subscriptionStatus"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
