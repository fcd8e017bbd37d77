import json
import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...core.dependencies import get_token_service
from ...core.exceptions import AuthenticationFailed, SubscriptionRequired, ValidationFailed
from ...domain.models import SessionClaims
from ...services.token_service import TokenService

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[str]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials or None


def get_optional_claims(
    token: Optional[str] = Depends(get_bearer_token),
    token_service: TokenService = Depends(get_token_service),
) -> Optional[SessionClaims]:
    """Public-tier endpoints treat a missing or unusable token as an anonymous caller."""
    if not token:
        return None
    try:
        return token_service.verify(token)
    except AuthenticationFailed as exc:
        logger.info("Ignoring unusable bearer token on public endpoint: %s", exc.message)
        return None


def require_claims(
    token: Optional[str] = Depends(get_bearer_token),
    token_service: TokenService = Depends(get_token_service),
) -> SessionClaims:
    if not token:
        raise AuthenticationFailed("Missing or invalid authorization header")
    return token_service.verify(token)


def require_active_subscription(claims: SessionClaims = Depends(require_claims)) -> SessionClaims:
    if not claims.has_active_subscription:
        raise SubscriptionRequired()
    return claims


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    client_ip = request.headers.get("client-ip")
    if client_ip:
        return client_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Parse the request body as a JSON object; an empty body reads as ``{}``."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationFailed(["Invalid JSON in request body"]) from exc
    if not isinstance(payload, dict):
        raise ValidationFailed(["Request body must be a JSON object"])
    return payload

