from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from leadconnect.core.exceptions import InvalidToken, TokenExpired
from leadconnect.domain.models import Company
from leadconnect.services.token_service import TokenService

from tests.helpers import TEST_SECRET


def _company(**overrides):
    values = dict(
        id=7,
        email="owner@acme.example",
        company_name="Acme Estates",
        password_hash="x",
        subscription_status="active",
    )
    values.update(overrides)
    return Company(**values)


def test_issue_and_verify_carry_identity_and_subscription():
    service = TokenService(TEST_SECRET, expiration_hours=24)
    claims = service.verify(service.issue(_company()))
    assert claims.user_id == 7
    assert claims.company_name == "Acme Estates"
    assert claims.has_active_subscription
    assert claims.expires_at - claims.issued_at == timedelta(hours=24)
    assert claims.to_user() == {
        "id": 7,
        "email": "owner@acme.example",
        "companyName": "Acme Estates",
        "subscriptionStatus": "active",
    }


def test_wrong_secret_is_invalid():
    token = TokenService("other-secret").issue(_company())
    with pytest.raises(InvalidToken):
        TokenService(TEST_SECRET).verify(token)


def test_garbage_token_is_invalid():
    with pytest.raises(InvalidToken):
        TokenService(TEST_SECRET).verify("not.a.jwt")


def test_expired_token():
    past = datetime.now(tz=timezone.utc) - timedelta(hours=48)
    token = jwt.encode(
        {
            "userId": 7,
            "email": "owner@acme.example",
            "companyName": "Acme Estates",
            "subscriptionStatus": "active",
            "iat": past,
            "exp": past + timedelta(hours=24),
        },
        TEST_SECRET,
        algorithm="HS256",
    )
    with pytest.raises(TokenExpired) as exc:
        TokenService(TEST_SECRET).verify(token)
    assert exc.value.status_code == 401


def test_token_missing_claims_is_invalid():
    now = datetime.now(tz=timezone.utc)
    token = jwt.encode(
        {"userId": 7, "iat": now, "exp": now + timedelta(hours=1)},
        TEST_SECRET,
        algorithm="HS256",
    )
    with pytest.raises(InvalidToken):
        TokenService(TEST_SECRET).verify(token)
