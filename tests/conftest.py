from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from leadconnect.application.services.company_service import CompanyAccountService
from leadconnect.application.services.lead_service import LeadService
from leadconnect.core.app_factory import create_application
from leadconnect.infrastructure.persistence.memory import InMemoryPersistence
from leadconnect.infrastructure.rate_limiting import FixedWindowRateLimiter
from leadconnect.services.token_service import TokenService

from tests.helpers import TEST_SECRET, RecordingEmailService


@pytest.fixture
def persistence():
    return InMemoryPersistence()


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET)


@pytest.fixture
def company_service(persistence, token_service, email_service):
    return CompanyAccountService(
        persistence,
        token_service,
        email_service,
        "https://leads.example",
        bcrypt_rounds=4,
        resend_limiter=FixedWindowRateLimiter(3, 900),
    )


@pytest.fixture
def lead_service(persistence):
    return LeadService(persistence, listing_limiter=FixedWindowRateLimiter(1000, 3600))


@pytest.fixture
def app_env(monkeypatch):
    monkeypatch.setenv("DATASTORE", "memory")
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("SITE_URL", "https://leads.example")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_test")
    for key in (
        "SMTP_HOST",
        "SMTP_USERNAME",
        "SMTP_FROM_EMAIL",
        "RATE_LIMIT_STORAGE_URI",
        "APP_ENV",
        "STRIPE_SECRET_KEY",
        "STRIPE_PUBLISHABLE_KEY",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def client(app_env):
    with TestClient(create_application()) as test_client:
        yield test_client


@pytest.fixture
def container(client):
    return client.app.state.container
