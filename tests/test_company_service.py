from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from leadconnect.application.services.company_service import (
    GENERIC_RESEND_MESSAGE,
    CompanyAccountService,
    generate_verification_token,
    hash_token,
)
from leadconnect.application.validation.validator import validate_or_raise
from leadconnect.core.exceptions import (
    AccountDeactivated,
    AuthenticationFailed,
    Conflict,
    InvalidOrExpiredToken,
    InvalidToken,
    RateLimited,
    ValidationFailed,
    VerificationTokenExpired,
)
from leadconnect.domain.models import AccountStatus, SubscriptionStatus

from tests.helpers import RecordingEmailService, signup_payload


def _register(company_service, **overrides):
    return company_service.register(validate_or_raise("signup", signup_payload(**overrides)))


def test_verification_token_shape():
    token = generate_verification_token()
    assert len(token) == 32
    assert token.isalnum()
    assert generate_verification_token() != token


def test_register_creates_pending_account_and_sends_link(company_service, email_service, persistence):
    company = _register(company_service)

    stored = persistence.get_company_by_email("owner@acme.example")
    assert stored.id == company.id
    assert stored.account_status == AccountStatus.PENDING_VERIFICATION
    assert stored.subscription_status == SubscriptionStatus.NONE
    assert stored.email_verified is False
    assert stored.password_hash != "Secret123"
    assert stored.verification_token_issued_at is not None

    sent = email_service.verification[-1]
    assert sent["to"] == "owner@acme.example"
    assert sent["url"] == (
        f"https://leads.example/company-verify-email.html?token={stored.verification_token}"
    )


def test_register_duplicate_email_conflicts(company_service):
    _register(company_service)
    with pytest.raises(Conflict) as exc:
        _register(company_service, email="OWNER@acme.example")
    assert exc.value.status_code == 409


def test_register_survives_email_failure(persistence, token_service):
    service = CompanyAccountService(
        persistence, token_service, RecordingEmailService(fail=True), "https://leads.example", bcrypt_rounds=4
    )
    company = _register(service)
    assert persistence.get_company_by_id(company.id) is not None


def test_authenticate_checks_password_and_status(company_service, persistence):
    company = _register(company_service)
    assert company_service.authenticate("Owner@Acme.example", "Secret123").id == company.id

    with pytest.raises(AuthenticationFailed) as exc:
        company_service.authenticate("owner@acme.example", "WrongPass1")
    assert exc.value.message == "Invalid credentials"

    with pytest.raises(AuthenticationFailed):
        company_service.authenticate("nobody@acme.example", "Secret123")

    persistence.update_company(company.id, account_status=AccountStatus.DEACTIVATED)
    with pytest.raises(AccountDeactivated):
        company_service.authenticate("owner@acme.example", "Secret123")


def test_authenticate_rejects_overlong_password(company_service):
    _register(company_service)
    with pytest.raises(AuthenticationFailed):
        company_service.authenticate("owner@acme.example", "Secret123" + "x" * 100)


@pytest.mark.parametrize(
    "email, password, message",
    [
        ("", "Secret123", "Email and password are required"),
        ("owner@acme.example", None, "Email and password are required"),
        ("owner", "Secret123", "Invalid email format"),
    ],
)
def test_authenticate_rejects_malformed_input(company_service, email, password, message):
    with pytest.raises(ValidationFailed) as exc:
        company_service.authenticate(email, password)
    assert exc.value.message == message


def test_session_round_trip(company_service):
    company = _register(company_service)
    claims = company_service.verify_session(company_service.issue_session(company))
    assert claims.user_id == company.id
    assert claims.subscription_status == "none"

    with pytest.raises(InvalidToken) as exc:
        company_service.verify_session(None)
    assert exc.value.message == "No token provided"


def test_verify_email_consumes_token_once(company_service, email_service, persistence):
    company = _register(company_service)
    token = email_service.last_token

    outcome = company_service.verify_email(token)
    assert outcome.already_verified is False
    stored = persistence.get_company_by_id(company.id)
    assert stored.email_verified is True
    assert stored.account_status == AccountStatus.EMAIL_VERIFIED
    assert stored.verification_token is None
    assert stored.consumed_token_hash == hash_token(token)
    assert email_service.welcome[-1]["url"] == "https://leads.example/company-portal.html"

    again = company_service.verify_email(token)
    assert again.already_verified is True
    assert again.company.id == company.id


def test_verify_email_rejects_unknown_and_malformed_tokens(company_service):
    with pytest.raises(ValidationFailed):
        company_service.verify_email(None)
    with pytest.raises(ValidationFailed):
        company_service.verify_email("short")
    with pytest.raises(InvalidOrExpiredToken) as exc:
        company_service.verify_email("A" * 32)
    assert exc.value.status_code == 404


def test_verify_email_expires_after_window(company_service, email_service):
    _register(company_service)
    later = datetime.now(tz=timezone.utc) + timedelta(hours=25)
    with pytest.raises(VerificationTokenExpired) as exc:
        company_service.verify_email(email_service.last_token, now=later)
    assert exc.value.status_code == 400


def test_resend_does_not_extend_verification_window(company_service, email_service, persistence):
    company = _register(company_service)
    persistence.update_company(company.id, created_at=datetime.now(tz=timezone.utc) - timedelta(hours=30))

    company_service.resend_verification("owner@acme.example")
    with pytest.raises(VerificationTokenExpired):
        company_service.verify_email(email_service.last_token)
    assert persistence.get_company_by_id(company.id).email_verified is False


def test_resend_replaces_token(company_service, email_service, persistence):
    _register(company_service)
    first = email_service.last_token

    outcome = company_service.resend_verification(" OWNER@acme.example ")
    assert outcome.sent is True
    assert outcome.message == GENERIC_RESEND_MESSAGE
    second = email_service.last_token
    assert second != first
    assert persistence.get_company_by_email("owner@acme.example").verification_token == second

    with pytest.raises(InvalidOrExpiredToken):
        company_service.verify_email(first)
    assert company_service.verify_email(second).already_verified is False


def test_resend_for_unknown_email_is_indistinguishable(company_service, email_service):
    outcome = company_service.resend_verification("ghost@acme.example")
    assert outcome.message == GENERIC_RESEND_MESSAGE
    assert outcome.sent is False
    assert email_service.verification == []


def test_resend_for_verified_account_matches_unknown(company_service, email_service):
    _register(company_service)
    company_service.verify_email(email_service.last_token)
    sent_before = len(email_service.verification)

    outcome = company_service.resend_verification("owner@acme.example")
    assert outcome.message == GENERIC_RESEND_MESSAGE
    assert outcome.already_verified is False
    assert len(email_service.verification) == sent_before


def test_resend_is_rate_limited_per_email(company_service):
    for _ in range(3):
        company_service.resend_verification("ghost@acme.example")
    with pytest.raises(RateLimited) as exc:
        company_service.resend_verification("GHOST@acme.example")
    assert exc.value.status_code == 429
    assert exc.value.retry_after >= 1
    assert "retryAfter" in exc.value.to_payload()

    company_service.resend_verification("other@acme.example")


def test_resend_email_failure_is_not_reported(persistence, token_service):
    mailer = RecordingEmailService()
    service = CompanyAccountService(persistence, token_service, mailer, "https://leads.example", bcrypt_rounds=4)
    _register(service)
    mailer.fail = True
    outcome = service.resend_verification("owner@acme.example")
    assert outcome.message == GENERIC_RESEND_MESSAGE
    assert outcome.sent is False
