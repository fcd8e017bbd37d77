"""Service for company signup, login and email verification."""

from __future__ import annotations

import hashlib
import logging
import re
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt

from ...core.exceptions import (
    AccountDeactivated,
    AuthenticationFailed,
    InvalidOrExpiredToken,
    InvalidToken,
    RateLimited,
    ValidationFailed,
    VerificationTokenExpired,
)
from ...domain.models import AccountStatus, Company, SessionClaims, SubscriptionStatus
from ...domain.ports.persistence import CompanyRepository
from ...domain.ports.rate_limiting import RateLimiter
from ...services.email_service import EmailDeliveryError, EmailService
from ...services.token_service import TokenService
from ..validation.forms import MAX_PASSWORD_BYTES, SignupForm
from ..validation.sanitizers import normalize_email

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.ascii_letters + string.digits
TOKEN_LENGTH = 32
_TOKEN_FORMAT = re.compile(r"^[A-Za-z0-9]{16,}$")

GENERIC_RESEND_MESSAGE = (
    "If an account with this email exists, a verification email has been sent."
)


def generate_verification_token(length: int = TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(slots=True, frozen=True)
class VerificationOutcome:
    company: Company
    already_verified: bool


@dataclass(slots=True, frozen=True)
class ResendOutcome:
    message: str
    already_verified: bool = False
    sent: bool = False


class CompanyAccountService:
    """Service for managing company registration, authentication and verification."""

    def __init__(
        self,
        companies: CompanyRepository,
        tokens: TokenService,
        email_service: EmailService,
        site_url: str,
        verification_expiration_hours: int = 24,
        bcrypt_rounds: int = 12,
        resend_limiter: Optional[RateLimiter] = None,
    ):
        self.companies = companies
        self.tokens = tokens
        self.email_service = email_service
        self.site_url = site_url.rstrip("/")
        self.verification_expiration_hours = verification_expiration_hours
        self.bcrypt_rounds = bcrypt_rounds
        self.resend_limiter = resend_limiter

    # Signup -----------------------------------------------------------------
    def register(self, form: SignupForm) -> Company:
        """
        Register a company in ``pending_verification`` and email its verification link.

        Raises:
            Conflict: If the email is already registered
        """
        password_hash = bcrypt.hashpw(
            form.password.encode("utf-8"), bcrypt.gensalt(rounds=self.bcrypt_rounds)
        ).decode("utf-8")
        now = datetime.now(tz=timezone.utc)
        token = generate_verification_token()

        company = self.companies.create_company(
            {
                "email": form.email,
                "company_name": form.company_name,
                "password_hash": password_hash,
                "first_name": form.first_name,
                "last_name": form.last_name,
                "phone": form.phone,
                "business_address": form.business_address,
                "business_type": form.business_type,
                "years_in_business": form.years_in_business,
                "service_areas": form.service_areas,
                "license_number": form.license_number,
                "insurance_carrier": form.insurance_carrier,
                "website_url": form.website_url,
                "terms_agreed": form.terms_agreement,
                "background_check_consent": form.background_check,
                "communication_consent": form.communication_consent,
                "professional_conduct_agreed": form.professional_conduct,
                "email_verified": False,
                "verification_token": token,
                "verification_token_issued_at": now,
                "account_status": AccountStatus.PENDING_VERIFICATION,
                "subscription_status": SubscriptionStatus.NONE,
                "created_at": now,
                "updated_at": now,
            }
        )
        logger.info("Company %s registered (id=%s)", company.company_name, company.id)

        try:
            self.email_service.send_verification_email(
                company.email, company.company_name, self.verification_url(token)
            )
        except EmailDeliveryError:
            logger.warning("Verification email for company %s could not be sent", company.id)

        return company

    # Login ------------------------------------------------------------------
    def authenticate(self, email: object, password: object) -> Company:
        """
        Check credentials and return the matching company.

        Raises:
            ValidationFailed: If either field is missing or the email is malformed
            AuthenticationFailed: If no account matches the credentials
            AccountDeactivated: If the account has been deactivated
        """
        if not isinstance(email, str) or not isinstance(password, str) or not email.strip() or not password:
            raise ValidationFailed(["Email and password are required"])
        normalized = normalize_email(email)
        if normalized is None:
            raise ValidationFailed(["Invalid email format"])

        password_bytes = password.encode("utf-8")
        company = self.companies.get_company_by_email(normalized)
        if (
            company is None
            or len(password_bytes) > MAX_PASSWORD_BYTES
            or not bcrypt.checkpw(password_bytes, company.password_hash.encode("utf-8"))
        ):
            logger.info("Failed login attempt for %s", normalized)
            raise AuthenticationFailed()

        if company.is_deactivated:
            raise AccountDeactivated()

        logger.info("Company %s logged in", company.id)
        return company

    def issue_session(self, company: Company) -> str:
        return self.tokens.issue(company)

    def verify_session(self, token: Optional[str]) -> SessionClaims:
        if not token:
            raise InvalidToken("No token provided")
        return self.tokens.verify(token)

    # Email verification -----------------------------------------------------
    def verify_email(self, token: object, now: Optional[datetime] = None) -> VerificationOutcome:
        """
        Consume a verification token.

        Raises:
            ValidationFailed: If the token is missing or malformed
            InvalidOrExpiredToken: If no account matches the token
            VerificationTokenExpired: If the token is older than the expiry window
        """
        if not isinstance(token, str) or not token:
            raise ValidationFailed(["Verification token is required"])
        if not _TOKEN_FORMAT.match(token):
            raise ValidationFailed(["Invalid verification token format"])

        now = now or datetime.now(tz=timezone.utc)
        company = self.companies.get_company_by_verification_token(token)
        if company is None:
            consumed = self.companies.get_company_by_consumed_token_hash(hash_token(token))
            if consumed is not None and consumed.email_verified:
                return VerificationOutcome(company=consumed, already_verified=True)
            raise InvalidOrExpiredToken()

        if company.email_verified:
            return VerificationOutcome(company=company, already_verified=True)

        if now - company.created_at > timedelta(hours=self.verification_expiration_hours):
            logger.info("Expired verification token presented for company %s", company.id)
            raise VerificationTokenExpired()

        company = self.companies.update_company(
            company.id,
            email_verified=True,
            account_status=AccountStatus.EMAIL_VERIFIED,
            verification_token=None,
            verification_token_issued_at=None,
            consumed_token_hash=hash_token(token),
        )
        logger.info("Company %s verified its email", company.id)

        try:
            self.email_service.send_welcome_email(
                company.email, company.company_name, f"{self.site_url}/company-portal.html"
            )
        except EmailDeliveryError:
            logger.warning("Welcome email for company %s could not be sent", company.id)

        return VerificationOutcome(company=company, already_verified=False)

    def resend_verification(self, email: object) -> ResendOutcome:
        """
        Issue a fresh verification token, overwriting the previous one.

        The rate limit is applied per normalised email before any lookup. Unknown,
        pending and already verified accounts all get the same response, and
        delivery failures are logged rather than reported.

        Raises:
            ValidationFailed: If the email is missing or malformed
            RateLimited: If too many resends were requested for this email
        """
        if not isinstance(email, str) or not email.strip():
            raise ValidationFailed(["Email is required"])
        normalized = normalize_email(email)
        if normalized is None:
            raise ValidationFailed(["Invalid email format"])

        if self.resend_limiter is not None:
            decision = self.resend_limiter.hit(normalized)
            if not decision.allowed:
                logger.warning("Verification resend rate limit hit")
                raise RateLimited(
                    decision.retry_after,
                    "Too many verification emails requested. Please try again later.",
                )

        company = self.companies.get_company_by_email(normalized)
        if company is None:
            logger.info("Verification resend requested for unknown email")
            return ResendOutcome(message=GENERIC_RESEND_MESSAGE)

        if company.email_verified:
            logger.info("Verification resend requested for verified company %s", company.id)
            return ResendOutcome(message=GENERIC_RESEND_MESSAGE)

        token = generate_verification_token()
        self.companies.update_company(
            company.id,
            verification_token=token,
            verification_token_issued_at=datetime.now(tz=timezone.utc),
        )
        try:
            self.email_service.send_verification_email(
                company.email, company.company_name, self.verification_url(token)
            )
        except EmailDeliveryError:
            logger.warning("Verification email for company %s could not be re-sent", company.id)
            return ResendOutcome(message=GENERIC_RESEND_MESSAGE)

        logger.info("Verification email re-sent for company %s", company.id)
        return ResendOutcome(message=GENERIC_RESEND_MESSAGE, sent=True)

    def verification_url(self, token: str) -> str:
        return f"{self.site_url}/company-verify-email.html?token={token}"
