"""Company account domain model."""

from datetime import datetime, timezone
from typing import Optional


class SubscriptionStatus:
    """Subscription states driven by payment-provider events."""

    NONE = "none"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"

    ALL = (NONE, ACTIVE, PAST_DUE, CANCELLED)


class AccountStatus:
    PENDING_VERIFICATION = "pending_verification"
    EMAIL_VERIFIED = "email_verified"
    ACTIVE = "active"
    DEACTIVATED = "deactivated"

    ALL = (PENDING_VERIFICATION, EMAIL_VERIFIED, ACTIVE, DEACTIVATED)


class Company:
    """
    Company entity representing a lead buyer's account.

    Attributes:
        id: Unique identifier
        email: Login email (unique, lower-cased)
        company_name: Display name, also recorded as the buyer on purchases
        password_hash: bcrypt hash of the password
        email_verified: Whether the email address has been confirmed
        verification_token: Pending verification token; None once verified
        verification_token_issued_at: When the pending token was issued
        consumed_token_hash: SHA-256 digest of the token that verified the account
        account_status: One of AccountStatus.ALL
        subscription_status: One of SubscriptionStatus.ALL
        stripe_customer_id: Stripe customer reference
        stripe_subscription_id: Stripe subscription reference
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: int,
        email: str,
        company_name: str,
        password_hash: str,
        first_name: str = "",
        last_name: str = "",
        phone: str = "",
        business_address: str = "",
        business_type: str = "",
        years_in_business: str = "",
        service_areas: str = "",
        license_number: Optional[str] = None,
        insurance_carrier: Optional[str] = None,
        website_url: Optional[str] = None,
        terms_agreed: bool = False,
        background_check_consent: bool = False,
        communication_consent: bool = False,
        professional_conduct_agreed: bool = False,
        email_verified: bool = False,
        verification_token: Optional[str] = None,
        verification_token_issued_at: Optional[datetime] = None,
        consumed_token_hash: Optional[str] = None,
        account_status: str = AccountStatus.PENDING_VERIFICATION,
        subscription_status: str = SubscriptionStatus.NONE,
        stripe_customer_id: Optional[str] = None,
        stripe_subscription_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        now = datetime.now(tz=timezone.utc)
        self.id = id
        self.email = email
        self.company_name = company_name
        self.password_hash = password_hash
        self.first_name = first_name
        self.last_name = last_name
        self.phone = phone
        self.business_address = business_address
        self.business_type = business_type
        self.years_in_business = years_in_business
        self.service_areas = service_areas
        self.license_number = license_number
        self.insurance_carrier = insurance_carrier
        self.website_url = website_url
        self.terms_agreed = terms_agreed
        self.background_check_consent = background_check_consent
        self.communication_consent = communication_consent
        self.professional_conduct_agreed = professional_conduct_agreed
        self.email_verified = email_verified
        self.verification_token = verification_token
        self.verification_token_issued_at = verification_token_issued_at
        self.consumed_token_hash = consumed_token_hash
        self.account_status = account_status
        self.subscription_status = subscription_status
        self.stripe_customer_id = stripe_customer_id
        self.stripe_subscription_id = stripe_subscription_id
        self.created_at = created_at or now
        self.updated_at = updated_at or now

    @property
    def is_deactivated(self) -> bool:
        return self.account_status == AccountStatus.DEACTIVATED

    def has_active_subscription(self) -> bool:
        return self.subscription_status == SubscriptionStatus.ACTIVE

    def __repr__(self) -> str:
        return (
            f"<Company id={self.id} email={self.email} status={self.account_status} "
            f"subscription={self.subscription_status}>"
        )
