from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from leadconnect.domain.models import Lead, SessionClaims
from leadconnect.services.email_service import EmailDeliveryError

TEST_SECRET = "test-secret"


class RecordingEmailService:
    """Keeps every message it was asked to send instead of talking to SMTP."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.verification: List[Dict[str, str]] = []
        self.welcome: List[Dict[str, str]] = []

    def send_verification_email(self, to_email: str, company_name: str, verification_url: str) -> None:
        if self.fail:
            raise EmailDeliveryError("relay refused connection")
        self.verification.append({"to": to_email, "company": company_name, "url": verification_url})

    def send_welcome_email(self, to_email: str, company_name: str, portal_url: str) -> None:
        if self.fail:
            raise EmailDeliveryError("relay refused connection")
        self.welcome.append({"to": to_email, "company": company_name, "url": portal_url})

    @property
    def last_token(self) -> str:
        return self.verification[-1]["url"].split("token=", 1)[1]


def signup_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "firstName": "Jordan",
        "lastName": "Rivers",
        "companyName": "Acme Estates",
        "email": "owner@acme.example",
        "phone": "+1 (555) 123-4567",
        "password": "Secret123",
        "confirmPassword": "Secret123",
        "businessAddress": "12 Market Street, Springfield 62701",
        "businessType": "estate_sale_company",
        "yearsInBusiness": "3-5",
        "serviceAreas": "Springfield and surrounding counties",
        "termsAgreement": True,
        "backgroundCheck": True,
        "professionalConduct": True,
    }
    payload.update(overrides)
    return payload


def lead_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "firstName": "Sam",
        "lastName": "Seller",
        "email": "Sam@Example.com",
        "phone": "555-987-6543",
        "address": "44 Elm Street, Springfield IL 62704",
        "propertyType": "house",
        "timeline": "month",
        "details": "Three bedroom house full of antiques and furniture.",
        "photo-urls": "https://res.cloudinary.com/demo/a.jpg http://evil.example/b.jpg",
    }
    payload.update(overrides)
    return payload


def make_claims(
    subscription_status: str = "active",
    company_name: str = "Acme Estates",
    user_id: int = 1,
) -> SessionClaims:
    now = datetime.now(tz=timezone.utc)
    return SessionClaims(
        user_id=user_id,
        email="owner@acme.example",
        company_name=company_name,
        subscription_status=subscription_status,
        issued_at=now,
        expires_at=now + timedelta(hours=24),
    )


def make_lead(**overrides: Any) -> Lead:
    values: Dict[str, Any] = dict(
        id=1,
        first_name="Sam",
        last_name="Seller",
        email="sam@example.com",
        phone="555-987-6543",
        address="44 Elm Street, Springfield IL 62704",
        zip_code="62704",
        property_type="house",
        timeline="month",
        details="Three bedroom house full of antiques.",
        photo_urls=["https://res.cloudinary.com/demo/a.jpg"],
        created_at=datetime.now(tz=timezone.utc),
    )
    values.update(overrides)
    return Lead(**values)


def lead_fields(**overrides: Any) -> Dict[str, Any]:
    """Column values accepted by ``create_lead`` on every persistence backend."""
    values = {
        "first_name": "Sam",
        "last_name": "Seller",
        "email": "sam@example.com",
        "phone": "555-987-6543",
        "address": "44 Elm Street, Springfield IL 62704",
        "zip_code": "62704",
        "property_type": "house",
        "timeline": "month",
        "details": "Three bedroom house full of antiques.",
        "photo_urls": ["https://res.cloudinary.com/demo/a.jpg"],
        "price": 39.99,
        "purchased": False,
        "created_at": datetime.now(tz=timezone.utc),
    }
    values.update(overrides)
    return values


def company_fields(**overrides: Any) -> Dict[str, Any]:
    values = {
        "email": "owner@acme.example",
        "company_name": "Acme Estates",
        "password_hash": "$2b$04$notarealhash",
        "first_name": "Jordan",
        "last_name": "Rivers",
    }
    values.update(overrides)
    return values
