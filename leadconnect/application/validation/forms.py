"""Request forms with field-level sanitisation and human-readable errors."""

from __future__ import annotations

import re
from typing import Any, List, NoReturn, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic_core import PydanticCustomError

from ...domain.models import MAX_PHOTOS, PROPERTY_TYPES, TIMELINES
from .sanitizers import (
    DEFAULT_PHOTO_PREFIXES,
    extract_zip_code,
    filter_photo_urls,
    normalize_email,
    sanitize_phone,
    sanitize_text,
)

BUSINESS_TYPES = (
    "estate_sale_company",
    "auction_house",
    "liquidation_service",
    "antique_dealer",
    "consignment_shop",
    "other",
)
YEARS_IN_BUSINESS = ("0-1", "1-3", "3-5", "5-10", "10+")
CHECKOUT_TYPES = ("subscription", "exclusive")
MAX_PASSWORD_BYTES = 72

_SIGNUP_PHONE = re.compile(r"^[+]?[1-9][\d\-\s()]{8,}$")
_PASSWORD = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[a-zA-Z\d@$!%*?&]{8,}$")
_WEBSITE = re.compile(r"^https?://.+\..+$")
_ZIP_QUERY = re.compile(r"^\d{5}$")


def _fail(message: str) -> NoReturn:
    raise PydanticCustomError("invalid_field", message)


def _required(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        _fail(f"{label} is required")
    return value


def _text(value: Any, label: str, max_length: int, min_length: int, too_short: str) -> str:
    cleaned = sanitize_text(_required(value, label), max_length)
    if len(cleaned) < min_length:
        _fail(too_short)
    return cleaned


def _email(value: Any) -> str:
    email = normalize_email(_required(value, "Email"))
    if email is None:
        _fail("Invalid email format")
    return email


def _choice(value: Any, allowed: tuple, message: str) -> str:
    if value not in allowed:
        _fail(message)
    return value


def _optional_text(value: Any, max_length: int) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    return sanitize_text(value, max_length) or None


def _bounded_int(value: Any, default: int, low: int, high: Optional[int], message: str) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        _fail(message)
    try:
        number = int(value)
    except (TypeError, ValueError):
        _fail(message)
    if number < low or (high is not None and number > high):
        _fail(message)
    return number


class _Form(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SignupForm(_Form):
    first_name: str = Field(default=None, alias="firstName", validate_default=True)
    last_name: str = Field(default=None, alias="lastName", validate_default=True)
    company_name: str = Field(default=None, alias="companyName", validate_default=True)
    email: str = Field(default=None, validate_default=True)
    phone: str = Field(default=None, validate_default=True)
    password: str = Field(default=None, validate_default=True)
    confirm_password: str = Field(default=None, alias="confirmPassword", validate_default=True)
    business_address: str = Field(default=None, alias="businessAddress", validate_default=True)
    business_type: str = Field(default=None, alias="businessType", validate_default=True)
    years_in_business: str = Field(default=None, alias="yearsInBusiness", validate_default=True)
    service_areas: str = Field(default=None, alias="serviceAreas", validate_default=True)
    license_number: Optional[str] = Field(default=None, alias="licenseNumber")
    insurance_carrier: Optional[str] = Field(default=None, alias="insuranceCarrier")
    website_url: Optional[str] = Field(default=None, alias="websiteUrl")
    terms_agreement: bool = Field(default=None, alias="termsAgreement", validate_default=True)
    background_check: bool = Field(default=None, alias="backgroundCheck", validate_default=True)
    communication_consent: bool = Field(default=False, alias="communicationConsent")
    professional_conduct: bool = Field(
        default=None, alias="professionalConduct", validate_default=True
    )

    @field_validator("first_name", mode="before")
    @classmethod
    def check_first_name(cls, value: Any) -> str:
        return _text(value, "First name", 50, 2, "First name must be at least 2 characters")

    @field_validator("last_name", mode="before")
    @classmethod
    def check_last_name(cls, value: Any) -> str:
        return _text(value, "Last name", 50, 2, "Last name must be at least 2 characters")

    @field_validator("company_name", mode="before")
    @classmethod
    def check_company_name(cls, value: Any) -> str:
        return _text(value, "Company name", 100, 2, "Company name must be at least 2 characters")

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value: Any) -> str:
        return _email(value)

    @field_validator("phone", mode="before")
    @classmethod
    def check_phone(cls, value: Any) -> str:
        phone = sanitize_phone(_required(value, "Phone number"))
        if not _SIGNUP_PHONE.match(phone):
            _fail("Invalid phone number format")
        return phone

    @field_validator("password", mode="before")
    @classmethod
    def check_password(cls, value: Any) -> str:
        if not _PASSWORD.match(_required(value, "Password")):
            _fail("Password must be at least 8 characters with uppercase, lowercase, and number")
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            _fail(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value

    @field_validator("confirm_password", mode="before")
    @classmethod
    def check_confirm_password(cls, value: Any, info: ValidationInfo) -> str:
        _required(value, "Password confirmation")
        password = info.data.get("password")
        if password is not None and value != password:
            _fail("Passwords do not match")
        return value

    @field_validator("business_address", mode="before")
    @classmethod
    def check_business_address(cls, value: Any) -> str:
        return _text(value, "Business address", 200, 10, "Business address must be complete")

    @field_validator("business_type", mode="before")
    @classmethod
    def check_business_type(cls, value: Any) -> str:
        return _choice(_required(value, "Business type"), BUSINESS_TYPES, "Invalid business type")

    @field_validator("years_in_business", mode="before")
    @classmethod
    def check_years_in_business(cls, value: Any) -> str:
        return _choice(
            _required(value, "Years in business"), YEARS_IN_BUSINESS, "Invalid years in business"
        )

    @field_validator("service_areas", mode="before")
    @classmethod
    def check_service_areas(cls, value: Any) -> str:
        return _text(value, "Service areas", 500, 5, "Service areas must be at least 5 characters")

    @field_validator("license_number", mode="before")
    @classmethod
    def check_license_number(cls, value: Any) -> Optional[str]:
        return _optional_text(value, 50)

    @field_validator("insurance_carrier", mode="before")
    @classmethod
    def check_insurance_carrier(cls, value: Any) -> Optional[str]:
        return _optional_text(value, 100)

    @field_validator("website_url", mode="before")
    @classmethod
    def check_website_url(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        if not isinstance(value, str) or not _WEBSITE.match(value.strip()):
            _fail("Invalid website URL format")
        return value.strip()

    @field_validator("terms_agreement", mode="before")
    @classmethod
    def check_terms(cls, value: Any) -> bool:
        if value is not True:
            _fail("Terms of service agreement is required")
        return True

    @field_validator("background_check", mode="before")
    @classmethod
    def check_background_check(cls, value: Any) -> bool:
        if value is not True:
            _fail("Background check consent is required")
        return True

    @field_validator("communication_consent", mode="before")
    @classmethod
    def check_communication_consent(cls, value: Any) -> bool:
        return value is True

    @field_validator("professional_conduct", mode="before")
    @classmethod
    def check_professional_conduct(cls, value: Any) -> bool:
        if value is not True:
            _fail("Professional conduct agreement is required")
        return True


class LeadSubmissionForm(_Form):
    """Public lead form. The zip code is derived from the address, never taken as input."""

    first_name: str = Field(default=None, alias="firstName", validate_default=True)
    last_name: str = Field(default=None, alias="lastName", validate_default=True)
    email: str = Field(default=None, validate_default=True)
    phone: str = Field(default=None, validate_default=True)
    address: str = Field(default=None, validate_default=True)
    property_type: str = Field(default=None, alias="propertyType", validate_default=True)
    timeline: str = Field(default=None, validate_default=True)
    details: str = Field(default=None, validate_default=True)
    photo_urls: List[str] = Field(default=None, alias="photo-urls", validate_default=True)
    zip_code: Optional[str] = Field(default=None, exclude=True)

    @field_validator("first_name", mode="before")
    @classmethod
    def check_first_name(cls, value: Any) -> str:
        return _text(value, "First name", 50, 1, "First name cannot be empty")

    @field_validator("last_name", mode="before")
    @classmethod
    def check_last_name(cls, value: Any) -> str:
        return _text(value, "Last name", 50, 1, "Last name cannot be empty")

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value: Any) -> str:
        return _email(value)

    @field_validator("phone", mode="before")
    @classmethod
    def check_phone(cls, value: Any) -> str:
        phone = sanitize_phone(_required(value, "Phone number"))
        if not 10 <= len(phone) <= 20:
            _fail("Invalid phone number format")
        return phone

    @field_validator("address", mode="before")
    @classmethod
    def check_address(cls, value: Any) -> str:
        return _text(value, "Address", 200, 10, "Address must be at least 10 characters")

    @field_validator("property_type", mode="before")
    @classmethod
    def check_property_type(cls, value: Any) -> str:
        return _choice(value, PROPERTY_TYPES, "Invalid property type")

    @field_validator("timeline", mode="before")
    @classmethod
    def check_timeline(cls, value: Any) -> str:
        return _choice(value, TIMELINES, "Invalid timeline")

    @field_validator("details", mode="before")
    @classmethod
    def check_details(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            _fail("Details are required")
        return _text(value, "Details", 2000, 10, "Details must be at least 10 characters")

    @field_validator("photo_urls", mode="before")
    @classmethod
    def check_photo_urls(cls, value: Any, info: ValidationInfo) -> List[str]:
        if not isinstance(value, str):
            return []
        context = info.context or {}
        prefixes = context.get("photo_prefixes") or DEFAULT_PHOTO_PREFIXES
        return filter_photo_urls(value, prefixes, MAX_PHOTOS)

    @model_validator(mode="after")
    def derive_zip_code(self) -> "LeadSubmissionForm":
        self.zip_code = extract_zip_code(self.address)
        return self


class LeadQueryParams(_Form):
    limit: int = Field(default=20, validate_default=True)
    offset: int = Field(default=0, validate_default=True)
    zip_code: Optional[str] = Field(default=None, alias="zipCode")
    radius: int = Field(default=25, validate_default=True)
    timeline: Optional[str] = None
    property_type: Optional[str] = Field(default=None, alias="propertyType")

    @field_validator("limit", mode="before")
    @classmethod
    def check_limit(cls, value: Any) -> int:
        return _bounded_int(value, 20, 1, 100, "Limit must be between 1 and 100")

    @field_validator("offset", mode="before")
    @classmethod
    def check_offset(cls, value: Any) -> int:
        return _bounded_int(value, 0, 0, None, "Offset must be non-negative")

    @field_validator("zip_code", mode="before")
    @classmethod
    def check_zip_code(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        if not isinstance(value, str) or not _ZIP_QUERY.match(value):
            _fail("Invalid zip code format")
        return value

    @field_validator("radius", mode="before")
    @classmethod
    def check_radius(cls, value: Any) -> int:
        return _bounded_int(value, 25, 1, 1000, "Radius must be between 1 and 1000 miles")

    @field_validator("timeline", mode="before")
    @classmethod
    def check_timeline(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return _choice(value, TIMELINES, "Invalid timeline value")

    @field_validator("property_type", mode="before")
    @classmethod
    def check_property_type(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return _choice(value, PROPERTY_TYPES, "Invalid property type")

    def zip_bounds(self) -> tuple[Optional[str], Optional[str]]:
        """Approximate a radius search as a numeric zip range of radius/10 either side."""
        if not self.zip_code:
            return None, None
        center = int(self.zip_code)
        spread = self.radius // 10
        return f"{max(center - spread, 0):05d}", f"{min(center + spread, 99999):05d}"


class CheckoutForm(_Form):
    type: str = Field(default=None, validate_default=True)
    company_email: str = Field(default=None, alias="companyEmail", validate_default=True)
    company_name: str = Field(default=None, alias="companyName", validate_default=True)
    lead_id: Optional[int] = Field(default=None, alias="leadId", validate_default=True)

    @field_validator("type", mode="before")
    @classmethod
    def check_type(cls, value: Any) -> str:
        return _choice(value, CHECKOUT_TYPES, "Type must be 'subscription' or 'exclusive'")

    @field_validator("company_email", mode="before")
    @classmethod
    def check_company_email(cls, value: Any) -> str:
        return _email(value)

    @field_validator("company_name", mode="before")
    @classmethod
    def check_company_name(cls, value: Any) -> str:
        return _text(value, "Company name", 100, 1, "Company name is required")

    @field_validator("lead_id", mode="before")
    @classmethod
    def check_lead_id(cls, value: Any, info: ValidationInfo) -> Optional[int]:
        if value is None or value == "":
            if info.data.get("type") == "exclusive":
                _fail("Lead ID is required for exclusive purchases")
            return None
        return _bounded_int(value, 0, 1, None, "Lead ID must be a positive integer")
