from __future__ import annotations

import pytest

from leadconnect.application.validation.sanitizers import (
    extract_zip_code,
    filter_photo_urls,
    normalize_email,
    sanitize_phone,
    sanitize_text,
)
from leadconnect.application.validation.validator import validate, validate_or_raise
from leadconnect.core.exceptions import ValidationFailed

from tests.helpers import lead_payload, signup_payload


def test_sanitize_text_strips_markup_and_truncates():
    raw = '  <script>alert("x")</script><b onclick=steal()>Hello</b> javascript:void  '
    assert sanitize_text(raw) == "Hello void"
    assert sanitize_text("abcdef", max_length=3) == "abc"


def test_normalize_email_lowercases_and_rejects_malformed():
    assert normalize_email("  Owner@Acme.Example ") == "owner@acme.example"
    assert normalize_email("not-an-email") is None
    assert normalize_email("a@" + "b" * 260 + ".com") is None


def test_sanitize_phone_keeps_dialable_characters_only():
    assert sanitize_phone("+1 (555) 123-4567 ext.") == "+1 (555) 123-4567"


def test_extract_zip_code_takes_first_five_digit_group():
    assert extract_zip_code("44 Elm Street, Springfield IL 62704-1234") == "62704"
    assert extract_zip_code("No postal code here") is None


def test_filter_photo_urls_keeps_allowed_hosts_up_to_limit():
    urls = " ".join(f"https://res.cloudinary.com/p/{i}.jpg" for i in range(15))
    kept = filter_photo_urls(urls + " https://evil.example/x.jpg")
    assert len(kept) == 12
    assert all(url.startswith("https://res.cloudinary.com/") for url in kept)
    assert filter_photo_urls("data:image/png;base64,AAA ftp://x") == ["data:image/png;base64,AAA"]


def test_signup_accepts_complete_payload():
    result = validate("signup", signup_payload(email="  OWNER@Acme.Example "))
    assert result.valid
    assert result.errors == []
    assert result.data["email"] == "owner@acme.example"
    assert result.data["communication_consent"] is False
    assert result.form.website_url is None


def test_signup_reports_every_missing_field_in_order():
    result = validate("signup", {})
    assert not result.valid
    assert result.data == {}
    assert result.errors[:3] == [
        "First name is required",
        "Last name is required",
        "Company name is required",
    ]
    assert "Terms of service agreement is required" in result.errors
    assert "Background check consent is required" in result.errors
    assert "Professional conduct agreement is required" in result.errors


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"firstName": "J"}, "First name must be at least 2 characters"),
        ({"email": "owner-at-acme"}, "Invalid email format"),
        ({"phone": "12"}, "Invalid phone number format"),
        (
            {"password": "lowercase1", "confirmPassword": "lowercase1"},
            "Password must be at least 8 characters with uppercase, lowercase, and number",
        ),
        (
            {"password": "Aa1" + "b" * 80, "confirmPassword": "Aa1" + "b" * 80},
            "Password must be at most 72 bytes",
        ),
        ({"confirmPassword": "Secret124"}, "Passwords do not match"),
        ({"businessAddress": "Short"}, "Business address must be complete"),
        ({"termsAgreement": "yes"}, "Terms of service agreement is required"),
        ({"websiteUrl": "acme"}, "Invalid website URL format"),
    ],
)
def test_signup_field_errors(overrides, message):
    result = validate("signup", signup_payload(**overrides))
    assert not result.valid
    assert result.errors == [message]


def test_lead_submission_derives_zip_and_filters_photos():
    result = validate(
        "lead_submission",
        lead_payload(details="<script>alert(1)</script>Lovely house with a big garden"),
    )
    assert result.valid
    form = result.form
    assert form.zip_code == "62704"
    assert form.email == "sam@example.com"
    assert form.photo_urls == ["https://res.cloudinary.com/demo/a.jpg"]
    assert form.details == "Lovely house with a big garden"


def test_lead_submission_ignores_client_supplied_zip():
    result = validate("lead_submission", lead_payload(address="1 Long Road without a code", zipCode="90210"))
    assert result.valid
    assert result.form.zip_code is None


def test_lead_submission_uses_photo_prefixes_from_context():
    payload = lead_payload(**{"photo-urls": "https://cdn.example/a.jpg https://res.cloudinary.com/b.jpg"})
    result = validate("lead_submission", payload, context={"photo_prefixes": ("https://cdn.example/",)})
    assert result.form.photo_urls == ["https://cdn.example/a.jpg"]


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"details": ""}, "Details are required"),
        ({"details": "too short"}, "Details must be at least 10 characters"),
        ({"propertyType": "castle"}, "Invalid property type"),
        ({"timeline": "someday"}, "Invalid timeline"),
        ({"address": "tiny"}, "Address must be at least 10 characters"),
    ],
)
def test_lead_submission_field_errors(overrides, message):
    result = validate("lead_submission", lead_payload(**overrides))
    assert result.errors == [message]


def test_lead_query_defaults():
    params = validate("lead_query", {}).form
    assert (params.limit, params.offset, params.radius) == (20, 0, 25)
    assert params.zip_bounds() == (None, None)


def test_lead_query_zip_bounds_follow_radius():
    params = validate("lead_query", {"zipCode": "62704", "radius": "25"}).form
    assert params.zip_bounds() == ("62702", "62706")
    params = validate("lead_query", {"zipCode": "00003", "radius": "50"}).form
    assert params.zip_bounds() == ("00000", "00008")


@pytest.mark.parametrize(
    "query, message",
    [
        ({"limit": "0"}, "Limit must be between 1 and 100"),
        ({"limit": "101"}, "Limit must be between 1 and 100"),
        ({"limit": "ten"}, "Limit must be between 1 and 100"),
        ({"offset": "-1"}, "Offset must be non-negative"),
        ({"zipCode": "6270"}, "Invalid zip code format"),
        ({"radius": "1001"}, "Radius must be between 1 and 1000 miles"),
        ({"timeline": "later"}, "Invalid timeline value"),
    ],
)
def test_lead_query_rejects_out_of_range_values(query, message):
    assert validate("lead_query", query).errors == [message]


def test_checkout_requires_lead_for_exclusive():
    result = validate(
        "checkout",
        {"type": "exclusive", "companyEmail": "owner@acme.example", "companyName": "Acme"},
    )
    assert result.errors == ["Lead ID is required for exclusive purchases"]

    result = validate(
        "checkout",
        {"type": "subscription", "companyEmail": "owner@acme.example", "companyName": "Acme"},
    )
    assert result.valid
    assert result.form.lead_id is None


def test_non_object_body_is_rejected():
    result = validate("signup", ["not", "an", "object"])
    assert result.errors == ["Request body must be a JSON object"]


def test_validate_or_raise_uses_single_error_as_message():
    with pytest.raises(ValidationFailed) as exc:
        validate_or_raise("lead_query", {"limit": "500"})
    assert exc.value.message == "Limit must be between 1 and 100"
    assert exc.value.status_code == 400
    assert exc.value.to_payload()["details"] == ["Limit must be between 1 and 100"]


def test_unknown_schema_name_raises_key_error():
    with pytest.raises(KeyError):
        validate("nonexistent", {})
