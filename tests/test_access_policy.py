from __future__ import annotations

from datetime import datetime, timedelta, timezone

from leadconnect.domain import access_policy

from tests.helpers import make_claims, make_lead

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_subscriber_sees_contact_details():
    view = access_policy.project(make_lead(created_at=NOW - timedelta(hours=2)), make_claims(), NOW)
    assert view.first_name == "Sam"
    assert view.email == "sam@example.com"
    assert view.address.startswith("44 Elm Street")
    assert view.is_in_exclusive_window is True
    assert view.date_submitted == "2024-05-01"


def test_non_subscriber_gets_placeholders_but_public_fields():
    view = access_policy.project(make_lead(), make_claims(subscription_status="none"), NOW)
    assert (view.first_name, view.last_name) == ("Subscribe", "to view")
    assert view.email == "subscription@required.com"
    assert view.phone == "***-***-****"
    assert view.address == "Subscription required to view address"
    assert view.details == "Three bedroom house full of antiques."
    assert view.zip_code == "62704"
    assert view.photos == ["https://res.cloudinary.com/demo/a.jpg"]


def test_anonymous_caller_is_redacted():
    view = access_policy.project(make_lead(), None, NOW)
    assert view.email == access_policy.PLACEHOLDER_EMAIL


def test_exclusive_purchase_hides_contact_even_for_subscribers():
    lead = make_lead(
        created_at=NOW - timedelta(hours=1),
        exclusive_purchased_by="Other Co",
        exclusive_purchase_date=NOW,
    )
    view = access_policy.project(lead, make_claims(), NOW)
    assert view.email == access_policy.PLACEHOLDER_EMAIL
    assert view.is_in_exclusive_window is False
    assert view.exclusive_purchased_by == "Other Co"
    assert view.exclusive_purchase_date == NOW.isoformat()


def test_exclusive_window_closes_after_twenty_four_hours():
    assert access_policy.is_in_exclusive_window(make_lead(created_at=NOW - timedelta(hours=23, minutes=59)), NOW)
    assert not access_policy.is_in_exclusive_window(make_lead(created_at=NOW - timedelta(hours=24)), NOW)


def test_naive_timestamps_are_treated_as_utc():
    lead = make_lead(created_at=(NOW - timedelta(hours=1)).replace(tzinfo=None))
    assert access_policy.is_in_exclusive_window(lead, NOW)


def test_project_all_keeps_order():
    leads = [make_lead(id=3), make_lead(id=2)]
    assert [view.id for view in access_policy.project_all(leads, None, NOW)] == [3, 2]
