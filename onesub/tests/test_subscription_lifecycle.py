"""Unit tests for subscription lifecycle transitions."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from onesub.app.accounts.models import Principal, SubscriptionStatus, UserRole
from onesub.app.catalog.models import BillingCycle
from onesub.app.rules.events import SubscriptionAction
from onesub.app.rules.exceptions import (
    BundleNotFoundError,
    InvalidAmountError,
    NotAuthenticatedError,
    NotPausedError,
    NotSubscribedError,
    NotVerifiedError,
    UnauthorizedError,
)
from onesub.app.subscriptions.service import advance_billing_date, monthly_equivalent
from onesub.config import RulesConfig
from onesub.tests.fakes import NOW, EngineComponents, FailingNotifier, make_subscription, make_user

ADMIN = Principal(user_id="admin-1", email="admin@onesub.dev", role=UserRole.ADMIN)


@pytest.fixture
def components():
    return EngineComponents()


def test_subscribe_monthly_creates_active_entry(components):
    user = make_user()

    updated = components.lifecycle.subscribe(user, "bundle1", BillingCycle.MONTHLY, Decimal("30"))

    subscription = updated.find_subscription("bundle1")
    assert subscription is not None
    assert subscription.status == SubscriptionStatus.ACTIVE
    assert subscription.price_paid == Decimal("30.00")
    assert subscription.monthly_amount_for_credits == Decimal("30.00")
    assert subscription.credit_rate == Decimal("0.01")
    assert subscription.subscribed_date == NOW
    # 31 January rolls to the last day of February.
    assert subscription.next_billing_date == datetime(2025, 2, 28, 12, 0, tzinfo=timezone.utc)
    assert user.active_subscriptions == ()
    assert updated.subscription_status == "active"
    assert components.notifier.kinds() == ["confirmed", "admin_alert", "provider_alert"]
    assert components.notifier.calls[1][3] == SubscriptionAction.SUBSCRIBED
    assert components.event_logger.types() == ["subscription_activated"]


def test_subscribe_annually_uses_monthly_equivalent_for_credits(components):
    updated = components.lifecycle.subscribe(make_user(), "bundle2", BillingCycle.ANNUALLY, "237.60")

    subscription = updated.find_subscription("bundle2")
    assert subscription.price_paid == Decimal("237.60")
    assert subscription.monthly_amount_for_credits == Decimal("19.80")
    assert subscription.next_billing_date == datetime(2026, 1, 31, 12, 0, tzinfo=timezone.utc)


def test_subscribe_uses_configured_credit_rate():
    components = EngineComponents(config=RulesConfig(default_credit_rate=Decimal("0.02")))

    updated = components.lifecycle.subscribe(make_user(), "bundle4", BillingCycle.MONTHLY, 15)

    assert updated.find_subscription("bundle4").credit_rate == Decimal("0.02")


def test_subscribe_rejects_invalid_requests(components):
    with pytest.raises(NotAuthenticatedError):
        components.lifecycle.subscribe(None, "bundle1", BillingCycle.MONTHLY, 30)

    with pytest.raises(NotVerifiedError):
        components.lifecycle.subscribe(make_user(is_verified=False), "bundle1", BillingCycle.MONTHLY, 30)

    with pytest.raises(BundleNotFoundError) as excinfo:
        components.lifecycle.subscribe(make_user(), "nope", BillingCycle.MONTHLY, 30)
    assert excinfo.value.message == "Bundle with ID nope not found."

    with pytest.raises(InvalidAmountError):
        components.lifecycle.subscribe(make_user(), "bundle1", BillingCycle.MONTHLY, "-0.01")

    assert components.notifier.calls == []


def test_subscribe_twice_is_a_logged_no_op(components, caplog):
    caplog.set_level(logging.WARNING)
    user = make_user(active_subscriptions=[make_subscription("bundle1")])

    result = components.lifecycle.subscribe(user, "bundle1", BillingCycle.MONTHLY, 30)

    assert result is user
    assert components.notifier.calls == []
    assert "already actively subscribed" in caplog.text


def test_subscribe_replaces_non_active_entry_for_same_bundle(components):
    user = make_user(
        active_subscriptions=[
            make_subscription("bundle1", status=SubscriptionStatus.PAYMENT_FAILED),
            make_subscription("bundle4", monthly_amount="15.00"),
        ]
    )

    updated = components.lifecycle.subscribe(user, "bundle1", BillingCycle.MONTHLY, 30)

    bundle_ids = [sub.bundle_id for sub in updated.active_subscriptions]
    assert sorted(bundle_ids) == ["bundle1", "bundle4"]
    assert updated.find_subscription("bundle1").status == SubscriptionStatus.ACTIVE


def test_notification_failures_do_not_abort_subscribe(caplog):
    notifier = FailingNotifier()
    components = EngineComponents(notifier=notifier)

    updated = components.lifecycle.subscribe(make_user(), "bundle1", BillingCycle.MONTHLY, 30)

    assert updated.find_subscription("bundle1") is not None
    assert notifier.attempts == 3
    assert "Notification dispatch failed" in caplog.text


def test_cancel_removes_entry(components):
    user = make_user(active_subscriptions=[make_subscription("bundle1"), make_subscription("bundle4")])

    updated = components.lifecycle.cancel(user, "bundle1")

    assert [sub.bundle_id for sub in updated.active_subscriptions] == ["bundle4"]
    assert components.notifier.kinds() == ["canceled", "admin_alert"]
    assert components.event_logger.types() == ["subscription_canceled"]


def test_cancel_last_subscription_reports_no_status(components):
    user = make_user(active_subscriptions=[make_subscription("bundle1", status=SubscriptionStatus.PAUSED)])

    updated = components.lifecycle.cancel(user, "bundle1")

    assert updated.active_subscriptions == ()
    assert updated.subscription_status == "none"


def test_cancel_without_entry_raises(components):
    with pytest.raises(NotSubscribedError):
        components.lifecycle.cancel(make_user(), "bundle1")
    with pytest.raises(NotAuthenticatedError):
        components.lifecycle.cancel(None, "bundle1")


def test_pause_sets_pause_window(components):
    user = make_user(active_subscriptions=[make_subscription("bundle1")])

    updated = components.lifecycle.pause(user, "bundle1", 30)

    subscription = updated.find_subscription("bundle1")
    assert subscription.status == SubscriptionStatus.PAUSED
    assert subscription.paused_at == NOW
    assert subscription.pause_end_date == NOW + timedelta(days=30)
    assert updated.active_only == ()
    assert components.notifier.kinds() == ["paused", "admin_alert"]


@pytest.mark.parametrize("days", [0, -3, 91])
def test_pause_rejects_out_of_range_durations(components, days):
    user = make_user(active_subscriptions=[make_subscription("bundle1")])

    with pytest.raises(InvalidAmountError):
        components.lifecycle.pause(user, "bundle1", days)


def test_pause_requires_active_subscription(components):
    paused = make_user(active_subscriptions=[make_subscription("bundle1", status=SubscriptionStatus.PAUSED)])

    with pytest.raises(NotSubscribedError):
        components.lifecycle.pause(paused, "bundle1", 10)
    with pytest.raises(NotSubscribedError):
        components.lifecycle.pause(make_user(), "bundle1", 10)


def test_resume_shifts_billing_by_time_spent_paused(components):
    original = make_subscription("bundle1")
    user = make_user(active_subscriptions=[original])
    paused = components.lifecycle.pause(user, "bundle1", 30)

    components.clock.advance(days=10)
    resumed = components.lifecycle.resume(paused, "bundle1")

    subscription = resumed.find_subscription("bundle1")
    assert subscription.status == SubscriptionStatus.ACTIVE
    assert subscription.next_billing_date == original.next_billing_date + timedelta(days=10)
    assert subscription.pause_end_date is None
    assert subscription.paused_at is None
    assert components.notifier.kinds()[-2:] == ["resumed", "admin_alert"]


def test_immediate_resume_does_not_add_a_billing_cycle(components):
    original = make_subscription("bundle1")
    user = make_user(active_subscriptions=[original])

    paused = components.lifecycle.pause(user, "bundle1", 30)
    resumed = components.lifecycle.resume(paused, "bundle1")

    assert resumed.find_subscription("bundle1").next_billing_date == original.next_billing_date


def test_resume_requires_paused_subscription(components):
    user = make_user(active_subscriptions=[make_subscription("bundle1")])

    with pytest.raises(NotPausedError):
        components.lifecycle.resume(user, "bundle1")
    with pytest.raises(NotSubscribedError):
        components.lifecycle.resume(user, "bundle2")


def test_resume_due_only_resumes_expired_pauses(components):
    user = make_user(active_subscriptions=[make_subscription("bundle1"), make_subscription("bundle4")])
    user = components.lifecycle.pause(user, "bundle1", 5)
    user = components.lifecycle.pause(user, "bundle4", 30)

    components.clock.advance(days=6)
    updated = components.lifecycle.resume_due(user)

    assert updated.find_subscription("bundle1").status == SubscriptionStatus.ACTIVE
    assert updated.find_subscription("bundle4").status == SubscriptionStatus.PAUSED


def test_billing_success_advances_next_billing_date(components):
    subscription = make_subscription("bundle1", next_billing_date=datetime(2025, 2, 20, 12, 0, tzinfo=timezone.utc))
    user = make_user(active_subscriptions=[subscription])

    updated = components.lifecycle.record_billing_outcome(user, "bundle1", payment_succeeded=True)

    billed = updated.find_subscription("bundle1")
    assert billed.next_billing_date == datetime(2025, 3, 20, 12, 0, tzinfo=timezone.utc)
    assert components.notifier.kinds() == ["receipt"]
    assert components.event_logger.types() == ["payment_succeeded"]


def test_billing_failure_then_success_restores_active(components):
    user = make_user(active_subscriptions=[make_subscription("bundle1")])

    failed = components.lifecycle.record_billing_outcome(user, "bundle1", payment_succeeded=False)
    assert failed.find_subscription("bundle1").status == SubscriptionStatus.PAYMENT_FAILED
    assert failed.active_only == ()

    recovered = components.lifecycle.record_billing_outcome(failed, "bundle1", payment_succeeded=True)
    assert recovered.find_subscription("bundle1").status == SubscriptionStatus.ACTIVE
    assert components.notifier.kinds() == ["payment_failed", "receipt"]


def test_billing_paused_subscription_is_rejected(components):
    user = make_user(active_subscriptions=[make_subscription("bundle1", status=SubscriptionStatus.PAUSED)])

    with pytest.raises(NotSubscribedError):
        components.lifecycle.record_billing_outcome(user, "bundle1", payment_succeeded=True)


def test_suspend_requires_admin(components):
    user = make_user(active_subscriptions=[make_subscription("bundle1")])

    with pytest.raises(NotAuthenticatedError):
        components.lifecycle.suspend(None, user, "bundle1")
    with pytest.raises(UnauthorizedError):
        components.lifecycle.suspend(user, user, "bundle1")

    updated = components.lifecycle.suspend(ADMIN, user, "bundle1")

    assert updated.find_subscription("bundle1").status == SubscriptionStatus.SUSPENDED
    assert components.event_logger.events[-1].actor_id == "admin-1"


def test_helpers_for_cycles():
    assert monthly_equivalent(Decimal("306.00"), BillingCycle.ANNUALLY) == Decimal("25.50")
    assert monthly_equivalent(Decimal("21"), BillingCycle.MONTHLY) == Decimal("21.00")
    leap = datetime(2024, 2, 29, tzinfo=timezone.utc)
    assert advance_billing_date(leap, BillingCycle.ANNUALLY) == datetime(2025, 2, 28, tzinfo=timezone.utc)


def test_monthly_billing_date_clamps_to_month_end():
    month_end = datetime(2025, 1, 31, 12, tzinfo=timezone.utc)
    assert advance_billing_date(month_end, BillingCycle.MONTHLY) == datetime(2025, 2, 28, 12, tzinfo=timezone.utc)
    leap_year = datetime(2024, 1, 31, tzinfo=timezone.utc)
    assert advance_billing_date(leap_year, BillingCycle.MONTHLY) == datetime(2024, 2, 29, tzinfo=timezone.utc)
    assert advance_billing_date(datetime(2025, 12, 15, tzinfo=timezone.utc), BillingCycle.MONTHLY) == datetime(
        2026, 1, 15, tzinfo=timezone.utc
    )
