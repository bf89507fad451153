from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from onesub.app.accounts.models import SubscriptionStatus
from onesub.app.catalog.models import UnlockCriterion, UnlockCriterionType
from onesub.app.perks.criteria import (
    account_age_days,
    active_subscription_count,
    criterion_met,
    evaluate_criterion,
    has_active_bundle,
    total_monthly_spend,
)
from onesub.tests.fakes import NOW, make_subscription, make_user


@pytest.fixture
def subscriber():
    return make_user(
        active_subscriptions=[
            make_subscription("bundle1", monthly_amount="25.50"),
            make_subscription("bundle4", monthly_amount="15.00"),
            make_subscription("bundle3", monthly_amount="21.00", status=SubscriptionStatus.PAUSED),
        ],
        registration_date=NOW - timedelta(days=29, hours=1),
    )


def test_counts_and_spend_ignore_non_active_subscriptions(subscriber):
    assert active_subscription_count(subscriber) == 2
    assert total_monthly_spend(subscriber) == Decimal("40.50")
    assert has_active_bundle(subscriber, "bundle1") is True
    assert has_active_bundle(subscriber, "bundle3") is False


def test_account_age_rounds_partial_days_up(subscriber):
    assert account_age_days(subscriber, NOW) == 30
    assert account_age_days(make_user(registration_date=NOW - timedelta(days=45)), NOW) == 45
    assert account_age_days(make_user(registration_date=None), NOW) == 0


def test_min_subscriptions_progress(subscriber):
    criterion = UnlockCriterion(type=UnlockCriterionType.MIN_SUBSCRIPTIONS_LINKED, value=3, description="Link 3")

    progress = evaluate_criterion(subscriber, criterion, NOW)

    assert progress.current == Decimal(2)
    assert progress.target == Decimal(3)
    assert progress.unit == "subscriptions"
    assert progress.description == "Link 3"
    assert progress.met is False


def test_min_monthly_spend_accepts_fractional_threshold(subscriber):
    criterion = UnlockCriterion(type=UnlockCriterionType.MIN_MONTHLY_SPEND, value=40.5)

    progress = evaluate_criterion(subscriber, criterion, NOW)

    assert progress.target == Decimal("40.5")
    assert progress.unit == "EUR spent/month"
    assert progress.met is True


def test_specific_bundle_progress(subscriber):
    subscribed = UnlockCriterion(type=UnlockCriterionType.SPECIFIC_BUNDLE_SUBSCRIBED, value="bundle1")
    paused = UnlockCriterion(type=UnlockCriterionType.SPECIFIC_BUNDLE_SUBSCRIBED, value="bundle3")

    progress = evaluate_criterion(subscriber, subscribed, NOW)

    assert (progress.current, progress.target) == (Decimal(1), Decimal(1))
    assert progress.unit == "subscribed to bundle1"
    assert criterion_met(subscriber, paused, NOW) is False


def test_specific_bundle_unit_uses_bundle_name(subscriber):
    criterion = UnlockCriterion(type=UnlockCriterionType.SPECIFIC_BUNDLE_SUBSCRIBED, value="bundle1")
    names = {"bundle1": "The Ultimate Harmony Pack"}

    progress = evaluate_criterion(subscriber, criterion, NOW, bundle_names=names)

    assert progress.unit == "subscribed to The Ultimate Harmony Pack"
    assert criterion_met(subscriber, criterion, NOW, bundle_names=names) is True
    unknown = UnlockCriterion(type=UnlockCriterionType.SPECIFIC_BUNDLE_SUBSCRIBED, value="bundle9")
    assert evaluate_criterion(subscriber, unknown, NOW, bundle_names=names).unit == "subscribed to bundle9"


def test_account_age_criterion(subscriber):
    criterion = UnlockCriterion(type=UnlockCriterionType.ACCOUNT_AGE_DAYS, value="30")

    progress = evaluate_criterion(subscriber, criterion, NOW)

    assert progress.current == Decimal(30)
    assert progress.unit == "days as member"
    assert progress.met is True


def test_criterion_value_validation():
    with pytest.raises(ValueError):
        UnlockCriterion(type=UnlockCriterionType.SPECIFIC_BUNDLE_SUBSCRIBED, value="")
    with pytest.raises(ValueError):
        UnlockCriterion(type=UnlockCriterionType.MIN_SUBSCRIPTIONS_LINKED, value="two")
    with pytest.raises(ValueError):
        UnlockCriterion(type=UnlockCriterionType.ACCOUNT_AGE_DAYS, value=True)
