"""Pure functions measuring a user's standing against unlock criteria."""
from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional

from ..accounts.models import UserRecord
from ..catalog.models import UnlockCriterion, UnlockCriterionType
from ..rules.money import ZERO, to_money
from .models import CriterionProgress

_SECONDS_PER_DAY = 86400


def active_subscription_count(user: UserRecord) -> int:
    return len(user.active_only)


def total_monthly_spend(user: UserRecord) -> Decimal:
    """Sum of ``monthly_amount_for_credits`` across active subscriptions."""

    return to_money(sum((sub.monthly_amount_for_credits for sub in user.active_only), ZERO))


def has_active_bundle(user: UserRecord, bundle_id: str) -> bool:
    return any(sub.bundle_id == bundle_id for sub in user.active_only)


def account_age_days(user: UserRecord, now: datetime) -> int:
    """Whole days since registration, rounded up; 0 without a registration date."""

    if user.registration_date is None:
        return 0
    elapsed = abs((now - user.registration_date).total_seconds())
    return math.ceil(elapsed / _SECONDS_PER_DAY)


def evaluate_criterion(
    user: UserRecord,
    criterion: UnlockCriterion,
    now: datetime,
    *,
    bundle_names: Optional[Mapping[str, str]] = None,
) -> CriterionProgress:
    """Measure ``user`` against ``criterion``.

    ``bundle_names`` maps bundle ids to display names for the progress unit;
    unknown ids are shown as-is.
    """

    criterion_type = criterion.type
    if criterion_type == UnlockCriterionType.MIN_SUBSCRIPTIONS_LINKED:
        current = Decimal(active_subscription_count(user))
        target = criterion.threshold
        unit = "subscriptions"
    elif criterion_type == UnlockCriterionType.MIN_MONTHLY_SPEND:
        current = total_monthly_spend(user)
        target = criterion.threshold
        unit = "EUR spent/month"
    elif criterion_type == UnlockCriterionType.SPECIFIC_BUNDLE_SUBSCRIBED:
        bundle_id = str(criterion.value)
        current = Decimal(1 if has_active_bundle(user, bundle_id) else 0)
        target = Decimal(1)
        bundle_name = (bundle_names or {}).get(bundle_id, bundle_id)
        unit = f"subscribed to {bundle_name}"
    elif criterion_type == UnlockCriterionType.ACCOUNT_AGE_DAYS:
        current = Decimal(account_age_days(user, now))
        target = criterion.threshold
        unit = "days as member"
    else:  # pragma: no cover - guarded by the enum
        raise ValueError(f"Unsupported criterion type: {criterion_type}")

    return CriterionProgress(
        type=criterion_type,
        current=current,
        target=target,
        unit=unit,
        description=criterion.description,
        met=current >= target,
    )


def criterion_met(
    user: UserRecord,
    criterion: UnlockCriterion,
    now: datetime,
    *,
    bundle_names: Optional[Mapping[str, str]] = None,
) -> bool:
    return evaluate_criterion(user, criterion, now, bundle_names=bundle_names).met


__all__ = [
    "account_age_days",
    "active_subscription_count",
    "criterion_met",
    "evaluate_criterion",
    "has_active_bundle",
    "total_monthly_spend",
]
