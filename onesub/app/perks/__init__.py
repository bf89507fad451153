"""Perk eligibility rules."""

from .criteria import (
    account_age_days,
    active_subscription_count,
    criterion_met,
    evaluate_criterion,
    has_active_bundle,
    total_monthly_spend,
)
from .models import CriterionProgress, PerkProgress, PerkRedemptionStats
from .service import PerkEligibilityEngine

__all__ = [
    "account_age_days",
    "active_subscription_count",
    "criterion_met",
    "evaluate_criterion",
    "has_active_bundle",
    "total_monthly_spend",
    "CriterionProgress",
    "PerkProgress",
    "PerkRedemptionStats",
    "PerkEligibilityEngine",
]
