"""Perk progress and reporting models."""
from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field

from ..catalog.models import UnlockCriterionType


class CriterionProgress(BaseModel):
    """How far a user is from satisfying a single unlock criterion."""

    type: UnlockCriterionType
    current: Decimal
    target: Decimal
    unit: str
    description: str = ""
    met: bool

    model_config = ConfigDict(frozen=True)


class PerkProgress(BaseModel):
    """User-facing summary of a perk's unlock progress."""

    perk_id: str
    message: str
    is_unlocked: bool
    progress: Sequence[CriterionProgress] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)


class PerkRedemptionStats(BaseModel):
    """Aggregate unlock and redemption counts for one perk."""

    perk_id: str
    unlocked_count: int = 0
    redeemed_count: int = 0

    model_config = ConfigDict(frozen=True)
