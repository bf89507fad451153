"""Read-only catalog models for bundles and partner perks."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..rules.clock import ensure_aware
from ..rules.money import ZERO, to_money


class BillingCycle(str, Enum):
    """Supported billing periods for a bundle subscription."""

    MONTHLY = "monthly"
    ANNUALLY = "annually"


class ServiceOffering(BaseModel):
    """A third-party service packaged inside a bundle."""

    id: str
    name: str
    original_price: Decimal = Field(ge=0)
    description: str = ""

    model_config = ConfigDict(frozen=True)


class Bundle(BaseModel):
    """Priced package of services. ``bundle_price`` is always the monthly reference price."""

    id: str
    name: str
    description: str = ""
    services: Sequence[ServiceOffering] = Field(default_factory=tuple)
    bundle_price: Decimal = Field(ge=0)
    annual_price_multiplier: Optional[Decimal] = Field(default=None, gt=0)

    model_config = ConfigDict(frozen=True)

    @property
    def total_original_price(self) -> Decimal:
        return to_money(sum((service.original_price for service in self.services), ZERO))

    @property
    def monthly_savings(self) -> Decimal:
        return max(to_money(self.total_original_price - self.bundle_price), ZERO)

    def price_for_cycle(self, cycle: BillingCycle) -> Decimal:
        """Return the amount charged for one billing period of ``cycle``."""

        if cycle == BillingCycle.MONTHLY:
            return to_money(self.bundle_price)
        multiplier = self.annual_price_multiplier or Decimal("1")
        return to_money(self.bundle_price * 12 * multiplier)


class PerkDeliveryMethod(str, Enum):
    """How a partner perk reaches the user once claimed."""

    LINK = "LINK"
    CODE = "CODE"
    MANUAL_EMAIL = "MANUAL_EMAIL"


class PerkDelivery(BaseModel):
    """Delivery payload for a perk, snapshotted onto the user at unlock and claim."""

    method: PerkDeliveryMethod
    value: Optional[str] = None
    instructions: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class UnlockCriterionType(str, Enum):
    """Kinds of eligibility rules a perk can require."""

    MIN_SUBSCRIPTIONS_LINKED = "MIN_SUBSCRIPTIONS_LINKED"
    MIN_MONTHLY_SPEND = "MIN_MONTHLY_SPEND"
    SPECIFIC_BUNDLE_SUBSCRIBED = "SPECIFIC_BUNDLE_SUBSCRIBED"
    ACCOUNT_AGE_DAYS = "ACCOUNT_AGE_DAYS"


class UnlockCriterion(BaseModel):
    """A single eligibility rule.

    ``value`` is a bundle id for ``SPECIFIC_BUNDLE_SUBSCRIBED`` and a numeric
    threshold for every other criterion type.
    """

    type: UnlockCriterionType
    value: Union[Decimal, str]
    description: str = ""

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _coerce_value(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        criterion_type = UnlockCriterionType(data.get("type"))
        value = data.get("value")
        if criterion_type == UnlockCriterionType.SPECIFIC_BUNDLE_SUBSCRIBED:
            if not isinstance(value, str) or not value:
                raise ValueError("SPECIFIC_BUNDLE_SUBSCRIBED requires a bundle id")
            return {**data, "type": criterion_type}
        if isinstance(value, bool):
            raise ValueError(f"{criterion_type.value} requires a numeric threshold")
        try:
            threshold = Decimal(repr(value) if isinstance(value, float) else str(value))
        except (InvalidOperation, TypeError) as exc:
            raise ValueError(f"{criterion_type.value} requires a numeric threshold") from exc
        return {**data, "type": criterion_type, "value": threshold}

    @property
    def threshold(self) -> Decimal:
        """Numeric target for count, spend and age criteria."""

        if isinstance(self.value, Decimal):
            return self.value
        raise TypeError(f"{self.type.value} has no numeric threshold")


class Perk(BaseModel):
    """Partner reward unlocked when every criterion in ``unlock_criteria`` holds."""

    id: str
    title: str
    partner_id: str
    description: str = ""
    unlock_criteria: Sequence[UnlockCriterion] = Field(default_factory=tuple)
    delivery: PerkDelivery
    expiry_date: Optional[datetime] = None
    active_status: bool = True
    category: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("unlock_criteria")
    @classmethod
    def _freeze_criteria(cls, value: Sequence[UnlockCriterion]) -> tuple[UnlockCriterion, ...]:
        return tuple(value)

    @field_validator("expiry_date")
    @classmethod
    def _aware_expiry(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(value) if value is not None else None

    def is_expired(self, now: datetime) -> bool:
        return self.expiry_date is not None and self.expiry_date < now

    def is_available(self, now: datetime) -> bool:
        """Return ``True`` when the perk can currently be earned or redeemed."""

        return self.active_status and not self.is_expired(now)
