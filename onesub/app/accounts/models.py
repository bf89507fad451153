"""User record consumed and produced by the rules engine."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..catalog.models import BillingCycle, PerkDelivery
from ..rules.clock import ensure_aware
from ..rules.money import ZERO


class UserRole(str, Enum):
    """Platform roles."""

    USER = "user"
    PROVIDER = "provider"
    ADMIN = "admin"
    GUEST = "guest"


class AccountStatus(str, Enum):
    """Account standing managed by platform admins."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class SubscriptionStatus(str, Enum):
    """Lifecycle state of a bundle subscription."""

    ACTIVE = "active"
    PAUSED = "paused"
    CANCELED = "canceled"
    PAYMENT_FAILED = "payment_failed"
    SUSPENDED = "suspended"


class PerkStatus(str, Enum):
    """One-directional perk status: locked -> unlocked -> redeemed."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"
    REDEEMED = "redeemed"


class ActiveSubscription(BaseModel):
    """A user's subscription to one bundle.

    ``monthly_amount_for_credits`` is the monthly-equivalent of ``price_paid``
    and is the only input to credit accrual and spend-based perk criteria.
    ``paused_at`` and ``pause_end_date`` are only set while paused.
    """

    bundle_id: str
    cycle: BillingCycle
    subscribed_date: datetime
    price_paid: Decimal = Field(ge=0)
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    next_billing_date: datetime
    pause_end_date: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    credit_rate: Decimal = Field(default=Decimal("0.01"), ge=0, le=1)
    monthly_amount_for_credits: Decimal = Field(ge=0)

    model_config = ConfigDict(frozen=True)

    @field_validator("subscribed_date", "next_billing_date", "pause_end_date", "paused_at")
    @classmethod
    def _aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(value) if value is not None else None

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE

    @property
    def is_paused(self) -> bool:
        return self.status == SubscriptionStatus.PAUSED


class UserPerkStatus(BaseModel):
    """A user's standing for one catalog perk."""

    perk_id: str
    status: PerkStatus = PerkStatus.LOCKED
    date_unlocked: Optional[datetime] = None
    date_redeemed: Optional[datetime] = None
    redemption_info: Optional[PerkDelivery] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("date_unlocked", "date_redeemed")
    @classmethod
    def _aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(value) if value is not None else None

    @property
    def is_unlocked(self) -> bool:
        """``True`` once the perk has been unlocked, whether or not it was claimed."""

        return self.status in {PerkStatus.UNLOCKED, PerkStatus.REDEEMED}


class Principal(BaseModel):
    """Identity of the caller performing an operation."""

    user_id: str
    email: Optional[str] = None
    role: UserRole = UserRole.USER

    model_config = ConfigDict(frozen=True)


class UserRecord(BaseModel):
    """Everything the rules engine knows about one user."""

    id: str
    email: str
    full_name: Optional[str] = None
    role: UserRole = UserRole.USER
    is_verified: bool = False
    account_status: AccountStatus = AccountStatus.ACTIVE
    registration_date: Optional[datetime] = None
    active_subscriptions: Sequence[ActiveSubscription] = Field(default_factory=tuple)
    total_credits_earned: Decimal = Field(default=ZERO, ge=0)
    credits_available: Decimal = Field(default=ZERO, ge=0)
    credits_redeemed: Decimal = Field(default=ZERO, ge=0)
    last_credit_update_timestamp: Optional[datetime] = None
    perk_statuses: Sequence[UserPerkStatus] = Field(default_factory=tuple)
    # Last billing period credited per bundle id; outlives cancel and re-subscribe.
    credit_periods: Mapping[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("active_subscriptions", "perk_statuses")
    @classmethod
    def _freeze(cls, value: Sequence[object]) -> tuple[object, ...]:
        return tuple(value)

    @field_validator("registration_date", "last_credit_update_timestamp")
    @classmethod
    def _aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(value) if value is not None else None

    @property
    def subscription_status(self) -> str:
        """``active`` while any subscription entry is on file, ``none`` otherwise."""

        return "active" if self.active_subscriptions else "none"

    @property
    def active_only(self) -> tuple[ActiveSubscription, ...]:
        """Subscriptions that count towards credits and perks."""

        return tuple(sub for sub in self.active_subscriptions if sub.is_active)

    def find_subscription(self, bundle_id: str) -> Optional[ActiveSubscription]:
        for subscription in self.active_subscriptions:
            if subscription.bundle_id == bundle_id:
                return subscription
        return None

    def find_perk_status(self, perk_id: str) -> Optional[UserPerkStatus]:
        for perk_status in self.perk_statuses:
            if perk_status.perk_id == perk_id:
                return perk_status
        return None

    def as_principal(self) -> Principal:
        return Principal(user_id=self.id, email=self.email, role=self.role)
