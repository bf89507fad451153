"""API schemas for account, subscription, credit and perk endpoints."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..accounts.models import (
    ActiveSubscription,
    PerkStatus,
    SubscriptionStatus,
    UserPerkStatus,
    UserRecord,
    UserRole,
)
from ..catalog.models import BillingCycle, Perk, PerkDelivery
from ..perks.models import CriterionProgress, PerkProgress
from ..rules.money import format_credits


class SubscribeRequest(BaseModel):
    bundle_id: str = Field(alias="bundleId")
    cycle: BillingCycle = BillingCycle.MONTHLY
    price_paid: Optional[Decimal] = Field(alias="pricePaid", default=None)

    model_config = ConfigDict(populate_by_name=True)


class PauseRequest(BaseModel):
    days: int = Field(ge=1)

    model_config = ConfigDict(populate_by_name=True)


class RedeemCreditsRequest(BaseModel):
    amount: Decimal

    model_config = ConfigDict(populate_by_name=True)


class CreditAdjustmentRequest(BaseModel):
    new_available_balance: Decimal = Field(alias="newAvailableBalance")

    model_config = ConfigDict(populate_by_name=True)


class SubscriptionOut(BaseModel):
    bundle_id: str = Field(alias="bundleId")
    cycle: BillingCycle
    status: SubscriptionStatus
    subscribed_date: datetime = Field(alias="subscribedDate")
    price_paid: Decimal = Field(alias="pricePaid")
    next_billing_date: datetime = Field(alias="nextBillingDate")
    pause_end_date: Optional[datetime] = Field(alias="pauseEndDate", default=None)
    monthly_amount_for_credits: Decimal = Field(alias="monthlyAmountForCredits")
    credit_rate: Decimal = Field(alias="creditRate")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_subscription(cls, subscription: ActiveSubscription) -> "SubscriptionOut":
        return cls(
            bundle_id=subscription.bundle_id,
            cycle=subscription.cycle,
            status=subscription.status,
            subscribed_date=subscription.subscribed_date,
            price_paid=subscription.price_paid,
            next_billing_date=subscription.next_billing_date,
            pause_end_date=subscription.pause_end_date,
            monthly_amount_for_credits=subscription.monthly_amount_for_credits,
            credit_rate=subscription.credit_rate,
        )


class PerkStatusOut(BaseModel):
    perk_id: str = Field(alias="perkId")
    status: PerkStatus
    date_unlocked: Optional[datetime] = Field(alias="dateUnlocked", default=None)
    date_redeemed: Optional[datetime] = Field(alias="dateRedeemed", default=None)
    redemption_info: Optional[PerkDelivery] = Field(alias="redemptionInfo", default=None)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_status(cls, perk_status: UserPerkStatus) -> "PerkStatusOut":
        return cls(
            perk_id=perk_status.perk_id,
            status=perk_status.status,
            date_unlocked=perk_status.date_unlocked,
            date_redeemed=perk_status.date_redeemed,
            redemption_info=perk_status.redemption_info,
        )


class AccountSummary(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = Field(alias="fullName", default=None)
    role: UserRole
    is_verified: bool = Field(alias="isVerified")
    subscription_status: str = Field(alias="subscriptionStatus")
    subscriptions: List[SubscriptionOut] = Field(default_factory=list)
    total_credits_earned: Decimal = Field(alias="totalCreditsEarned")
    credits_available: Decimal = Field(alias="creditsAvailable")
    credits_redeemed: Decimal = Field(alias="creditsRedeemed")
    credits_display: str = Field(alias="creditsDisplay")
    last_credit_update: Optional[datetime] = Field(alias="lastCreditUpdate", default=None)
    perks: List[PerkStatusOut] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_user(cls, user: UserRecord) -> "AccountSummary":
        return cls(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            is_verified=user.is_verified,
            subscription_status=user.subscription_status,
            subscriptions=[SubscriptionOut.from_subscription(sub) for sub in user.active_subscriptions],
            total_credits_earned=user.total_credits_earned,
            credits_available=user.credits_available,
            credits_redeemed=user.credits_redeemed,
            credits_display=format_credits(user.credits_available),
            last_credit_update=user.last_credit_update_timestamp,
            perks=[PerkStatusOut.from_status(item) for item in user.perk_statuses],
        )


class PerkLockerEntry(BaseModel):
    perk_id: str = Field(alias="perkId")
    title: str
    partner_id: str = Field(alias="partnerId")
    category: Optional[str] = None
    status: PerkStatus
    message: str
    is_unlocked: bool = Field(alias="isUnlocked")
    expiry_date: Optional[datetime] = Field(alias="expiryDate", default=None)
    progress: List[CriterionProgress] = Field(default_factory=list)
    redemption_info: Optional[PerkDelivery] = Field(alias="redemptionInfo", default=None)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_progress(
        cls,
        perk: Perk,
        perk_status: Optional[UserPerkStatus],
        progress: PerkProgress,
    ) -> "PerkLockerEntry":
        return cls(
            perk_id=perk.id,
            title=perk.title,
            partner_id=perk.partner_id,
            category=perk.category,
            status=perk_status.status if perk_status else PerkStatus.LOCKED,
            message=progress.message,
            is_unlocked=progress.is_unlocked,
            expiry_date=perk.expiry_date,
            progress=list(progress.progress),
            # Delivery details are only revealed once the perk is unlocked.
            redemption_info=perk_status.redemption_info if perk_status and perk_status.is_unlocked else None,
        )


class PerkLockerResponse(BaseModel):
    perks: List[PerkLockerEntry]

    model_config = ConfigDict(populate_by_name=True)


__all__ = [
    "AccountSummary",
    "CreditAdjustmentRequest",
    "PauseRequest",
    "PerkLockerEntry",
    "PerkLockerResponse",
    "PerkStatusOut",
    "RedeemCreditsRequest",
    "SubscribeRequest",
    "SubscriptionOut",
]
