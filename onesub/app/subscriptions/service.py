"""Subscription lifecycle: subscribe, cancel, pause, resume and billing outcomes."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from ...config import RulesConfig
from ..accounts.models import ActiveSubscription, SubscriptionStatus, UserRecord, UserRole
from ..accounts.permissions import Actor, require_role
from ..catalog.models import BillingCycle, Bundle
from ..catalog.repository import BundleCatalog, require_bundle
from ..rules.clock import Clock, utc_now
from ..rules.events import (
    AuditEvent,
    AuditEventType,
    NullEventLogger,
    RulesEventLogger,
    RulesNotifier,
    SubscriptionAction,
    dispatch_safely,
)
from ..rules.exceptions import (
    InvalidAmountError,
    NotAuthenticatedError,
    NotPausedError,
    NotSubscribedError,
    NotVerifiedError,
)
from ..rules.money import Amount, to_money

logger = logging.getLogger(__name__)

_CYCLE_INTERVALS = {
    BillingCycle.MONTHLY: relativedelta(months=1),
    BillingCycle.ANNUALLY: relativedelta(years=1),
}


def monthly_equivalent(price_paid: Decimal, cycle: BillingCycle) -> Decimal:
    """Return the monthly credit-accrual base for a charge of ``price_paid`` per ``cycle``."""

    if cycle == BillingCycle.ANNUALLY:
        return to_money(price_paid / 12)
    return to_money(price_paid)


def advance_billing_date(value: datetime, cycle: BillingCycle) -> datetime:
    """Return the billing date one ``cycle`` after ``value``, clamped to the end of short months."""

    return value + _CYCLE_INTERVALS[BillingCycle(cycle)]


@dataclass(slots=True)
class SubscriptionLifecycleManager:
    """Owns transitions between subscription states for one user record at a time.

    Every operation takes a user record and returns an updated copy; the
    caller is responsible for recomputing credits and perks afterwards.
    """

    bundle_catalog: BundleCatalog
    notifier: RulesNotifier
    event_logger: RulesEventLogger = field(default_factory=NullEventLogger)
    config: RulesConfig = field(default_factory=RulesConfig)
    clock: Clock = utc_now

    def subscribe(
        self,
        user: Optional[UserRecord],
        bundle_id: str,
        cycle: BillingCycle,
        price_paid: Amount,
    ) -> UserRecord:
        if user is None:
            raise NotAuthenticatedError()
        if not user.is_verified:
            raise NotVerifiedError()

        bundle = require_bundle(self.bundle_catalog, bundle_id)
        cycle = BillingCycle(cycle)
        amount = to_money(price_paid)
        if amount < 0:
            raise InvalidAmountError("Price paid cannot be negative.", detail={"price_paid": str(amount)})

        existing = user.find_subscription(bundle_id)
        if existing is not None and existing.is_active:
            logger.warning("User %s already actively subscribed to bundle %s", user.id, bundle_id)
            return user

        now = self.clock()
        subscription = ActiveSubscription(
            bundle_id=bundle_id,
            cycle=cycle,
            subscribed_date=now,
            price_paid=amount,
            status=SubscriptionStatus.ACTIVE,
            next_billing_date=advance_billing_date(now, cycle),
            credit_rate=self.config.default_credit_rate,
            monthly_amount_for_credits=monthly_equivalent(amount, cycle),
        )
        # A paused, failed or suspended entry for the same bundle is superseded.
        remaining = tuple(sub for sub in user.active_subscriptions if sub.bundle_id != bundle_id)
        updated = user.model_copy(update={"active_subscriptions": remaining + (subscription,)})

        dispatch_safely(
            lambda: self.notifier.notify_subscription_confirmed(updated, bundle, cycle, amount),
            description="subscription confirmation",
        )
        self._alert_admin(updated, bundle, SubscriptionAction.SUBSCRIBED)
        dispatch_safely(
            lambda: self.notifier.notify_provider_subscription_alert(updated, bundle),
            description="provider subscription alert",
        )
        self._audit(
            AuditEventType.SUBSCRIPTION_ACTIVATED,
            updated,
            bundle_id,
            metadata={"cycle": cycle.value, "price_paid": str(amount)},
        )
        return updated

    def cancel(self, user: Optional[UserRecord], bundle_id: str) -> UserRecord:
        """Remove the subscription entry; absence of an entry means canceled."""

        self._require_entry(user, bundle_id)
        remaining = tuple(sub for sub in user.active_subscriptions if sub.bundle_id != bundle_id)
        updated = user.model_copy(update={"active_subscriptions": remaining})

        bundle = self.bundle_catalog.get_bundle(bundle_id)
        if bundle is not None:
            dispatch_safely(
                lambda: self.notifier.notify_subscription_canceled(updated, bundle),
                description="subscription cancellation",
            )
            self._alert_admin(updated, bundle, SubscriptionAction.CANCELED)
        self._audit(AuditEventType.SUBSCRIPTION_CANCELED, updated, bundle_id)
        return updated

    def pause(self, user: Optional[UserRecord], bundle_id: str, days: int) -> UserRecord:
        if days < 1 or days > self.config.max_pause_days:
            raise InvalidAmountError(
                f"Pause duration must be between 1 and {self.config.max_pause_days} days.",
                detail={"days": days},
            )
        existing = self._require_entry(user, bundle_id)
        if not existing.is_active:
            raise NotSubscribedError(
                "Only active subscriptions can be paused.",
                detail={"bundle_id": bundle_id, "status": existing.status.value},
            )

        now = self.clock()
        pause_end_date = now + timedelta(days=days)
        paused = existing.model_copy(
            update={
                "status": SubscriptionStatus.PAUSED,
                "pause_end_date": pause_end_date,
                "paused_at": now,
            }
        )
        updated = _replace_subscription(user, paused)

        bundle = self.bundle_catalog.get_bundle(bundle_id)
        if bundle is not None:
            dispatch_safely(
                lambda: self.notifier.notify_subscription_paused(updated, bundle, pause_end_date),
                description="subscription paused",
            )
            self._alert_admin(updated, bundle, SubscriptionAction.PAUSED)
        self._audit(
            AuditEventType.SUBSCRIPTION_PAUSED,
            updated,
            bundle_id,
            metadata={"pause_end_date": pause_end_date.isoformat()},
        )
        return updated

    def resume(self, user: Optional[UserRecord], bundle_id: str) -> UserRecord:
        """Reactivate a paused subscription, pushing billing out by the time spent paused."""

        existing = self._require_entry(user, bundle_id)
        if not existing.is_paused:
            raise NotPausedError(detail={"bundle_id": bundle_id, "status": existing.status.value})

        now = self.clock()
        paused_for = max(now - (existing.paused_at or now), timedelta(0))
        resumed = existing.model_copy(
            update={
                "status": SubscriptionStatus.ACTIVE,
                "next_billing_date": existing.next_billing_date + paused_for,
                "pause_end_date": None,
                "paused_at": None,
            }
        )
        updated = _replace_subscription(user, resumed)

        bundle = self.bundle_catalog.get_bundle(bundle_id)
        if bundle is not None:
            dispatch_safely(
                lambda: self.notifier.notify_subscription_resumed(updated, bundle),
                description="subscription resumed",
            )
            self._alert_admin(updated, bundle, SubscriptionAction.RESUMED)
        self._audit(
            AuditEventType.SUBSCRIPTION_RESUMED,
            updated,
            bundle_id,
            metadata={"paused_seconds": str(int(paused_for.total_seconds()))},
        )
        return updated

    def resume_due(self, user: UserRecord) -> UserRecord:
        """Resume every paused subscription whose pause window has ended."""

        now = self.clock()
        due = [
            sub.bundle_id
            for sub in user.active_subscriptions
            if sub.is_paused and sub.pause_end_date is not None and sub.pause_end_date <= now
        ]
        for bundle_id in due:
            user = self.resume(user, bundle_id)
        return user

    def record_billing_outcome(
        self,
        user: Optional[UserRecord],
        bundle_id: str,
        *,
        payment_succeeded: bool,
    ) -> UserRecord:
        """Apply the payment gateway's verdict for the subscription's current billing date."""

        existing = self._require_entry(user, bundle_id)
        if existing.status not in {SubscriptionStatus.ACTIVE, SubscriptionStatus.PAYMENT_FAILED}:
            raise NotSubscribedError(
                "Only active or past-due subscriptions can be billed.",
                detail={"bundle_id": bundle_id, "status": existing.status.value},
            )

        bundle = self.bundle_catalog.get_bundle(bundle_id)
        if payment_succeeded:
            billed = existing.model_copy(
                update={
                    "status": SubscriptionStatus.ACTIVE,
                    "next_billing_date": advance_billing_date(existing.next_billing_date, existing.cycle),
                }
            )
            updated = _replace_subscription(user, billed)
            if bundle is not None:
                paid_at = self.clock()
                dispatch_safely(
                    lambda: self.notifier.notify_payment_receipt(updated, bundle, existing.price_paid, paid_at),
                    description="payment receipt",
                )
            event_type = AuditEventType.PAYMENT_SUCCEEDED
        else:
            billed = existing.model_copy(update={"status": SubscriptionStatus.PAYMENT_FAILED})
            updated = _replace_subscription(user, billed)
            if bundle is not None:
                dispatch_safely(
                    lambda: self.notifier.notify_payment_failed(updated, bundle, existing.price_paid),
                    description="payment failure",
                )
            event_type = AuditEventType.PAYMENT_FAILED

        self._audit(event_type, updated, bundle_id, metadata={"amount": str(existing.price_paid)})
        return updated

    def suspend(self, actor: Optional[Actor], user: UserRecord, bundle_id: str) -> UserRecord:
        principal = require_role(actor, UserRole.ADMIN)
        existing = self._require_entry(user, bundle_id)
        suspended = existing.model_copy(
            update={"status": SubscriptionStatus.SUSPENDED, "pause_end_date": None, "paused_at": None}
        )
        updated = _replace_subscription(user, suspended)
        self._audit(AuditEventType.SUBSCRIPTION_SUSPENDED, updated, bundle_id, actor_id=principal.user_id)
        return updated

    def _require_entry(self, user: Optional[UserRecord], bundle_id: str) -> ActiveSubscription:
        if user is None:
            raise NotAuthenticatedError()
        existing = user.find_subscription(bundle_id)
        if existing is None:
            raise NotSubscribedError(
                f"No subscription to bundle {bundle_id}.",
                detail={"bundle_id": bundle_id},
            )
        return existing

    def _alert_admin(self, user: UserRecord, bundle: Bundle, action: SubscriptionAction) -> None:
        dispatch_safely(
            lambda: self.notifier.notify_admin_subscription_alert(user, bundle, action),
            description=f"admin alert ({action.value})",
        )

    def _audit(
        self,
        event_type: AuditEventType,
        user: UserRecord,
        bundle_id: str,
        *,
        actor_id: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        self.event_logger.log(
            AuditEvent(
                event_type=event_type,
                user_id=user.id,
                actor_id=actor_id or user.id,
                subject_id=bundle_id,
                metadata=metadata or {},
                occurred_at=self.clock(),
            )
        )


def _replace_subscription(user: UserRecord, subscription: ActiveSubscription) -> UserRecord:
    subscriptions = tuple(
        subscription if sub.bundle_id == subscription.bundle_id else sub
        for sub in user.active_subscriptions
    )
    return user.model_copy(update={"active_subscriptions": subscriptions})


__all__ = ["SubscriptionLifecycleManager", "advance_billing_date", "monthly_equivalent"]
