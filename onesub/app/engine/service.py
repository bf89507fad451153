"""Orchestrates lifecycle changes with credit accrual, perk refresh and persistence."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from ...config import RulesConfig
from ..accounts.models import UserRecord, UserRole
from ..accounts.permissions import Actor, require_role
from ..accounts.repository import UserRepository
from ..catalog.models import BillingCycle
from ..credits.service import CreditLedger
from ..perks.service import PerkEligibilityEngine
from ..rules.clock import Clock, billing_period_key, utc_now
from ..rules.exceptions import NotAuthenticatedError, UserNotFoundError
from ..rules.money import Amount
from ..subscriptions.service import SubscriptionLifecycleManager

logger = logging.getLogger(__name__)

Operation = Callable[[UserRecord], UserRecord]


@dataclass(slots=True)
class RulesEngine:
    """Single entry point that keeps credits and perks in step with subscriptions.

    Every mutation runs through :meth:`apply_and_recompute`, so derived state
    is recomputed in a fixed order and the user record is only persisted once
    the whole sequence succeeded.
    """

    lifecycle: SubscriptionLifecycleManager
    ledger: CreditLedger
    perks: PerkEligibilityEngine
    repository: UserRepository
    config: RulesConfig = field(default_factory=RulesConfig)
    clock: Clock = utc_now

    def current_period(self) -> Optional[str]:
        if not self.config.gate_accrual_by_period:
            return None
        return billing_period_key(self.clock())

    def apply_and_recompute(self, user: Optional[UserRecord], operation: Operation) -> UserRecord:
        """Run ``operation`` then accrue credits, refresh perks and save the result."""

        if user is None:
            raise NotAuthenticatedError()
        updated = operation(user)
        updated = self.ledger.accrue(updated, period=self.current_period())
        updated = self.perks.refresh_all(updated)
        saved = self.repository.save_user(updated)
        logger.debug("Recomputed and saved user %s", saved.id)
        return saved

    def subscribe(
        self,
        user: Optional[UserRecord],
        bundle_id: str,
        cycle: BillingCycle,
        price_paid: Amount,
    ) -> UserRecord:
        return self.apply_and_recompute(
            user, lambda current: self.lifecycle.subscribe(current, bundle_id, cycle, price_paid)
        )

    def cancel(self, user: Optional[UserRecord], bundle_id: str) -> UserRecord:
        return self.apply_and_recompute(user, lambda current: self.lifecycle.cancel(current, bundle_id))

    def pause(self, user: Optional[UserRecord], bundle_id: str, days: int) -> UserRecord:
        return self.apply_and_recompute(user, lambda current: self.lifecycle.pause(current, bundle_id, days))

    def resume(self, user: Optional[UserRecord], bundle_id: str) -> UserRecord:
        return self.apply_and_recompute(user, lambda current: self.lifecycle.resume(current, bundle_id))

    def record_billing(
        self,
        actor: Optional[Actor],
        target_user_id: str,
        bundle_id: str,
        *,
        payment_succeeded: bool,
    ) -> UserRecord:
        """Apply a payment gateway verdict reported by an admin or billing job."""

        require_role(actor, UserRole.ADMIN)
        target = self.load_user(target_user_id)
        return self.apply_and_recompute(
            target,
            lambda current: self.lifecycle.record_billing_outcome(
                current, bundle_id, payment_succeeded=payment_succeeded
            ),
        )

    def suspend(self, actor: Optional[Actor], target_user_id: str, bundle_id: str) -> UserRecord:
        require_role(actor, UserRole.ADMIN)
        target = self.load_user(target_user_id)
        return self.apply_and_recompute(
            target, lambda current: self.lifecycle.suspend(actor, current, bundle_id)
        )

    def redeem(self, user: Optional[UserRecord], amount: Amount) -> UserRecord:
        return self.apply_and_recompute(user, lambda current: self.ledger.redeem(current, amount))

    def claim_perk(self, user: Optional[UserRecord], perk_id: str) -> UserRecord:
        return self.apply_and_recompute(user, lambda current: self.perks.claim(current, perk_id))

    def admin_adjust(self, actor: Optional[Actor], target_user_id: str, new_available_balance: Amount) -> UserRecord:
        """Set a user's available credits on behalf of an admin."""

        require_role(actor, UserRole.ADMIN, message="Unauthorized: only admins can adjust credits.")
        target = self.load_user(target_user_id)
        return self.apply_and_recompute(
            target, lambda current: self.ledger.admin_adjust(actor, current, new_available_balance)
        )

    def refresh(self, user: Optional[UserRecord]) -> UserRecord:
        """Resume due pauses and recompute derived state without another change."""

        return self.apply_and_recompute(user, self.lifecycle.resume_due)

    def load_user(self, user_id: str) -> UserRecord:
        user = self.repository.get_user(user_id)
        if user is None:
            raise UserNotFoundError(f"User with ID {user_id} not found.", detail={"user_id": user_id})
        return user


__all__ = ["Operation", "RulesEngine"]
