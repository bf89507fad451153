"""Credit accrual, redemption and administrative balance adjustment."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional

from ..accounts.models import ActiveSubscription, UserRecord, UserRole
from ..accounts.permissions import Actor, require_role
from ..rules.clock import Clock, utc_now
from ..rules.events import AuditEvent, AuditEventType, NullEventLogger, RulesEventLogger
from ..rules.exceptions import InsufficientCreditsError, InvalidAmountError, NotAuthenticatedError
from ..rules.money import ZERO, Amount, format_credits, to_money

logger = logging.getLogger(__name__)


def accrual_for(subscription: ActiveSubscription) -> Decimal:
    """Credits earned by one active subscription for one accrual run."""

    return to_money(subscription.monthly_amount_for_credits * subscription.credit_rate)


@dataclass(slots=True)
class CreditLedger:
    """Maintains the credit balances stored on a user record.

    ``credits_available`` never goes negative, and ``total_credits_earned``
    and ``credits_redeemed`` only ever grow.
    """

    event_logger: RulesEventLogger = field(default_factory=NullEventLogger)
    clock: Clock = utc_now

    def accrue(self, user: UserRecord, *, period: Optional[str] = None) -> UserRecord:
        """Credit every active subscription once.

        When ``period`` is given, bundles already credited for that billing
        period are skipped and the remaining ones are recorded in
        ``credit_periods``. The record is kept per bundle on the user, so
        canceling and subscribing again within a period earns nothing extra.
        Without a period every call credits again.
        """

        accrued = ZERO
        credit_periods: Dict[str, str] = dict(user.credit_periods)
        skipped = 0
        for subscription in user.active_only:
            if period is not None and credit_periods.get(subscription.bundle_id) == period:
                skipped += 1
                continue
            accrued += accrual_for(subscription)
            if period is not None:
                credit_periods[subscription.bundle_id] = period

        if skipped:
            logger.warning(
                "Skipped %d subscription(s) for user %s already credited for period %s",
                skipped,
                user.id,
                period,
            )

        now = self.clock()
        updated = user.model_copy(
            update={
                "credit_periods": credit_periods,
                "total_credits_earned": to_money(user.total_credits_earned + accrued),
                "credits_available": to_money(user.credits_available + accrued),
                "last_credit_update_timestamp": now,
            }
        )
        if accrued > 0:
            metadata = {"amount": str(accrued)}
            if period is not None:
                metadata["period"] = period
            self._audit(AuditEventType.CREDITS_ACCRUED, updated, metadata=metadata)
        return updated

    def redeem(self, user: Optional[UserRecord], amount: Amount) -> UserRecord:
        if user is None:
            raise NotAuthenticatedError()
        value = to_money(amount)
        if value <= 0:
            raise InvalidAmountError(detail={"amount": str(value)})
        if value > user.credits_available:
            raise InsufficientCreditsError(
                f"Insufficient available credits: requested {format_credits(value)}, "
                f"available {format_credits(user.credits_available)}.",
                detail={"requested": str(value), "available": str(user.credits_available)},
            )

        updated = user.model_copy(
            update={
                "credits_available": to_money(user.credits_available - value),
                "credits_redeemed": to_money(user.credits_redeemed + value),
                "last_credit_update_timestamp": self.clock(),
            }
        )
        self._audit(AuditEventType.CREDITS_REDEEMED, updated, metadata={"amount": str(value)})
        return updated

    def admin_adjust(
        self,
        actor: Optional[Actor],
        target_user: UserRecord,
        new_available_balance: Amount,
    ) -> UserRecord:
        """Overwrite the target's available balance on behalf of an admin."""

        principal = require_role(actor, UserRole.ADMIN, message="Unauthorized: only admins can adjust credits.")
        balance = to_money(new_available_balance)
        if balance < 0:
            raise InvalidAmountError("Credit balance cannot be negative.", detail={"balance": str(balance)})

        delta = balance - target_user.credits_available
        earned = target_user.total_credits_earned + delta if delta > 0 else target_user.total_credits_earned
        updated = target_user.model_copy(
            update={
                "credits_available": balance,
                "total_credits_earned": to_money(earned),
                "last_credit_update_timestamp": self.clock(),
            }
        )
        logger.info(
            "Admin %s set credits for user %s from %s to %s",
            principal.user_id,
            target_user.id,
            target_user.credits_available,
            balance,
        )
        self._audit(
            AuditEventType.CREDITS_ADJUSTED,
            updated,
            actor_id=principal.user_id,
            metadata={"previous": str(target_user.credits_available), "new": str(balance)},
        )
        return updated

    def _audit(
        self,
        event_type: AuditEventType,
        user: UserRecord,
        *,
        actor_id: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        self.event_logger.log(
            AuditEvent(
                event_type=event_type,
                user_id=user.id,
                actor_id=actor_id or user.id,
                metadata=metadata or {},
                occurred_at=self.clock(),
            )
        )


__all__ = ["CreditLedger", "accrual_for", "format_credits"]
