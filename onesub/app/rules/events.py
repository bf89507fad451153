"""Side-channel collaborators: user notifications and structured audit events."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:  # pragma: no cover
    from ..accounts.models import UserRecord
    from ..catalog.models import BillingCycle, Bundle, Perk

logger = logging.getLogger(__name__)


class SubscriptionAction(str, Enum):
    """Subscription changes reported to platform admins."""

    SUBSCRIBED = "subscribed"
    CANCELED = "canceled"
    PAUSED = "paused"
    RESUMED = "resumed"


class RulesNotifier(Protocol):
    """Fire-and-forget notification sink (e-mail, push, ...)."""

    def notify_subscription_confirmed(
        self, user: "UserRecord", bundle: "Bundle", cycle: "BillingCycle", price_paid: Decimal
    ) -> None:
        ...

    def notify_subscription_canceled(self, user: "UserRecord", bundle: "Bundle") -> None:
        ...

    def notify_subscription_paused(self, user: "UserRecord", bundle: "Bundle", pause_end_date: datetime) -> None:
        ...

    def notify_subscription_resumed(self, user: "UserRecord", bundle: "Bundle") -> None:
        ...

    def notify_admin_subscription_alert(self, user: "UserRecord", bundle: "Bundle", action: SubscriptionAction) -> None:
        ...

    def notify_provider_subscription_alert(self, user: "UserRecord", bundle: "Bundle") -> None:
        ...

    def notify_payment_failed(self, user: "UserRecord", bundle: "Bundle", amount_due: Decimal) -> None:
        ...

    def notify_payment_receipt(self, user: "UserRecord", bundle: "Bundle", amount: Decimal, paid_at: datetime) -> None:
        ...

    def notify_perk_manual_delivery(self, user: "UserRecord", perk: "Perk") -> None:
        ...


class AuditEventType(str, Enum):
    """Audit event categories emitted by the rules engine."""

    SUBSCRIPTION_ACTIVATED = "subscription_activated"
    SUBSCRIPTION_CANCELED = "subscription_canceled"
    SUBSCRIPTION_PAUSED = "subscription_paused"
    SUBSCRIPTION_RESUMED = "subscription_resumed"
    SUBSCRIPTION_SUSPENDED = "subscription_suspended"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_SUCCEEDED = "payment_succeeded"
    CREDITS_ACCRUED = "credits_accrued"
    CREDITS_REDEEMED = "credits_redeemed"
    CREDITS_ADJUSTED = "credits_adjusted"
    PERK_UNLOCKED = "perk_unlocked"
    PERK_REDEEMED = "perk_redeemed"


class AuditEvent(BaseModel):
    """Structured audit event for analytics and support tooling."""

    event_type: AuditEventType
    user_id: str
    actor_id: Optional[str] = None
    subject_id: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)


class RulesEventLogger(Protocol):
    """Captures structured audit events."""

    def log(self, event: AuditEvent) -> None:
        ...


class NullEventLogger:
    """Event logger that discards everything."""

    def log(self, event: AuditEvent) -> None:
        return None


def dispatch_safely(send: Callable[[], None], *, description: str) -> None:
    """Run a notification callback, logging and swallowing any failure."""

    try:
        send()
    except Exception:
        logger.exception("Notification dispatch failed: %s", description)


__all__ = [
    "AuditEvent",
    "AuditEventType",
    "NullEventLogger",
    "RulesEventLogger",
    "RulesNotifier",
    "SubscriptionAction",
    "dispatch_safely",
]
