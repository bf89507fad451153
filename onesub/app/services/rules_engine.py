"""Application wiring for the subscription, credit and perk rules engine."""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from functools import lru_cache

from ...config import RulesConfig, load_rules_config
from ..accounts.defaults import demo_users
from ..accounts.models import UserRecord
from ..accounts.repository import InMemoryUserRepository, PostgresUserRepository, UserRepository
from ..catalog.defaults import DEFAULT_BUNDLES, DEFAULT_PERKS
from ..catalog.models import BillingCycle, Bundle, Perk
from ..catalog.repository import InMemoryBundleCatalog, InMemoryPerkCatalog
from ..credits.service import CreditLedger
from ..engine.service import RulesEngine
from ..perks.service import PerkEligibilityEngine
from ..rules.events import AuditEvent, RulesEventLogger, RulesNotifier, SubscriptionAction
from ..subscriptions.service import SubscriptionLifecycleManager


logger = logging.getLogger("onesub.rules")


class LoggingRulesNotifier(RulesNotifier):
    """Notifier that records user and admin notifications to the application logger."""

    def __init__(self, admin_email: str = "platform.admin@onesub.com") -> None:
        self.admin_email = admin_email

    def notify_subscription_confirmed(
        self, user: UserRecord, bundle: Bundle, cycle: BillingCycle, price_paid: Decimal
    ) -> None:
        logger.info(
            "Subscription confirmed user=%s bundle=%s cycle=%s price=%s",
            user.email,
            bundle.id,
            cycle.value,
            price_paid,
        )

    def notify_subscription_canceled(self, user: UserRecord, bundle: Bundle) -> None:
        logger.info("Subscription canceled user=%s bundle=%s", user.email, bundle.id)

    def notify_subscription_paused(self, user: UserRecord, bundle: Bundle, pause_end_date: datetime) -> None:
        logger.info(
            "Subscription paused user=%s bundle=%s until=%s",
            user.email,
            bundle.id,
            pause_end_date.isoformat(),
        )

    def notify_subscription_resumed(self, user: UserRecord, bundle: Bundle) -> None:
        logger.info("Subscription resumed user=%s bundle=%s", user.email, bundle.id)

    def notify_admin_subscription_alert(self, user: UserRecord, bundle: Bundle, action: SubscriptionAction) -> None:
        logger.info(
            "Admin alert to=%s action=%s user=%s bundle=%s",
            self.admin_email,
            action.value,
            user.email,
            bundle.id,
        )

    def notify_provider_subscription_alert(self, user: UserRecord, bundle: Bundle) -> None:
        for service in bundle.services:
            logger.info("Provider alert service=%s new subscriber via bundle=%s", service.id, bundle.id)

    def notify_payment_failed(self, user: UserRecord, bundle: Bundle, amount_due: Decimal) -> None:
        logger.warning("Payment failed user=%s bundle=%s amount_due=%s", user.email, bundle.id, amount_due)

    def notify_payment_receipt(self, user: UserRecord, bundle: Bundle, amount: Decimal, paid_at: datetime) -> None:
        logger.info(
            "Payment receipt user=%s bundle=%s amount=%s paid_at=%s",
            user.email,
            bundle.id,
            amount,
            paid_at.isoformat(),
        )

    def notify_perk_manual_delivery(self, user: UserRecord, perk: Perk) -> None:
        logger.warning(
            "Manual perk delivery required to=%s user=%s perk=%s instructions=%s",
            self.admin_email,
            user.email,
            perk.id,
            perk.delivery.instructions or "Follow up with user.",
        )


class LoggingRulesEventLogger(RulesEventLogger):
    """Simple event logger forwarding rules audit events to logging."""

    def log(self, event: AuditEvent) -> None:
        logger.info(
            "Rules event %s user=%s actor=%s subject=%s metadata=%s",
            event.event_type.value,
            event.user_id,
            event.actor_id,
            event.subject_id,
            event.metadata,
        )


def build_user_repository(config: RulesConfig) -> UserRepository:
    if config.user_store == "postgres":
        return PostgresUserRepository()
    return InMemoryUserRepository(demo_users())


def build_rules_engine(config: RulesConfig, *, repository: UserRepository) -> RulesEngine:
    notifier = LoggingRulesNotifier(config.admin_email)
    event_logger = LoggingRulesEventLogger()
    bundle_catalog = InMemoryBundleCatalog(DEFAULT_BUNDLES)
    lifecycle = SubscriptionLifecycleManager(
        bundle_catalog=bundle_catalog,
        notifier=notifier,
        event_logger=event_logger,
        config=config,
    )
    ledger = CreditLedger(event_logger=event_logger)
    perks = PerkEligibilityEngine(
        perk_catalog=InMemoryPerkCatalog(DEFAULT_PERKS),
        notifier=notifier,
        event_logger=event_logger,
        bundle_catalog=bundle_catalog,
    )
    return RulesEngine(
        lifecycle=lifecycle,
        ledger=ledger,
        perks=perks,
        repository=repository,
        config=config,
    )


@lru_cache(maxsize=1)
def get_rules_engine() -> RulesEngine:
    config = load_rules_config()
    engine = build_rules_engine(config, repository=build_user_repository(config))
    logger.info(
        "Rules engine ready store=%s credit_rate=%s gate_accrual=%s",
        config.user_store,
        config.default_credit_rate,
        config.gate_accrual_by_period,
    )
    return engine


__all__ = [
    "LoggingRulesEventLogger",
    "LoggingRulesNotifier",
    "build_rules_engine",
    "build_user_repository",
    "get_rules_engine",
]
