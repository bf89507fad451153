"""Perk eligibility evaluation, status refresh and claiming."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from ..accounts.models import PerkStatus, UserPerkStatus, UserRecord
from ..catalog.models import Perk, PerkDeliveryMethod
from ..catalog.repository import BundleCatalog, PerkCatalog, require_perk
from ..rules.clock import Clock, utc_now
from ..rules.events import (
    AuditEvent,
    AuditEventType,
    NullEventLogger,
    RulesEventLogger,
    RulesNotifier,
    dispatch_safely,
)
from ..rules.exceptions import (
    NotAuthenticatedError,
    PerkExpiredError,
    PerkInactiveError,
    PerkLockedError,
    PerkNotFoundError,
)
from .criteria import evaluate_criterion
from .models import CriterionProgress, PerkProgress, PerkRedemptionStats

logger = logging.getLogger(__name__)

UNLOCKED_MESSAGE = "Perk Unlocked! Ready to Claim."
REDEEMED_MESSAGE = "Perk Redeemed."
UNAVAILABLE_MESSAGE = "This perk is currently unavailable."


@dataclass(slots=True)
class PerkEligibilityEngine:
    """Evaluates unlock criteria and moves perk statuses forward.

    Statuses only move ``locked -> unlocked -> redeemed``; a user who stops
    meeting the criteria keeps what they already unlocked.
    """

    perk_catalog: PerkCatalog
    notifier: RulesNotifier
    event_logger: RulesEventLogger = field(default_factory=NullEventLogger)
    clock: Clock = utc_now
    bundle_catalog: Optional[BundleCatalog] = None

    def criteria_progress(self, user: UserRecord, perk: Perk) -> List[CriterionProgress]:
        now = self.clock()
        names = self._bundle_names()
        return [
            evaluate_criterion(user, criterion, now, bundle_names=names) for criterion in perk.unlock_criteria
        ]

    def _bundle_names(self) -> Dict[str, str]:
        if self.bundle_catalog is None:
            return {}
        return {bundle.id: bundle.name for bundle in self.bundle_catalog.list_bundles()}

    def evaluate(self, user: UserRecord, perk: Perk) -> bool:
        """Return ``True`` when ``perk`` is available and every criterion holds."""

        if not perk.is_available(self.clock()):
            return False
        # Every criterion is measured so progress reporting stays complete.
        results = self.criteria_progress(user, perk)
        return all(result.met for result in results)

    def refresh_all(self, user: UserRecord, perks: Optional[Sequence[Perk]] = None) -> UserRecord:
        """Rebuild ``perk_statuses`` so it lists every catalog perk in catalog order."""

        catalog = list(perks) if perks is not None else list(self.perk_catalog.list_perks())
        now = self.clock()
        statuses: List[UserPerkStatus] = []
        newly_unlocked: List[str] = []
        for perk in catalog:
            current = user.find_perk_status(perk.id) or UserPerkStatus(perk_id=perk.id)
            if current.status == PerkStatus.LOCKED and self.evaluate(user, perk):
                current = current.model_copy(
                    update={
                        "status": PerkStatus.UNLOCKED,
                        "date_unlocked": now,
                        "redemption_info": perk.delivery,
                    }
                )
                newly_unlocked.append(perk.id)
            statuses.append(current)

        updated = user.model_copy(update={"perk_statuses": tuple(statuses)})
        for perk_id in newly_unlocked:
            logger.info("User %s unlocked perk %s", user.id, perk_id)
            self._audit(AuditEventType.PERK_UNLOCKED, updated, perk_id)
        return updated

    def claim(self, user: Optional[UserRecord], perk_id: str) -> UserRecord:
        if user is None:
            raise NotAuthenticatedError()
        perk_status = user.find_perk_status(perk_id)
        if perk_status is None:
            raise PerkNotFoundError("Perk not found for this user.", detail={"perk_id": perk_id})
        if perk_status.status == PerkStatus.LOCKED:
            raise PerkLockedError(detail={"perk_id": perk_id})
        if perk_status.status == PerkStatus.REDEEMED:
            logger.warning("User %s already redeemed perk %s", user.id, perk_id)
            return user

        perk = require_perk(self.perk_catalog, perk_id)
        now = self.clock()
        if perk.is_expired(now):
            raise PerkExpiredError(detail={"perk_id": perk_id})
        if not perk.active_status:
            raise PerkInactiveError(detail={"perk_id": perk_id})

        redeemed = perk_status.model_copy(
            update={
                "status": PerkStatus.REDEEMED,
                "date_redeemed": now,
                "redemption_info": perk.delivery,
            }
        )
        statuses = tuple(redeemed if item.perk_id == perk_id else item for item in user.perk_statuses)
        updated = user.model_copy(update={"perk_statuses": statuses})

        if perk.delivery.method == PerkDeliveryMethod.MANUAL_EMAIL:
            dispatch_safely(
                lambda: self.notifier.notify_perk_manual_delivery(updated, perk),
                description="manual perk delivery",
            )
        self._audit(
            AuditEventType.PERK_REDEEMED,
            updated,
            perk_id,
            metadata={"delivery_method": perk.delivery.method.value},
        )
        return updated

    def describe_progress(self, user: UserRecord, perk: Perk) -> PerkProgress:
        """Summarise how close ``user`` is to unlocking ``perk``."""

        perk_status = user.find_perk_status(perk.id)
        if perk_status is not None and perk_status.is_unlocked:
            message = UNLOCKED_MESSAGE if perk_status.status == PerkStatus.UNLOCKED else REDEEMED_MESSAGE
            return PerkProgress(perk_id=perk.id, message=message, is_unlocked=True)

        if not perk.is_available(self.clock()):
            return PerkProgress(perk_id=perk.id, message=UNAVAILABLE_MESSAGE, is_unlocked=False)

        progress = self.criteria_progress(user, perk)
        unmet = [item.description or _fallback_description(item) for item in progress if not item.met]
        if not unmet:
            return PerkProgress(perk_id=perk.id, message=UNLOCKED_MESSAGE, is_unlocked=True, progress=tuple(progress))
        return PerkProgress(
            perk_id=perk.id,
            message=f"To unlock: {' AND '.join(unmet)}",
            is_unlocked=False,
            progress=tuple(progress),
        )

    def redemption_stats(self, users: Iterable[UserRecord], perk_id: str) -> PerkRedemptionStats:
        unlocked = 0
        redeemed = 0
        for user in users:
            perk_status = user.find_perk_status(perk_id)
            if perk_status is None:
                continue
            if perk_status.is_unlocked:
                unlocked += 1
            if perk_status.status == PerkStatus.REDEEMED:
                redeemed += 1
        return PerkRedemptionStats(perk_id=perk_id, unlocked_count=unlocked, redeemed_count=redeemed)

    def _audit(
        self,
        event_type: AuditEventType,
        user: UserRecord,
        perk_id: str,
        *,
        metadata: Optional[dict] = None,
    ) -> None:
        self.event_logger.log(
            AuditEvent(
                event_type=event_type,
                user_id=user.id,
                actor_id=user.id,
                subject_id=perk_id,
                metadata=metadata or {},
                occurred_at=self.clock(),
            )
        )


def _fallback_description(progress: CriterionProgress) -> str:
    return f"{progress.target.normalize():f} {progress.unit}"


__all__ = ["PerkEligibilityEngine"]
