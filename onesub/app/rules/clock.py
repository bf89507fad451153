"""Time helpers shared by the lifecycle, ledger and perk rules."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""

    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def billing_period_key(value: datetime) -> str:
    """Return the billing period identifier ``YYYY-MM`` for ``value``."""

    return value.strftime("%Y-%m")
