"""Seed accounts for local development with the in-memory user store."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Tuple

from .models import UserRecord, UserRole


def demo_users() -> Tuple[UserRecord, ...]:
    return (
        UserRecord(
            id="user-alice",
            email="alice@onesub.dev",
            full_name="Alice Moreau",
            is_verified=True,
            registration_date=datetime(2023, 11, 15, tzinfo=timezone.utc),
        ),
        UserRecord(
            id="user-bruno",
            email="bruno@onesub.dev",
            full_name="Bruno Keller",
            registration_date=datetime(2024, 2, 1, tzinfo=timezone.utc),
        ),
        UserRecord(
            id="admin-platform",
            email="platform.admin@onesub.com",
            full_name="Platform Admin",
            role=UserRole.ADMIN,
            is_verified=True,
            registration_date=datetime(2023, 1, 1, tzinfo=timezone.utc),
        ),
    )


__all__ = ["demo_users"]
