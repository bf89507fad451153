"""User record models, authorization checks and persistence."""

from .models import (
    AccountStatus,
    ActiveSubscription,
    PerkStatus,
    Principal,
    SubscriptionStatus,
    UserPerkStatus,
    UserRecord,
    UserRole,
)
from .permissions import require_authenticated, require_role
from .repository import InMemoryUserRepository, PostgresUserRepository, UserRepository

__all__ = [
    "AccountStatus",
    "ActiveSubscription",
    "PerkStatus",
    "Principal",
    "SubscriptionStatus",
    "UserPerkStatus",
    "UserRecord",
    "UserRole",
    "require_authenticated",
    "require_role",
    "InMemoryUserRepository",
    "PostgresUserRepository",
    "UserRepository",
]
