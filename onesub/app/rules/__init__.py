"""Shared building blocks for the subscription, credit and perk rules."""

from .exceptions import (
    BundleNotFoundError,
    InsufficientCreditsError,
    InvalidAmountError,
    NotAuthenticatedError,
    NotPausedError,
    NotSubscribedError,
    NotVerifiedError,
    PerkExpiredError,
    PerkInactiveError,
    PerkLockedError,
    PerkNotFoundError,
    RulesEngineError,
    UnauthorizedError,
    UserNotFoundError,
)

__all__ = [
    "BundleNotFoundError",
    "InsufficientCreditsError",
    "InvalidAmountError",
    "NotAuthenticatedError",
    "NotPausedError",
    "NotSubscribedError",
    "NotVerifiedError",
    "PerkExpiredError",
    "PerkInactiveError",
    "PerkLockedError",
    "PerkNotFoundError",
    "RulesEngineError",
    "UnauthorizedError",
    "UserNotFoundError",
]
