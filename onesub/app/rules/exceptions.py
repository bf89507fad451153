"""Typed errors surfaced by the subscription, credit and perk rules."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status


class RulesEngineError(Exception):
    """Base class for rule violations surfaced synchronously to callers."""

    code: str = "rules_engine_error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "The requested operation is not permitted."

    def __init__(self, message: Optional[str] = None, *, detail: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.default_message
        self.detail: Dict[str, Any] = dict(detail or {})
        super().__init__(self.message)

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        base_detail: Dict[str, Any] = {"error": self.code, "message": self.message}
        base_detail.update(self.detail)
        return base_detail

    def to_http_exception(self) -> HTTPException:
        """Convert the domain error into a FastAPI HTTPException."""

        return HTTPException(status_code=self.status_code, detail=dict(self.payload))


class NotAuthenticatedError(RulesEngineError):
    code = "not_authenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "User not logged in."


class NotVerifiedError(RulesEngineError):
    code = "not_verified"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Email not verified. Please verify your email before subscribing."


class UnauthorizedError(RulesEngineError):
    code = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to perform this action."


class NotSubscribedError(RulesEngineError):
    code = "not_subscribed"
    status_code = status.HTTP_409_CONFLICT
    default_message = "No matching active subscription."


class NotPausedError(RulesEngineError):
    code = "not_paused"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Subscription is not paused."


class InvalidAmountError(RulesEngineError):
    code = "invalid_amount"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Amount must be positive."


class InsufficientCreditsError(RulesEngineError):
    code = "insufficient_credits"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Insufficient available credits."


class PerkLockedError(RulesEngineError):
    code = "perk_locked"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Perk is locked and cannot be claimed."


class PerkExpiredError(RulesEngineError):
    code = "perk_expired"
    status_code = status.HTTP_410_GONE
    default_message = "This perk offer has expired."


class PerkInactiveError(RulesEngineError):
    code = "perk_inactive"
    status_code = status.HTTP_409_CONFLICT
    default_message = "This perk is currently not active."


class BundleNotFoundError(RulesEngineError):
    code = "bundle_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Bundle not found."


class PerkNotFoundError(RulesEngineError):
    code = "perk_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Perk not found."


class UserNotFoundError(RulesEngineError):
    code = "user_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found."


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
