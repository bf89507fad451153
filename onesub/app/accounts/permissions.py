"""Authorization checks for operations performed on behalf of a principal."""
from __future__ import annotations

from typing import Optional, Union

from ..rules.exceptions import NotAuthenticatedError, UnauthorizedError
from .models import Principal, UserRecord, UserRole

Actor = Union[Principal, UserRecord]


def require_authenticated(actor: Optional[Actor]) -> Principal:
    """Return the acting principal, raising when nobody is logged in."""

    if actor is None:
        raise NotAuthenticatedError()
    if isinstance(actor, UserRecord):
        return actor.as_principal()
    return actor


def require_role(
    actor: Optional[Actor],
    role: UserRole,
    *,
    message: Optional[str] = None,
) -> Principal:
    """Ensure the acting principal holds ``role`` before proceeding.

    Parameters
    ----------
    actor:
        The caller, either a :class:`Principal` or a full :class:`UserRecord`.
    role:
        The role the caller must hold.
    message:
        Optional human-friendly message used when the role is missing.
    """

    principal = require_authenticated(actor)
    if principal.role != role:
        raise UnauthorizedError(
            message or f"Unauthorized: only {role.value}s can perform this action.",
            detail={"required_role": role.value},
        )
    return principal


__all__ = ["Actor", "require_authenticated", "require_role"]
