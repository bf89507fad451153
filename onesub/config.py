"""Configuration for the subscription, credit and perk rules engine."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class RulesConfig:
    """Tunable platform defaults consumed by the rules engine."""

    default_credit_rate: Decimal = Decimal("0.01")
    max_pause_days: int = 90
    admin_email: str = "platform.admin@onesub.com"
    gate_accrual_by_period: bool = True
    log_level: str = "INFO"
    user_store: str = "memory"
    jwt_secret_key: str = "dev-secret-change-me"
    session_cookie_name: str = "session"
    db_config: Dict[str, Any] = field(default_factory=dict)


_USER_STORES = {"memory", "postgres"}


def _to_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _to_int(value: Optional[str], *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc


def _to_decimal(value: Optional[str], *, default: Decimal) -> Decimal:
    if value is None or value == "":
        return default
    try:
        return Decimal(value.strip())
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Expected decimal value, got {value!r}") from exc


def load_rules_config(env: Optional[Mapping[str, str]] = None) -> RulesConfig:
    """Load :class:`RulesConfig` from environment variables."""

    env_mapping = os.environ if env is None else env

    credit_rate = _to_decimal(env_mapping.get("ONESUB_DEFAULT_CREDIT_RATE"), default=Decimal("0.01"))
    if credit_rate < 0 or credit_rate > 1:
        raise ValueError("ONESUB_DEFAULT_CREDIT_RATE must be between 0 and 1")

    max_pause_days = max(1, _to_int(env_mapping.get("ONESUB_MAX_PAUSE_DAYS"), default=90))
    admin_email = env_mapping.get("ONESUB_ADMIN_EMAIL", "platform.admin@onesub.com")
    gate_accrual = _to_bool(env_mapping.get("ONESUB_GATE_ACCRUAL_BY_PERIOD"), default=True)
    log_level = (env_mapping.get("ONESUB_LOG_LEVEL") or "INFO").strip().upper() or "INFO"

    user_store = (env_mapping.get("ONESUB_USER_STORE") or "memory").strip().lower()
    if user_store not in _USER_STORES:
        raise ValueError(f"ONESUB_USER_STORE must be one of {sorted(_USER_STORES)}")

    db_config: Dict[str, Any] = {
        "host": env_mapping.get("DB_HOST", "127.0.0.1"),
        "port": _to_int(env_mapping.get("DB_PORT"), default=5432),
        "dbname": env_mapping.get("DB_NAME", "onesub_db"),
        "user": env_mapping.get("DB_USER", "onesub_user"),
        "password": env_mapping.get("DB_PASSWORD", "onesub_pass"),
    }

    return RulesConfig(
        default_credit_rate=credit_rate,
        max_pause_days=max_pause_days,
        admin_email=admin_email,
        gate_accrual_by_period=gate_accrual,
        log_level=log_level,
        user_store=user_store,
        jwt_secret_key=env_mapping.get("JWT_SECRET_KEY", "dev-secret-change-me"),
        session_cookie_name=env_mapping.get("SESSION_COOKIE_NAME", "session"),
        db_config=db_config,
    )


__all__ = ["RulesConfig", "load_rules_config"]
