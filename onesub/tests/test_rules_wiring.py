from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from onesub import main as onesub_main
from onesub.app.accounts.repository import InMemoryUserRepository, PostgresUserRepository
from onesub.app.catalog.defaults import DEFAULT_BUNDLES
from onesub.app.catalog.models import BillingCycle
from onesub.app.services.rules_engine import (
    LoggingRulesNotifier,
    build_rules_engine,
    build_user_repository,
)
from onesub.config import RulesConfig
from onesub.tests.fakes import make_user


def test_build_user_repository_selects_store():
    memory = build_user_repository(RulesConfig())
    postgres = build_user_repository(RulesConfig(user_store="postgres"))

    assert isinstance(memory, InMemoryUserRepository)
    assert memory.get_user("user-alice") is not None
    assert isinstance(postgres, PostgresUserRepository)


def test_built_engine_logs_notifications_and_audit_events(caplog):
    caplog.set_level(logging.INFO, logger="onesub.rules")
    repository = InMemoryUserRepository([make_user()])
    engine = build_rules_engine(RulesConfig(admin_email="ops@onesub.dev"), repository=repository)

    updated = engine.subscribe(repository.get_user("user-1"), "bundle4", BillingCycle.MONTHLY, Decimal("15"))

    assert updated.credits_available == Decimal("0.15")
    assert "Subscription confirmed user=user1@onesub.dev bundle=bundle4" in caplog.text
    assert "Admin alert to=ops@onesub.dev action=subscribed" in caplog.text
    assert "Rules event subscription_activated" in caplog.text


def test_provider_alert_logs_every_service(caplog):
    caplog.set_level(logging.INFO, logger="onesub.rules")
    notifier = LoggingRulesNotifier()

    notifier.notify_provider_subscription_alert(make_user(), DEFAULT_BUNDLES[0])

    assert caplog.text.count("Provider alert") == len(DEFAULT_BUNDLES[0].services)


def test_session_token_resolves_seeded_user():
    token = onesub_main.create_session_token("user-alice")

    user = onesub_main.get_current_user(session_token=token)

    assert user is not None
    assert user.email == "alice@onesub.dev"


def test_invalid_or_expired_session_resolves_to_none():
    expired = onesub_main.create_session_token("user-alice", expires_in=timedelta(seconds=-5))

    assert onesub_main.get_current_user(session_token=None) is None
    assert onesub_main.get_current_user(session_token="not-a-jwt") is None
    assert onesub_main.get_current_user(session_token=expired) is None
