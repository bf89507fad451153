from decimal import Decimal

import pytest

from onesub.config import RulesConfig, load_rules_config


def test_defaults_when_environment_is_empty():
    config = load_rules_config({})

    assert config == RulesConfig(
        db_config={
            "host": "127.0.0.1",
            "port": 5432,
            "dbname": "onesub_db",
            "user": "onesub_user",
            "password": "onesub_pass",
        }
    )
    assert config.default_credit_rate == Decimal("0.01")
    assert config.max_pause_days == 90
    assert config.gate_accrual_by_period is True


def test_environment_overrides():
    config = load_rules_config(
        {
            "ONESUB_DEFAULT_CREDIT_RATE": "0.025",
            "ONESUB_MAX_PAUSE_DAYS": "30",
            "ONESUB_ADMIN_EMAIL": "ops@onesub.dev",
            "ONESUB_GATE_ACCRUAL_BY_PERIOD": "off",
            "ONESUB_LOG_LEVEL": "debug",
            "ONESUB_USER_STORE": "Postgres",
            "SESSION_COOKIE_NAME": "onesub_session",
            "DB_PORT": "6543",
        }
    )

    assert config.default_credit_rate == Decimal("0.025")
    assert config.max_pause_days == 30
    assert config.admin_email == "ops@onesub.dev"
    assert config.gate_accrual_by_period is False
    assert config.log_level == "DEBUG"
    assert config.user_store == "postgres"
    assert config.session_cookie_name == "onesub_session"
    assert config.db_config["port"] == 6543


def test_unrecognised_boolean_falls_back_to_default():
    assert load_rules_config({"ONESUB_GATE_ACCRUAL_BY_PERIOD": "maybe"}).gate_accrual_by_period is True


def test_pause_limit_has_a_floor_of_one_day():
    assert load_rules_config({"ONESUB_MAX_PAUSE_DAYS": "0"}).max_pause_days == 1


@pytest.mark.parametrize(
    "env",
    [
        {"ONESUB_DEFAULT_CREDIT_RATE": "1.5"},
        {"ONESUB_DEFAULT_CREDIT_RATE": "-0.01"},
        {"ONESUB_DEFAULT_CREDIT_RATE": "one percent"},
        {"ONESUB_MAX_PAUSE_DAYS": "ninety"},
        {"ONESUB_USER_STORE": "redis"},
    ],
)
def test_invalid_values_are_rejected(env):
    with pytest.raises(ValueError):
        load_rules_config(env)
