# -*- coding: utf-8 -*-
"""
Tests de carga de configuración y validaciones por entorno.
"""

import pytest

from app.shared.config import load_settings
from app.shared.config.settings_prod import ProdSettings
from app.shared.config.settings_testing import EnvTestingSettings

STRONG_KEY = "k" * 40


def test_test_environment_settings():
    settings = load_settings("test")

    assert isinstance(settings, EnvTestingSettings)
    assert settings.is_test
    assert settings.scheduler_enabled is False


def test_billing_config_is_derived_from_settings():
    settings = load_settings("test", trial_credits=250, overdraft_reasons="leave_refund, adjustment")

    config = settings.billing_config()

    assert config.trial_credits == 250
    assert config.overdraft_reasons == frozenset({"leave_refund", "adjustment"})
    assert config.allows_overdraft("adjustment")
    assert not config.allows_overdraft("bill_debit")
    assert config.gateway_webhook_secret == "whsec_test_dummy"


def test_unknown_overdraft_reason_is_rejected():
    with pytest.raises(ValueError):
        load_settings("test", overdraft_reasons="leave_refund,free_money")


def test_cors_origins_are_split():
    settings = load_settings("test", allowed_origins="https://a.example, 'https://b.example'")
    assert settings.get_cors_origins() == ["https://a.example", "https://b.example"]


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgres://u:p@db/mess", "postgresql+asyncpg://u:p@db/mess"),
        ("postgresql://u:p@db/mess", "postgresql+asyncpg://u:p@db/mess"),
        ("sqlite+aiosqlite:///./dev.db", "sqlite+aiosqlite:///./dev.db"),
    ],
)
def test_database_url_normalization(url, expected):
    assert load_settings("test", db_url=url).database_url == expected


def _prod(**overrides):
    values = {
        "python_env": "production",
        "jwt_secret_key": STRONG_KEY,
        "gateway_webhook_secret": "whsec_" + "x" * 20,
        "internal_service_token": "service-token",
        "db_url": "postgresql://u:p@db/mess",
    }
    values.update(overrides)
    return load_settings("production", **values)


def test_production_accepts_complete_configuration():
    settings = _prod()
    assert isinstance(settings, ProdSettings)
    assert settings.is_prod
    assert settings.db_create_all is False


@pytest.mark.parametrize(
    "override",
    [
        {"jwt_secret_key": "short"},
        {"gateway_webhook_secret": ""},
        {"internal_service_token": None},
        {"db_url": "sqlite+aiosqlite:///./prod.db"},
    ],
)
def test_production_rejects_unsafe_configuration(override):
    with pytest.raises(ValueError):
        _prod(**override)
