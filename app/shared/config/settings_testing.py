# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_testing.py

Overrides para entorno de PRUEBAS (test) usando Pydantic v2.
Busca ser determinista y seguro: logging moderado, base SQLite aislada,
scheduler apagado y secretos dummy para firmas de la pasarela.

Autor: MessCredit
Fecha: 2026-03-02
"""

from pydantic import SecretStr
from pydantic_settings import SettingsConfigDict

from .settings_base import BaseAppSettings


class EnvTestingSettings(BaseAppSettings):
    # --- Identidad de entorno ---
    python_env: str = "test"

    # --- Logging en test: menos ruido ---
    log_level: str = "WARNING"
    log_format: str = "plain"

    # --- Base de datos: SQLite por archivo, se sobreescribe por test ---
    db_url: str = "sqlite+aiosqlite:///./messcredit_test.db"
    db_create_all: bool = True

    # --- Secretos dummy ---
    jwt_secret_key: SecretStr = SecretStr("test-secret-key-with-at-least-32-chars")
    internal_service_token: SecretStr = SecretStr("internal-test-token")
    gateway_webhook_secret: SecretStr = SecretStr("whsec_test_dummy")

    # --- Jobs: se disparan manualmente en las pruebas ---
    scheduler_enabled: bool = False
    http_metrics_enabled: bool = False

    model_config = SettingsConfigDict(
        env_file=".env.test",
        env_file_encoding="utf-8",
        extra="ignore",
    )


__all__ = ["EnvTestingSettings"]
# Fin del archivo backend/app/shared/config/settings_testing.py
