# -*- coding: utf-8 -*-
"""
backend/app/shared/config/config_loader.py

Carga de configuración según PYTHON_ENV.
Ejecuta validaciones de seguridad y devuelve una instancia NUEVA en cada
llamada: quien arranca la aplicación (create_app, scripts, tests) decide
qué instancia se usa y la pasa explícitamente.

Autor: MessCredit
Actualizado: 2026-03-02
"""

import os
from typing import Optional

from .settings_base import BaseAppSettings
from .settings_dev import DevSettings
from .settings_testing import EnvTestingSettings
from .settings_prod import ProdSettings


def load_settings(env: Optional[str] = None, **overrides) -> BaseAppSettings:
    """
    Construye la configuración apropiada según PYTHON_ENV.

    Args:
        env: Fuerza el entorno (development | test | production).
        **overrides: Valores que sustituyen a los del entorno (útil en tests).

    Returns:
        BaseAppSettings: Instancia de configuración para el entorno

    Raises:
        ValueError: Si las validaciones de seguridad fallan
    """
    env = (env or os.getenv("PYTHON_ENV", "development")).lower()

    if env == "production":
        settings = ProdSettings(**overrides)
    elif env == "test":
        settings = EnvTestingSettings(**overrides)
    else:
        settings = DevSettings(**overrides)

    # Dispara validaciones específicas de seguridad y coherencia
    settings._security_and_payments_checks()

    return settings


__all__ = ["load_settings"]
# Fin del archivo backend/app/shared/config/config_loader.py
