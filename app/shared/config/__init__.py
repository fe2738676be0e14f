# -*- coding: utf-8 -*-
"""
backend/app/shared/config/__init__.py

Configuración de la aplicación.

No existe un objeto `settings` global: la instancia se construye con
load_settings() y se inyecta a create_app() y a los servicios.
"""

from .config_loader import load_settings
from .settings_base import BaseAppSettings
from .settings_billing import BillingConfig, BillingPeriod
from .logging_config import setup_logging

__all__ = [
    "load_settings",
    "BaseAppSettings",
    "BillingConfig",
    "BillingPeriod",
    "setup_logging",
]
