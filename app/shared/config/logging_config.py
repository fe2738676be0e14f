# -*- coding: utf-8 -*-
"""
backend/app/shared/config/logging_config.py

Configuración centralizada de logging.
Soporta formato plain (desarrollo) y json (producción).

Además del logger raíz se declara `billing.audit`: eventos de seguridad y
auditoría (firmas inválidas, webhooks tardíos, ajustes manuales, waivers).
Siempre emite en INFO aunque el nivel global sea más alto.

Autor: MessCredit
Fecha: 2026-03-02
"""

import logging.config
from typing import Literal

AUDIT_LOGGER_NAME = "billing.audit"


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
    fmt: Literal["plain", "pretty", "json"] = "plain"
) -> None:
    """
    Configura el sistema de logging de la aplicación.

    Args:
        level: Nivel de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: Formato de salida (plain, pretty, json)

    Ejemplos:
        >>> setup_logging("INFO", "plain")
        >>> setup_logging("WARNING", "json")
    """
    # pretty == plain para efectos prácticos
    use_json = fmt == "json"

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json" if use_json else "default",
            "stream": "ext://sys.stdout",
        }
    }

    formatters = {
        "default": {
            "format": "%(asctime)s %(levelname)s [%(name)s]: %(message)s"
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
        },
    }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "loggers": {
            AUDIT_LOGGER_NAME: {
                "level": "INFO",
                "propagate": True,
            },
            "apscheduler": {
                "level": "WARNING",
            },
        },
        "root": {
            "handlers": ["console"],
            "level": level.upper(),
        },
    }

    logging.config.dictConfig(logging_config)


def get_audit_logger() -> logging.Logger:
    """Logger de auditoría compartido por los módulos de facturación y pagos."""
    return logging.getLogger(AUDIT_LOGGER_NAME)


__all__ = ["setup_logging", "get_audit_logger", "AUDIT_LOGGER_NAME"]
# Fin del archivo backend/app/shared/config/logging_config.py
