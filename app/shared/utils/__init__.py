# -*- coding: utf-8 -*-
"""
backend/app/shared/utils/__init__.py

Utilidades comunes (fechas UTC, respuestas JSON UTF-8).

Autor: MessCredit
Fecha: 2026-03-02
"""

from .datetime_helpers import ensure_utc, to_iso8601, utc_today, utcnow
from .json_response import UTF8JSONResponse, json_response_utf8

__all__ = [
    "utcnow",
    "utc_today",
    "ensure_utc",
    "to_iso8601",
    "UTF8JSONResponse",
    "json_response_utf8",
]
