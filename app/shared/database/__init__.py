# -*- coding: utf-8 -*-
"""
backend/app/shared/database/__init__.py

Re-exporta utilidades comunes de base de datos.

Autor: MessCredit
Fecha: 2026-03-02
"""

from __future__ import annotations

from .database import (
    make_engine,
    make_session_factory,
    create_all,
    get_async_session,
    session_scope,
    check_database_health,
)
from .base import Base, NAMING_CONVENTION, BigIntPK, JSONType, as_db_enum

__all__ = [
    "make_engine",
    "make_session_factory",
    "create_all",
    "Base",
    "NAMING_CONVENTION",
    "BigIntPK",
    "JSONType",
    "as_db_enum",
    "get_async_session",
    "session_scope",
    "check_database_health",
]

# Fin del archivo backend/app/shared/database/__init__.py
