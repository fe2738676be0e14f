# -*- coding: utf-8 -*-
"""
backend/app/shared/utils/datetime_helpers.py

Utilidades para manejo consistente de timestamps en UTC.

SQLite devuelve datetimes naive aunque la columna sea timezone=True;
ensure_utc() normaliza antes de comparar.

Autor: MessCredit
Fecha: 2026-03-02
"""

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """
    Retorna el timestamp UTC actual (timezone-aware).

    Examples:
        >>> now = utcnow()
        >>> now.tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Fecha calendario actual en UTC."""
    return utcnow().date()


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Asegura que un datetime sea UTC timezone-aware.

    Examples:
        >>> dt_naive = datetime(2026, 3, 2, 14, 30, 0)
        >>> ensure_utc(dt_naive).tzinfo == timezone.utc
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    if dt.tzinfo != timezone.utc:
        return dt.astimezone(timezone.utc)
    return dt


def to_iso8601(dt: Optional[datetime]) -> Optional[str]:
    """
    Convierte datetime a string ISO 8601 con 'Z' para UTC.

    Examples:
        >>> to_iso8601(datetime(2026, 3, 2, 14, 30, 0, tzinfo=timezone.utc))
        '2026-03-02T14:30:00Z'
    """
    if dt is None:
        return None
    return ensure_utc(dt).isoformat().replace('+00:00', 'Z')


__all__ = ["utcnow", "utc_today", "ensure_utc", "to_iso8601"]
# Fin del archivo backend/app/shared/utils/datetime_helpers.py
