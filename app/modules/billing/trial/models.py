# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/trial/models.py

Registro de prueba gratuita por comedor (una sola vez, para siempre).

Autor: MessCredit
Fecha: 2026-03-03
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK
from app.shared.utils.datetime_helpers import ensure_utc, utcnow


class FreeTrialRecord(Base):
    """
    Tabla: free_trial_records

    UNIQUE(mess_id) es la barrera atómica de "una prueba por comedor":
    el INSERT ocurre antes de otorgar créditos.
    """

    __tablename__ = "free_trial_records"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    mess_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    credits_granted: Mapped[int] = mapped_column(Integer, nullable=False)

    activated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    # Se llena cuando el job de expiración procesa el registro
    expired_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def is_active_at(self, when: datetime) -> bool:
        return self.expired_at is None and ensure_utc(self.expires_at) > ensure_utc(when)

    def __repr__(self) -> str:
        return f"<FreeTrialRecord id={self.id} mess={self.mess_id} expires_at={self.expires_at}>"


__all__ = ["FreeTrialRecord"]
