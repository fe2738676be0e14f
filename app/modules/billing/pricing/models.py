# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/pricing/models.py

Modelo ORM de slabs de precio (costo por ciclo según usuarios activos).

Autor: MessCredit
Fecha: 2026-03-03
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK
from app.shared.utils.datetime_helpers import utcnow


class CreditSlab(Base):
    """
    Rango inclusivo [min_users, max_users] con costo en créditos por ciclo.

    Tabla: credit_slabs

    - max_users NULL = rango abierto (último slab)
    - Solo los slabs activos participan en el cálculo; deben cubrir
      [1, ...) sin huecos ni traslapes (lo valida SlabService).
    """

    __tablename__ = "credit_slabs"
    __table_args__ = (
        CheckConstraint("min_users >= 1", name="min_users_positive"),
        CheckConstraint("max_users IS NULL OR max_users >= min_users", name="range_ordered"),
        CheckConstraint("cycle_cost >= 0", name="cost_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    min_users: Mapped[int] = mapped_column(Integer, nullable=False)

    max_users: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    cycle_cost: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Créditos que cuesta un ciclo de facturación para este rango",
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        upper = self.max_users if self.max_users is not None else "∞"
        return f"<CreditSlab id={self.id} [{self.min_users}, {upper}] cost={self.cycle_cost} active={self.is_active}>"


__all__ = ["CreditSlab"]
