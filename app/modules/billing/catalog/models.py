# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/catalog/models.py

Modelo ORM de planes de compra de créditos.

Autor: MessCredit
Fecha: 2026-03-03
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, JSONType
from app.shared.utils.datetime_helpers import utcnow


class CreditPurchasePlan(Base):
    """
    Paquete de créditos que un comedor puede comprar.

    Tabla: credit_purchase_plans
    """

    __tablename__ = "credit_purchase_plans"
    __table_args__ = (
        CheckConstraint("base_credits > 0", name="base_credits_positive"),
        CheckConstraint("bonus_credits >= 0", name="bonus_credits_non_negative"),
        CheckConstraint("price_cents > 0", name="price_positive"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(120), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    base_credits: Mapped[int] = mapped_column(Integer, nullable=False)

    bonus_credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    price_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Precio en la unidad mínima de la moneda (centavos/paise)",
    )

    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")

    features: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)

    validity_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    is_popular: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

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

    @property
    def total_credits(self) -> int:
        return self.base_credits + self.bonus_credits

    def __repr__(self) -> str:
        return f"<CreditPurchasePlan id={self.id} name={self.name!r} credits={self.total_credits} price={self.price_cents}>"


__all__ = ["CreditPurchasePlan"]
