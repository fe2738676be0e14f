# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/payment_order_models.py

Modelo ORM para la tabla payment_orders.

Autor: MessCredit
Fecha: 2026-03-07
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, as_db_enum
from app.shared.utils.datetime_helpers import ensure_utc, utcnow
from app.modules.payments.enums import PaymentOrderStatus


class PaymentOrder(Base):
    """Orden de compra de créditos abierta en la pasarela."""

    __tablename__ = "payment_orders"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    mess_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Plan del catálogo (NULL = compra de créditos sueltos)
    plan_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    credits: Mapped[int] = mapped_column(Integer, nullable=False)

    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    gateway_order_ref: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)

    status: Mapped[PaymentOrderStatus] = mapped_column(
        as_db_enum(PaymentOrderStatus, name="payment_order_status"),
        nullable=False,
        default=PaymentOrderStatus.CREATED,
        index=True,
    )

    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

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

    def is_expired_at(self, when: datetime) -> bool:
        if self.status == PaymentOrderStatus.EXPIRED:
            return True
        return self.status == PaymentOrderStatus.CREATED and ensure_utc(self.expires_at) <= ensure_utc(when)

    def __repr__(self) -> str:
        return (
            f"<PaymentOrder id={self.id} mess={self.mess_id} ref={self.gateway_order_ref} "
            f"credits={self.credits} status={self.status}>"
        )


__all__ = ["PaymentOrder"]

# Fin del archivo backend/app/modules/payments/models/payment_order_models.py
