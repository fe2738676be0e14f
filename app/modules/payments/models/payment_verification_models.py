# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/payment_verification_models.py

Modelo ORM para la tabla payment_verifications.

gateway_transaction_id es UNIQUE: es la llave de idempotencia del
crédito por compra (una transacción de pasarela -> a lo sumo un crédito).

Autor: MessCredit
Fecha: 2026-03-07
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, as_db_enum
from app.shared.utils.datetime_helpers import utcnow
from app.modules.payments.enums import VerificationMethod, VerificationStatus


class PaymentVerification(Base):
    """Intento de verificación (webhook o comprobante manual) de una orden."""

    __tablename__ = "payment_verifications"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    order_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("payment_orders.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    mess_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    gateway_transaction_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)

    method: Mapped[VerificationMethod] = mapped_column(
        as_db_enum(VerificationMethod, name="verification_method"),
        nullable=False,
    )

    status: Mapped[VerificationStatus] = mapped_column(
        as_db_enum(VerificationStatus, name="verification_status"),
        nullable=False,
        default=VerificationStatus.PENDING,
        index=True,
    )

    # Llave opaca del comprobante en el blob store
    proof_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    submitted_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    credit_transaction_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<PaymentVerification id={self.id} order={self.order_id} "
            f"gtx={self.gateway_transaction_id} {self.method}:{self.status}>"
        )


__all__ = ["PaymentVerification"]

# Fin del archivo backend/app/modules/payments/models/payment_verification_models.py
