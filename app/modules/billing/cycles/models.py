# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/cycles/models.py

Modelos ORM de ciclos de facturación.

- Bill: factura de un comedor por ventana de ciclo.
- MessMembership: membresías del comedor (propiedad del módulo de
  membresías; aquí solo se lee para contar usuarios activos).

Autor: MessCredit
Fecha: 2026-03-05
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, as_db_enum
from app.shared.utils.datetime_helpers import utcnow
from .enums import BillStatus


class Bill(Base):
    """
    Tabla: bills

    Constraints:
    - uq_bills_mess_id: UNIQUE(mess_id, cycle_start, cycle_end); una factura
      (de cualquier estado) por comedor y ventana
    - ck_bills_non_negative_net: net_amount >= 0
    """

    __tablename__ = "bills"
    __table_args__ = (
        UniqueConstraint("mess_id", "cycle_start", "cycle_end"),
        CheckConstraint("net_amount >= 0", name="non_negative_net"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    mess_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    account_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("credit_accounts.id", ondelete="RESTRICT"),
        nullable=False,
    )

    cycle_start: Mapped[date] = mapped_column(Date, nullable=False)
    cycle_end: Mapped[date] = mapped_column(Date, nullable=False)

    # Instantánea al momento de generar
    active_user_count: Mapped[int] = mapped_column(Integer, nullable=False)
    slab_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    leave_adjustment_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    net_amount: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[BillStatus] = mapped_column(
        as_db_enum(BillStatus, name="bill_status"),
        nullable=False,
        default=BillStatus.PENDING,
        index=True,
    )
    status_reason: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    debit_transaction_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    overdue_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    waived_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    waived_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

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
        return (
            f"<Bill id={self.id} mess={self.mess_id} {self.cycle_start}..{self.cycle_end} "
            f"net={self.net_amount} status={self.status}>"
        )


class MessMembership(Base):
    """
    Tabla: mess_memberships (solo lectura desde facturación)

    status = 'active' cuenta para el slab del ciclo.
    """

    __tablename__ = "mess_memberships"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    mess_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )


ACTIVE_MEMBERSHIP_STATUS = "active"


__all__ = ["Bill", "MessMembership", "ACTIVE_MEMBERSHIP_STATUS"]
