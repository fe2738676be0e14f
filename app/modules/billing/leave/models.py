# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/leave/models.py

Ajuste de créditos derivado de un permiso aprobado.

Un ajuste se aplica exactamente una vez, por UNA de dos vías:
- apply(): movimiento leave_refund en el ledger (transaction_id)
- consumo por la factura del ciclo: se descuenta del costo (bill_id)

Autor: MessCredit
Fecha: 2026-03-04
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, Date, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, as_db_enum
from app.shared.utils.datetime_helpers import utcnow
from .schemas import LeaveRequest, LeaveRequestStatus


class LeaveAdjustment(Base):
    """
    Tabla: leave_adjustments

    UNIQUE(leave_request_id): un solo ajuste por solicitud de permiso.
    """

    __tablename__ = "leave_adjustments"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    leave_request_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    membership_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    mess_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    leave_status: Mapped[LeaveRequestStatus] = mapped_column(
        as_db_enum(LeaveRequestStatus, name="leave_request_status"),
        nullable=False,
    )

    leave_start: Mapped[date] = mapped_column(Date, nullable=False)
    leave_end: Mapped[date] = mapped_column(Date, nullable=False)

    cycle_start: Mapped[date] = mapped_column(Date, nullable=False)
    cycle_end: Mapped[date] = mapped_column(Date, nullable=False)

    cycle_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    days_in_cycle: Mapped[int] = mapped_column(Integer, nullable=False)
    leave_days_in_cycle: Mapped[int] = mapped_column(Integer, nullable=False)
    credited_days: Mapped[int] = mapped_column(Integer, nullable=False)
    daily_credit_value: Mapped[int] = mapped_column(Integer, nullable=False)
    refund_amount: Mapped[int] = mapped_column(Integer, nullable=False)

    applied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    applied_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    transaction_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    bill_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<LeaveAdjustment id={self.id} leave={self.leave_request_id} "
            f"refund={self.refund_amount} applied={self.applied}>"
        )


class MessLeaveRequest(Base):
    """
    Tabla: mess_leave_requests (solo lectura desde facturación)

    La escribe el módulo de membresías: el miembro solicita el permiso y
    su estado (approved/rejected/...) lo decide ese flujo. Facturación
    solo calcula ajustes de solicitudes ya aprobadas aquí.
    """

    __tablename__ = "mess_leave_requests"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    mess_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    membership_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[LeaveRequestStatus] = mapped_column(
        as_db_enum(LeaveRequestStatus, name="mess_leave_request_status"),
        nullable=False,
        default=LeaveRequestStatus.PENDING,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    def to_request(self) -> LeaveRequest:
        return LeaveRequest(
            leave_request_id=self.id,
            membership_id=self.membership_id,
            mess_id=self.mess_id,
            start_date=self.start_date,
            end_date=self.end_date,
            status=self.status,
        )


__all__ = ["LeaveAdjustment", "MessLeaveRequest"]
