# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/leave/services.py

Calculador de ajustes por permiso.

- compute_adjustment: valida estado, calcula y persiste (una vez por
  solicitud de permiso; recalcular devuelve el ajuste existente).
- apply: reembolso leave_refund en el ledger, exactamente una vez.
- revoke: marca un ajuste pendiente cuando el permiso se cancela.
- list_pending_for_window / consume_for_bill: usados por el procesador
  de ciclos para descontar permisos de la factura.

Autor: MessCredit
Fecha: 2026-03-04
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_billing import BillingConfig
from app.shared.utils.datetime_helpers import utcnow
from app.modules.billing.credits import CreditLedger, CreditTransaction, CreditTxReason
from app.modules.billing.errors import (
    AlreadyApplied,
    InvalidLeaveState,
    LeaveAdjustmentNotFound,
    LeaveRequestNotFound,
)
from .calculator import calculate_leave_refund, overlap_days
from .models import LeaveAdjustment, MessLeaveRequest
from .schemas import LeavePolicy, LeaveRequest, LeaveRequestStatus

logger = logging.getLogger(__name__)


class LeaveAdjustmentCalculator:
    """Ajustes de créditos por permisos aprobados."""

    def __init__(self, config: BillingConfig, ledger: CreditLedger):
        self.config = config
        self.ledger = ledger

    async def get(
        self,
        session: AsyncSession,
        adjustment_id: int,
        *,
        for_update: bool = False,
    ) -> LeaveAdjustment:
        stmt = select(LeaveAdjustment).where(LeaveAdjustment.id == adjustment_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        adjustment = result.scalar_one_or_none()
        if adjustment is None:
            raise LeaveAdjustmentNotFound(
                f"Leave adjustment {adjustment_id} not found",
                adjustment_id=adjustment_id,
            )
        return adjustment

    async def _get_by_leave_request(
        self,
        session: AsyncSession,
        leave_request_id: str,
    ) -> Optional[LeaveAdjustment]:
        result = await session.execute(
            select(LeaveAdjustment).where(LeaveAdjustment.leave_request_id == leave_request_id)
        )
        return result.scalar_one_or_none()

    async def load_request(
        self,
        session: AsyncSession,
        leave_request_id: str,
        *,
        mess_id: str,
    ) -> LeaveRequest:
        """
        Lee la solicitud registrada por el módulo de membresías.

        Raises:
            LeaveRequestNotFound: no existe o pertenece a otro comedor
        """
        record = await session.get(MessLeaveRequest, leave_request_id)
        if record is None or record.mess_id != mess_id:
            raise LeaveRequestNotFound(
                f"Leave request {leave_request_id} not found",
                leave_request_id=leave_request_id,
            )
        return record.to_request()

    async def _credited_days(
        self,
        session: AsyncSession,
        leave_request: LeaveRequest,
        policy: LeavePolicy,
    ) -> int:
        """Días ya reembolsados (o por reembolsar) al miembro en el ciclo."""
        result = await session.execute(
            select(func.coalesce(func.sum(LeaveAdjustment.credited_days), 0)).where(
                LeaveAdjustment.mess_id == leave_request.mess_id,
                LeaveAdjustment.membership_id == leave_request.membership_id,
                LeaveAdjustment.cycle_start == policy.cycle_start,
                LeaveAdjustment.cycle_end == policy.cycle_end,
                LeaveAdjustment.leave_status == LeaveRequestStatus.APPROVED,
            )
        )
        return int(result.scalar_one())

    async def compute_adjustment(
        self,
        session: AsyncSession,
        leave_request: LeaveRequest,
        policy: LeavePolicy,
    ) -> LeaveAdjustment:
        """
        Calcula y persiste el ajuste de un permiso aprobado.

        El tope de días es por miembro y ciclo: varias solicitudes del mismo
        miembro en el mismo ciclo comparten el tope de la política.

        Raises:
            InvalidLeaveState: el permiso no está aprobado
        """
        if leave_request.status != LeaveRequestStatus.APPROVED:
            raise InvalidLeaveState(
                f"Leave request {leave_request.leave_request_id} is {leave_request.status.value}, not approved",
                leave_request_id=leave_request.leave_request_id,
                status=leave_request.status.value,
            )

        existing = await self._get_by_leave_request(session, leave_request.leave_request_id)
        if existing is not None:
            return existing

        leave_days = overlap_days(
            leave_request.start_date,
            leave_request.end_date,
            policy.cycle_start,
            policy.cycle_end,
        )
        used_days = await self._credited_days(session, leave_request, policy)
        refund = calculate_leave_refund(
            policy.cycle_cost,
            policy.days_in_cycle,
            leave_days,
            max(policy.max_leave_days_per_cycle - used_days, 0),
        )

        adjustment = LeaveAdjustment(
            leave_request_id=leave_request.leave_request_id,
            membership_id=leave_request.membership_id,
            mess_id=leave_request.mess_id,
            leave_status=leave_request.status,
            leave_start=leave_request.start_date,
            leave_end=leave_request.end_date,
            cycle_start=policy.cycle_start,
            cycle_end=policy.cycle_end,
            cycle_cost=policy.cycle_cost,
            days_in_cycle=policy.days_in_cycle,
            leave_days_in_cycle=refund.leave_days,
            credited_days=refund.credited_days,
            daily_credit_value=refund.daily_credit_value,
            refund_amount=refund.refund_amount,
            applied=False,
        )
        try:
            async with session.begin_nested():
                session.add(adjustment)
                await session.flush()
        except IntegrityError:
            existing = await self._get_by_leave_request(session, leave_request.leave_request_id)
            if existing is None:
                raise
            return existing

        logger.info(
            "Leave adjustment computed: id=%s mess=%s leave=%s days=%d/%d daily=%d refund=%d",
            adjustment.id, adjustment.mess_id, adjustment.leave_request_id,
            refund.credited_days, refund.leave_days, refund.daily_credit_value, refund.refund_amount,
        )
        return adjustment

    async def apply(
        self,
        session: AsyncSession,
        adjustment_id: int,
    ) -> Optional[CreditTransaction]:
        """
        Acredita el reembolso del ajuste en el ledger.

        Returns:
            El movimiento leave_refund, o None si el reembolso es 0.

        Raises:
            InvalidLeaveState: el permiso ya no está aprobado
            AlreadyApplied: el ajuste ya fue aplicado o consumido por una factura
        """
        adjustment = await self.get(session, adjustment_id, for_update=True)

        if adjustment.applied:
            transaction = None
            if adjustment.transaction_id is not None:
                transaction = await session.get(CreditTransaction, adjustment.transaction_id)
            raise AlreadyApplied(adjustment, transaction=transaction)

        # El estado vigente es el de la solicitud registrada
        record = await session.get(MessLeaveRequest, adjustment.leave_request_id)
        if record is not None and record.status != adjustment.leave_status:
            adjustment.leave_status = record.status
            await session.flush()

        if adjustment.leave_status != LeaveRequestStatus.APPROVED:
            raise InvalidLeaveState(
                f"Leave adjustment {adjustment.id} belongs to a {adjustment.leave_status.value} leave",
                adjustment_id=adjustment.id,
                status=adjustment.leave_status.value,
            )

        transaction = None
        if adjustment.refund_amount > 0:
            result = await self.ledger.post(
                session,
                adjustment.mess_id,
                adjustment.refund_amount,
                CreditTxReason.LEAVE_REFUND,
                str(adjustment.id),
                description=(
                    f"Leave refund {adjustment.leave_start.isoformat()}..{adjustment.leave_end.isoformat()} "
                    f"({adjustment.credited_days} days)"
                ),
                tx_metadata={
                    "membership_id": adjustment.membership_id,
                    "leave_request_id": adjustment.leave_request_id,
                },
            )
            transaction = result.transaction
            adjustment.transaction_id = transaction.id

        adjustment.applied = True
        adjustment.applied_at = utcnow()
        await session.flush()
        return transaction

    async def revoke(
        self,
        session: AsyncSession,
        adjustment_id: int,
        leave_status: LeaveRequestStatus,
    ) -> LeaveAdjustment:
        """
        Registra que el permiso fue rechazado/cancelado antes de aplicarse.
        """
        if leave_status == LeaveRequestStatus.APPROVED:
            raise ValueError("revoke requires a non-approved leave status")
        adjustment = await self.get(session, adjustment_id, for_update=True)
        if adjustment.applied:
            raise InvalidLeaveState(
                f"Leave adjustment {adjustment.id} was already applied and cannot be revoked",
                adjustment_id=adjustment.id,
            )
        adjustment.leave_status = leave_status
        await session.flush()
        logger.info("Leave adjustment revoked: id=%s status=%s", adjustment.id, leave_status.value)
        return adjustment

    async def list_pending_for_window(
        self,
        session: AsyncSession,
        mess_id: str,
        window_start: date,
        window_end: date,
    ) -> Sequence[LeaveAdjustment]:
        """Ajustes aprobados y sin aplicar cuyo ciclo cae dentro de la ventana."""
        result = await session.execute(
            select(LeaveAdjustment)
            .where(
                LeaveAdjustment.mess_id == mess_id,
                LeaveAdjustment.applied.is_(False),
                LeaveAdjustment.leave_status == LeaveRequestStatus.APPROVED,
                LeaveAdjustment.cycle_start >= window_start,
                LeaveAdjustment.cycle_end <= window_end,
            )
            .order_by(LeaveAdjustment.id.asc())
            .with_for_update()
        )
        return result.scalars().all()

    async def consume_for_bill(
        self,
        session: AsyncSession,
        adjustments: Sequence[LeaveAdjustment],
        bill_id: int,
    ) -> None:
        """Marca ajustes como descontados de una factura (sin movimiento en ledger)."""
        now = utcnow()
        for adjustment in adjustments:
            adjustment.applied = True
            adjustment.applied_at = now
            adjustment.bill_id = bill_id
        await session.flush()


__all__ = ["LeaveAdjustmentCalculator"]
