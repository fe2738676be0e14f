# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/cycles/services.py

Procesador de ciclos de facturación.

generate(mess, ventana):
1. Idempotente: si ya existe factura para (mess, ventana) se devuelve tal cual.
2. Instantánea de usuarios activos -> costo del slab.
3. Descuenta ajustes por permiso no aplicados de la ventana, solo hasta
   el costo del slab; los consumidos quedan ligados a la factura y el
   resto sigue disponible para apply(). Una factura condonada por prueba
   gratuita no consume ajustes.
4. Liquidación:
   - prueba gratuita activa -> waived (trial_active)
   - neto 0 -> paid sin movimiento
   - auto-renovación + saldo suficiente -> débito bill_debit y paid
   - en otro caso -> pending con motivo

Máquina de estados: pending -> paid | overdue | waived; overdue -> paid | waived.

Autor: MessCredit
Fecha: 2026-03-05
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.logging_config import get_audit_logger
from app.shared.config.settings_billing import BillingConfig
from app.shared.utils.datetime_helpers import utc_today, utcnow
from app.modules.billing.credits import (
    AccountService,
    CreditAccount,
    CreditAccountStatus,
    CreditLedger,
    CreditTxReason,
)
from app.modules.billing.errors import (
    BillingError,
    BillNotFound,
    InsufficientCredits,
    InvalidBillTransition,
)
from app.modules.billing.leave import LeaveAdjustment, LeaveAdjustmentCalculator, LeavePolicy
from app.modules.billing.metrics import BILLS_GENERATED
from app.modules.billing.pricing import SlabService
from app.modules.billing.trial import FreeTrialManager
from .enums import BillStatus, BillStatusReason, can_transition
from .models import ACTIVE_MEMBERSHIP_STATUS, Bill, MessMembership
from .windows import CycleWindow, cycle_window_for

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()

SYSTEM_ACTOR = "system"


@dataclass
class BillPreview:
    """Cálculo de la factura de un ciclo sin persistir nada."""
    mess_id: str
    cycle_start: date
    cycle_end: date
    active_user_count: int
    slab_cost: int
    leave_adjustment_total: int
    net_amount: int
    balance: int
    auto_renewal: bool
    existing_bill_id: Optional[int] = None

    @property
    def sufficient_balance(self) -> bool:
        return self.balance >= self.net_amount


@dataclass
class CycleRunSummary:
    """Resultado de generate_due_cycles (job programado)."""
    processed: int = 0
    created: int = 0
    failed: int = 0


class BillingCycleProcessor:
    """Generación y liquidación de facturas por ciclo."""

    def __init__(
        self,
        config: BillingConfig,
        ledger: CreditLedger,
        accounts: AccountService,
        slabs: SlabService,
        leave: LeaveAdjustmentCalculator,
        trials: FreeTrialManager,
    ):
        self.config = config
        self.ledger = ledger
        self.accounts = accounts
        self.slabs = slabs
        self.leave = leave
        self.trials = trials

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------
    async def count_active_users(self, session: AsyncSession, mess_id: str) -> int:
        result = await session.execute(
            select(func.count(MessMembership.id)).where(
                MessMembership.mess_id == mess_id,
                MessMembership.status == ACTIVE_MEMBERSHIP_STATUS,
            )
        )
        return int(result.scalar_one())

    async def get_bill(
        self,
        session: AsyncSession,
        bill_id: int,
        *,
        for_update: bool = False,
    ) -> Bill:
        stmt = select(Bill).where(Bill.id == bill_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        bill = result.scalar_one_or_none()
        if bill is None:
            raise BillNotFound(f"Bill {bill_id} not found", bill_id=bill_id)
        return bill

    async def find_bill(
        self,
        session: AsyncSession,
        mess_id: str,
        window: CycleWindow,
    ) -> Optional[Bill]:
        result = await session.execute(
            select(Bill).where(
                Bill.mess_id == mess_id,
                Bill.cycle_start == window.start,
                Bill.cycle_end == window.end,
            )
        )
        return result.scalar_one_or_none()

    async def list_bills(
        self,
        session: AsyncSession,
        mess_id: str,
        *,
        status: Optional[BillStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[Bill]:
        stmt = select(Bill).where(Bill.mess_id == mess_id)
        if status is not None:
            stmt = stmt.where(Bill.status == status)
        stmt = stmt.order_by(Bill.cycle_start.desc(), Bill.id.desc()).limit(limit).offset(offset)
        result = await session.execute(stmt)
        return result.scalars().all()

    def window_for(self, account: CreditAccount, day: Optional[date] = None) -> CycleWindow:
        return cycle_window_for(day or utc_today(), account.billing_period)

    # ------------------------------------------------------------------
    # Permisos
    # ------------------------------------------------------------------
    async def leave_policy_for(self, session: AsyncSession, mess_id: str, day: date) -> LeavePolicy:
        """
        Política de reembolso del ciclo que contiene `day`.

        El costo por miembro sale de la factura del ciclo si ya existe, o del
        slab vigente con los usuarios activos; el tope de días es el del
        comedor (o el de la configuración).
        """
        account = await self.accounts.get_or_open_account(session, mess_id)
        window = self.window_for(account, day)

        bill = await self.find_bill(session, mess_id, window)
        if bill is not None:
            users, cycle_cost = bill.active_user_count, bill.slab_cost
        else:
            users = await self.count_active_users(session, mess_id)
            engine = await self.slabs.load_engine(session)
            cycle_cost = engine.resolve_cost(users)

        return LeavePolicy(
            cycle_cost=cycle_cost // users if users > 0 else 0,
            cycle_start=window.start,
            cycle_end=window.end,
            max_leave_days_per_cycle=self.accounts.max_leave_days(account),
        )

    async def compute_leave_adjustment(
        self,
        session: AsyncSession,
        mess_id: str,
        leave_request_id: str,
    ) -> LeaveAdjustment:
        """
        Ajuste de una solicitud registrada, con la política calculada aquí.

        Raises:
            LeaveRequestNotFound: la solicitud no existe en el comedor
            InvalidLeaveState: la solicitud no está aprobada
        """
        leave_request = await self.leave.load_request(session, leave_request_id, mess_id=mess_id)
        policy = await self.leave_policy_for(session, mess_id, leave_request.start_date)
        return await self.leave.compute_adjustment(session, leave_request, policy)

    # ------------------------------------------------------------------
    # Generación
    # ------------------------------------------------------------------
    async def preview(
        self,
        session: AsyncSession,
        mess_id: str,
        *,
        window: Optional[CycleWindow] = None,
        active_user_count: Optional[int] = None,
    ) -> BillPreview:
        account = await self.accounts.get_or_open_account(session, mess_id)
        window = window or self.window_for(account)
        if active_user_count is None:
            active_user_count = await self.count_active_users(session, mess_id)

        engine = await self.slabs.load_engine(session)
        slab_cost = engine.resolve_cost(active_user_count)
        existing = await self.find_bill(session, mess_id, window)

        if existing is not None:
            leave_total = existing.leave_adjustment_total
        else:
            pending = await self.leave.list_pending_for_window(session, mess_id, window.start, window.end)
            _, leave_total = self._consumable(pending, slab_cost)

        return BillPreview(
            mess_id=mess_id,
            cycle_start=window.start,
            cycle_end=window.end,
            active_user_count=active_user_count,
            slab_cost=slab_cost,
            leave_adjustment_total=leave_total,
            net_amount=max(slab_cost - leave_total, 0),
            balance=account.balance,
            auto_renewal=account.auto_renewal,
            existing_bill_id=existing.id if existing else None,
        )

    async def generate(
        self,
        session: AsyncSession,
        mess_id: str,
        window: CycleWindow,
        *,
        active_user_count: Optional[int] = None,
    ) -> Bill:
        """
        Genera (o devuelve) la factura del comedor para la ventana.

        Raises:
            NoSlabMatch: ningún slab activo cubre el conteo de usuarios
        """
        existing = await self.find_bill(session, mess_id, window)
        if existing is not None:
            logger.debug("Bill already generated: mess=%s window=%s..%s", mess_id, window.start, window.end)
            return existing

        account = await self.accounts.get_or_open_account(session, mess_id)
        if active_user_count is None:
            active_user_count = await self.count_active_users(session, mess_id)

        engine = await self.slabs.load_engine(session)
        slab_cost = engine.resolve_cost(active_user_count)

        trial_waiver = self.config.waive_bills_during_trial and await self.trials.is_trial_active(
            session, mess_id, now=utcnow()
        )
        if trial_waiver:
            # La factura se condona: los permisos quedan pendientes para apply()
            adjustments, leave_total = [], 0
        else:
            pending = await self.leave.list_pending_for_window(session, mess_id, window.start, window.end)
            adjustments, leave_total = self._consumable(pending, slab_cost)
        net_amount = max(slab_cost - leave_total, 0)

        bill = Bill(
            mess_id=mess_id,
            account_id=account.id,
            cycle_start=window.start,
            cycle_end=window.end,
            active_user_count=active_user_count,
            slab_cost=slab_cost,
            leave_adjustment_total=leave_total,
            net_amount=net_amount,
            status=BillStatus.PENDING,
            due_date=window.start + timedelta(days=self.config.bill_due_days),
        )
        try:
            async with session.begin_nested():
                session.add(bill)
                await session.flush()
        except IntegrityError:
            # Otro tick del scheduler (o request) generó la misma ventana
            existing = await self.find_bill(session, mess_id, window)
            if existing is None:
                raise
            return existing

        if adjustments:
            await self.leave.consume_for_bill(session, adjustments, bill.id)

        await self._settle_new_bill(session, bill, account, trial_waiver=trial_waiver)
        BILLS_GENERATED.labels(bill.status.value).inc()
        logger.info(
            "Bill generated: id=%s mess=%s window=%s..%s users=%d cost=%d leave=%d net=%d status=%s reason=%s",
            bill.id, mess_id, window.start, window.end, active_user_count,
            slab_cost, leave_total, net_amount, bill.status.value, bill.status_reason,
        )
        return bill

    @staticmethod
    def _consumable(
        adjustments: Sequence[LeaveAdjustment],
        slab_cost: int,
    ) -> tuple[list[LeaveAdjustment], int]:
        """
        Ajustes (en orden) que caben en el costo del ciclo. Los que no caben
        no se consumen y siguen disponibles para apply().
        """
        taken: list[LeaveAdjustment] = []
        total = 0
        for adjustment in adjustments:
            if total + adjustment.refund_amount > slab_cost:
                continue
            taken.append(adjustment)
            total += adjustment.refund_amount
        return taken, total

    async def _settle_new_bill(
        self,
        session: AsyncSession,
        bill: Bill,
        account: CreditAccount,
        *,
        trial_waiver: bool = False,
    ) -> None:
        now = utcnow()

        if trial_waiver:
            bill.status = BillStatus.WAIVED
            bill.status_reason = BillStatusReason.TRIAL_ACTIVE.value
            bill.waived_at = now
            bill.waived_by = SYSTEM_ACTOR
            await session.flush()
            return

        if bill.net_amount == 0:
            bill.status = BillStatus.PAID
            bill.paid_at = now
            await session.flush()
            return

        if not account.auto_renewal:
            bill.status_reason = BillStatusReason.AUTO_RENEWAL_DISABLED.value
            await session.flush()
            return

        if account.balance < bill.net_amount:
            bill.status_reason = BillStatusReason.INSUFFICIENT_CREDITS.value
            await session.flush()
            return

        try:
            await self._debit(session, bill)
        except InsufficientCredits:
            # Otro movimiento redujo el saldo entre la lectura y el débito
            bill.status_reason = BillStatusReason.INSUFFICIENT_CREDITS.value
            await session.flush()

    async def _debit(self, session: AsyncSession, bill: Bill) -> None:
        result = await self.ledger.post(
            session,
            bill.mess_id,
            -bill.net_amount,
            CreditTxReason.BILL_DEBIT,
            str(bill.id),
            description=f"Billing cycle {bill.cycle_start.isoformat()}..{bill.cycle_end.isoformat()}",
            tx_metadata={
                "active_user_count": bill.active_user_count,
                "slab_cost": bill.slab_cost,
                "leave_adjustment_total": bill.leave_adjustment_total,
            },
        )
        bill.status = BillStatus.PAID
        bill.status_reason = None
        bill.paid_at = utcnow()
        bill.debit_transaction_id = result.transaction.id
        await session.flush()

    # ------------------------------------------------------------------
    # Liquidación posterior
    # ------------------------------------------------------------------
    async def retry_debit(self, session: AsyncSession, bill_id: int) -> Bill:
        """
        Reintenta el débito de una factura pending/overdue.

        Raises:
            InsufficientCredits: el saldo sigue sin alcanzar (la factura
                conserva su estado y se registra el motivo)
            InvalidBillTransition: la factura fue condonada
        """
        bill = await self.get_bill(session, bill_id, for_update=True)
        if bill.status == BillStatus.PAID:
            return bill
        if not can_transition(bill.status, BillStatus.PAID):
            raise InvalidBillTransition(bill.id, bill.status.value, BillStatus.PAID.value)

        if bill.net_amount == 0:
            bill.status = BillStatus.PAID
            bill.status_reason = None
            bill.paid_at = utcnow()
            await session.flush()
            return bill

        try:
            await self._debit(session, bill)
        except InsufficientCredits:
            bill.status_reason = BillStatusReason.INSUFFICIENT_CREDITS.value
            await session.flush()
            logger.info("Bill debit retry failed: id=%s mess=%s net=%d", bill.id, bill.mess_id, bill.net_amount)
            raise

        account = await self.accounts.get_account(session, bill.mess_id)
        if account.status == CreditAccountStatus.SUSPENDED and not await self._has_overdue(session, bill.mess_id):
            await self.accounts.set_status(session, account, CreditAccountStatus.ACTIVE)

        logger.info("Bill paid on retry: id=%s mess=%s net=%d", bill.id, bill.mess_id, bill.net_amount)
        return bill

    async def _has_overdue(self, session: AsyncSession, mess_id: str) -> bool:
        result = await session.execute(
            select(func.count(Bill.id)).where(Bill.mess_id == mess_id, Bill.status == BillStatus.OVERDUE)
        )
        return int(result.scalar_one()) > 0

    async def mark_overdue(self, session: AsyncSession, *, today: Optional[date] = None) -> int:
        """
        Barrido diario: facturas pending con due_date vencido pasan a overdue
        y su cuenta queda suspendida. Sin efecto en el ledger.
        """
        today = today or utc_today()
        result = await session.execute(
            select(Bill)
            .where(Bill.status == BillStatus.PENDING, Bill.due_date < today)
            .order_by(Bill.id.asc())
            .with_for_update()
        )
        bills = result.scalars().all()

        now = utcnow()
        suspended: set[str] = set()
        for bill in bills:
            bill.status = BillStatus.OVERDUE
            bill.overdue_at = now
            if bill.status_reason is None:
                bill.status_reason = BillStatusReason.PAST_DUE.value
            if bill.mess_id not in suspended:
                account = await self.accounts.get_account(session, bill.mess_id)
                await self.accounts.set_status(session, account, CreditAccountStatus.SUSPENDED)
                suspended.add(bill.mess_id)

        await session.flush()
        if bills:
            logger.info("Overdue sweep: %d bills marked overdue, %d accounts suspended", len(bills), len(suspended))
        return len(bills)

    async def waive(
        self,
        session: AsyncSession,
        bill_id: int,
        *,
        actor: str,
        reason: Optional[str] = None,
    ) -> Bill:
        """Condonación administrativa de una factura pending/overdue."""
        bill = await self.get_bill(session, bill_id, for_update=True)
        if bill.status == BillStatus.WAIVED:
            return bill
        if not can_transition(bill.status, BillStatus.WAIVED):
            raise InvalidBillTransition(bill.id, bill.status.value, BillStatus.WAIVED.value)

        previous = bill.status
        bill.status = BillStatus.WAIVED
        bill.status_reason = reason or BillStatusReason.ADMIN_WAIVER.value
        bill.waived_at = utcnow()
        bill.waived_by = actor
        await session.flush()

        audit_logger.info(
            "bill_waived id=%s mess=%s from=%s net=%d actor=%s reason=%s",
            bill.id, bill.mess_id, previous.value, bill.net_amount, actor, bill.status_reason,
        )
        return bill

    async def toggle_auto_renewal(self, session: AsyncSession, mess_id: str, enabled: bool) -> CreditAccount:
        return await self.accounts.toggle_auto_renewal(session, mess_id, enabled)

    # ------------------------------------------------------------------
    # Scheduler
    # ------------------------------------------------------------------
    async def generate_due_cycles(
        self,
        session: AsyncSession,
        *,
        today: Optional[date] = None,
    ) -> CycleRunSummary:
        """
        Genera la factura de la ventana vigente para cada cuenta.
        Es seguro ejecutarlo con cualquier frecuencia (generate es idempotente).
        Un comedor con error no detiene al resto.
        """
        today = today or utc_today()
        summary = CycleRunSummary()
        accounts = await self.accounts.account_repo.list_by_status(session)

        targets = [(a.mess_id, a.billing_period) for a in accounts]

        for mess_id, period in targets:
            window = cycle_window_for(today, period)
            summary.processed += 1
            if await self.find_bill(session, mess_id, window) is not None:
                continue
            try:
                async with session.begin_nested():
                    await self.generate(session, mess_id, window)
                summary.created += 1
            except BillingError as exc:
                summary.failed += 1
                logger.error(
                    "Cycle generation failed: mess=%s window=%s..%s error=%s",
                    mess_id, window.start, window.end, exc.message,
                )

        logger.info(
            "Cycle generation run: processed=%d created=%d failed=%d",
            summary.processed, summary.created, summary.failed,
        )
        return summary


__all__ = ["BillingCycleProcessor", "BillPreview", "CycleRunSummary"]
