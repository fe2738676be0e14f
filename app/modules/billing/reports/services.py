# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/reports/services.py

Reportes de facturación y operaciones administrativas sobre el ledger.

- usage_report: totales por razón en un rango, créditos agregados/usados.
- transactions_page: historial paginado (más recientes primero).
- low_balance: saldo vs umbral y ciclos estimados restantes.
- analytics: agregados entre comedores (solo admin).
- adjust: ajuste manual del saldo (razón `adjustment`), auditado.

Autor: MessCredit
Fecha: 2026-03-06
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.logging_config import get_audit_logger
from app.modules.billing.credits import (
    AccountService,
    CreditLedger,
    CreditTransaction,
    CreditTransactionRepository,
    CreditTxReason,
    PostResult,
)
from app.modules.billing.cycles import Bill, BillingCycleProcessor
from app.modules.billing.errors import NoSlabMatch
from app.modules.billing.pricing import SlabService

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()


@dataclass
class ReasonTotal:
    reason: CreditTxReason
    total: int
    count: int


@dataclass
class UsageReport:
    mess_id: str
    start: Optional[datetime]
    end: Optional[datetime]
    balance: int
    credits_added: int
    credits_used: int
    by_reason: list[ReasonTotal] = field(default_factory=list)


@dataclass
class TransactionsPage:
    items: Sequence[CreditTransaction]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total


@dataclass
class LowBalanceStatus:
    mess_id: str
    balance: int
    threshold: int
    is_low: bool
    cycle_cost: Optional[int]
    estimated_cycles_remaining: Optional[int]


@dataclass
class BillingAnalytics:
    accounts_by_status: dict[str, int]
    total_outstanding_credits: int
    by_reason: list[ReasonTotal]
    bills_by_status: dict[str, int]


def _reason_totals(summary: dict[CreditTxReason, tuple[int, int]]) -> list[ReasonTotal]:
    return [
        ReasonTotal(reason=reason, total=total, count=count)
        for reason, (total, count) in sorted(summary.items(), key=lambda item: item[0].value)
    ]


class BillingReports:
    """Consultas de solo lectura y ajustes administrativos."""

    def __init__(
        self,
        ledger: CreditLedger,
        accounts: AccountService,
        slabs: SlabService,
        cycles: BillingCycleProcessor,
        tx_repo: Optional[CreditTransactionRepository] = None,
    ):
        self.ledger = ledger
        self.accounts = accounts
        self.slabs = slabs
        self.cycles = cycles
        self.tx_repo = tx_repo or CreditTransactionRepository()

    async def usage_report(
        self,
        session: AsyncSession,
        mess_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> UsageReport:
        account = await self.accounts.get_or_open_account(session, mess_id)
        summary = await self.tx_repo.summarize_by_reason(
            session, account_id=account.id, since=start, until=end
        )
        by_reason = _reason_totals(summary)
        return UsageReport(
            mess_id=mess_id,
            start=start,
            end=end,
            balance=account.balance,
            credits_added=sum(r.total for r in by_reason if r.total > 0),
            credits_used=-sum(r.total for r in by_reason if r.total < 0),
            by_reason=by_reason,
        )

    async def transactions_page(
        self,
        session: AsyncSession,
        mess_id: str,
        *,
        reason: Optional[CreditTxReason] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> TransactionsPage:
        account = await self.accounts.get_or_open_account(session, mess_id)
        items, total = await self.tx_repo.list_page(
            session,
            account.id,
            reasons=[reason] if reason else None,
            limit=limit,
            offset=offset,
        )
        return TransactionsPage(items=items, total=total, limit=limit, offset=offset)

    async def low_balance(self, session: AsyncSession, mess_id: str) -> LowBalanceStatus:
        account = await self.accounts.get_or_open_account(session, mess_id)
        users = await self.cycles.count_active_users(session, mess_id)
        engine = await self.slabs.load_engine(session)
        try:
            cycle_cost: Optional[int] = engine.resolve_cost(users)
        except NoSlabMatch:
            cycle_cost = None

        remaining = None
        if cycle_cost:
            remaining = max(account.balance, 0) // cycle_cost

        return LowBalanceStatus(
            mess_id=mess_id,
            balance=account.balance,
            threshold=account.low_balance_threshold,
            is_low=account.is_low_balance,
            cycle_cost=cycle_cost,
            estimated_cycles_remaining=remaining,
        )

    async def analytics(
        self,
        session: AsyncSession,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> BillingAnalytics:
        account_repo = self.accounts.account_repo
        summary = await self.tx_repo.summarize_by_reason(session, since=start, until=end)

        result = await session.execute(
            select(Bill.status, func.count(Bill.id)).group_by(Bill.status)
        )
        bills_by_status = {
            (status.value if hasattr(status, "value") else str(status)): count
            for status, count in result.all()
        }

        return BillingAnalytics(
            accounts_by_status=await account_repo.count_by_status(session),
            total_outstanding_credits=await account_repo.total_outstanding(session),
            by_reason=_reason_totals(summary),
            bills_by_status=bills_by_status,
        )

    async def adjust(
        self,
        session: AsyncSession,
        mess_id: str,
        delta: int,
        *,
        idempotency_key: str,
        description: str,
        actor: str,
    ) -> PostResult:
        """
        Ajuste administrativo del saldo. No admite sobregiro salvo que
        `adjustment` esté en overdraft_reasons.
        """
        result = await self.ledger.post(
            session,
            mess_id,
            delta,
            CreditTxReason.ADJUSTMENT,
            idempotency_key,
            description=description,
            tx_metadata={"actor": actor},
        )
        audit_logger.info(
            "credit_adjustment mess=%s delta=%+d key=%s actor=%s created=%s balance=%d",
            mess_id, delta, idempotency_key, actor, result.created, result.balance,
        )
        return result


__all__ = [
    "BillingReports",
    "UsageReport",
    "ReasonTotal",
    "TransactionsPage",
    "LowBalanceStatus",
    "BillingAnalytics",
]
