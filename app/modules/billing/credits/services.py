# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/credits/services.py

Servicios del ledger de créditos.

Provee lógica de negocio para:
- CreditLedger: post (movimiento idempotente), balance_of (fold del log),
  history (iterador perezoso y reiniciable) y audit (cache vs fold)
- AccountService: apertura de cuentas y ajustes de configuración por comedor

Garantías de post():
- Idempotencia por (cuenta, reason, reference_id): el segundo intento
  devuelve el movimiento existente sin tocar el saldo.
- Atomicidad: el INSERT del movimiento y el UPDATE del saldo cacheado
  viven en el mismo SAVEPOINT.
- Serialización por cuenta: el UPDATE es compare-and-swap sobre `version`;
  si otro escritor ganó se relee y reintenta (acotado).

Autor: MessCredit
Fecha: 2026-03-02
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.logging_config import get_audit_logger
from app.shared.config.settings_billing import BillingConfig
from app.modules.billing.errors import AccountNotFound, InsufficientCredits, LedgerConflict
from app.modules.billing.metrics import LEDGER_POSTINGS
from .models import CreditAccount, CreditTransaction
from .enums import CreditAccountStatus, CreditTxReason
from .repositories import CreditAccountRepository, CreditTransactionRepository

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()


@dataclass
class PostResult:
    """Resultado de un movimiento en el ledger."""
    transaction: CreditTransaction
    balance: int
    created: bool


@dataclass
class BalanceAudit:
    """Comparación entre el saldo cacheado y el fold del log."""
    mess_id: str
    cached: int
    folded: int

    @property
    def consistent(self) -> bool:
        return self.cached == self.folded


class AccountService:
    """
    Cuentas de créditos por comedor.
    """

    def __init__(
        self,
        config: BillingConfig,
        account_repo: Optional[CreditAccountRepository] = None,
    ):
        self.config = config
        self.account_repo = account_repo or CreditAccountRepository()

    async def get_or_open_account(self, session: AsyncSession, mess_id: str) -> CreditAccount:
        account, _ = await self.account_repo.get_or_create(
            session,
            mess_id,
            low_balance_threshold=self.config.default_low_balance_threshold,
            billing_period=self.config.billing_period,
        )
        return account

    async def get_account(self, session: AsyncSession, mess_id: str) -> CreditAccount:
        account = await self.account_repo.get_by_mess_id(session, mess_id)
        if account is None:
            raise AccountNotFound(f"No credit account for mess {mess_id}", mess_id=mess_id)
        return account

    async def toggle_auto_renewal(
        self,
        session: AsyncSession,
        mess_id: str,
        enabled: bool,
    ) -> CreditAccount:
        """
        Activa/desactiva el cobro automático de facturas. No mueve créditos.
        """
        account = await self.get_or_open_account(session, mess_id)
        account.auto_renewal = enabled
        await session.flush()
        logger.info("Auto-renewal %s for mess=%s", "enabled" if enabled else "disabled", mess_id)
        return account

    async def set_low_balance_threshold(
        self,
        session: AsyncSession,
        mess_id: str,
        threshold: int,
    ) -> CreditAccount:
        if threshold < 0:
            raise ValueError("threshold must be >= 0")
        account = await self.get_or_open_account(session, mess_id)
        account.low_balance_threshold = threshold
        await session.flush()
        return account

    def max_leave_days(self, account: CreditAccount) -> int:
        """Tope de días de permiso reembolsables por miembro y ciclo."""
        if account.max_leave_days_per_cycle is None:
            return self.config.default_max_leave_days_per_cycle
        return account.max_leave_days_per_cycle

    async def set_max_leave_days(
        self,
        session: AsyncSession,
        mess_id: str,
        days: Optional[int],
        *,
        actor: str,
    ) -> CreditAccount:
        """Configura el tope del comedor; None vuelve al valor por defecto."""
        if days is not None and days < 0:
            raise ValueError("max_leave_days_per_cycle must be >= 0")
        account = await self.get_or_open_account(session, mess_id)
        account.max_leave_days_per_cycle = days
        await session.flush()
        audit_logger.info(
            "leave_cap_updated mess=%s max_leave_days=%s actor=%s",
            mess_id, days if days is not None else "default", actor,
        )
        return account

    async def set_status(
        self,
        session: AsyncSession,
        account: CreditAccount,
        status: CreditAccountStatus,
    ) -> CreditAccount:
        if account.status != status:
            logger.info(
                "Account status change: mess=%s %s -> %s",
                account.mess_id, account.status.value, status.value,
            )
            account.status = status
            await session.flush()
        return account


class CreditLedger:
    """
    Ledger de créditos (única fuente de verdad del saldo).
    """

    def __init__(
        self,
        config: BillingConfig,
        account_repo: Optional[CreditAccountRepository] = None,
        tx_repo: Optional[CreditTransactionRepository] = None,
    ):
        self.config = config
        self.account_repo = account_repo or CreditAccountRepository()
        self.tx_repo = tx_repo or CreditTransactionRepository()

    async def post(
        self,
        session: AsyncSession,
        mess_id: str,
        delta: int,
        reason: CreditTxReason,
        reference_id: str,
        *,
        description: Optional[str] = None,
        tx_metadata: Optional[dict] = None,
    ) -> PostResult:
        """
        Agrega un movimiento al ledger y actualiza el saldo cacheado.

        Raises:
            ValueError: delta == 0 o reference_id vacío
            InsufficientCredits: el saldo quedaría negativo y la razón no
                admite sobregiro
            LedgerConflict: la actualización optimista no convergió
        """
        if delta == 0:
            raise ValueError("delta cannot be zero")
        if not reference_id:
            raise ValueError("reference_id is required")
        reason = reason if isinstance(reason, CreditTxReason) else CreditTxReason(reason)
        reference_id = str(reference_id)

        account, _ = await self.account_repo.get_or_create(
            session,
            mess_id,
            low_balance_threshold=self.config.default_low_balance_threshold,
            billing_period=self.config.billing_period,
        )

        # Idempotencia
        existing = await self.tx_repo.get_by_reference(session, account.id, reason, reference_id)
        if existing:
            logger.info(
                "Idempotent post: already exists for mess=%s %s:%s",
                mess_id, reason.value, reference_id,
            )
            LEDGER_POSTINGS.labels(reason.value, "duplicate").inc()
            return PostResult(transaction=existing, balance=account.balance, created=False)

        for attempt in range(1, self.config.ledger_max_cas_retries + 1):
            expected_version = account.version
            new_balance = account.balance + delta

            if new_balance < 0 and not self.config.allows_overdraft(reason):
                LEDGER_POSTINGS.labels(reason.value, "insufficient").inc()
                raise InsufficientCredits(mess_id, required=-delta, available=account.balance)

            try:
                async with session.begin_nested():
                    tx = await self.tx_repo.create(
                        session,
                        account=account,
                        delta=delta,
                        reason=reason,
                        reference_id=reference_id,
                        balance_after=new_balance,
                        description=description,
                        tx_metadata=tx_metadata,
                    )
                    swapped = await self.account_repo.compare_and_swap_balance(
                        session,
                        account,
                        expected_version=expected_version,
                        new_balance=new_balance,
                    )
                    if not swapped:
                        raise _StaleBalance()
            except _StaleBalance:
                # El SAVEPOINT descartó el INSERT; releer saldo/versión
                await self.account_repo.refresh(session, account)
                logger.debug(
                    "Ledger CAS retry: mess=%s attempt=%d version=%d",
                    mess_id, attempt, expected_version,
                )
                continue
            except IntegrityError:
                # Carrera con un post concurrente de la misma llave
                existing = await self.tx_repo.get_by_reference(session, account.id, reason, reference_id)
                if existing is None:
                    raise
                await self.account_repo.refresh(session, account)
                LEDGER_POSTINGS.labels(reason.value, "duplicate").inc()
                return PostResult(transaction=existing, balance=account.balance, created=False)

            LEDGER_POSTINGS.labels(reason.value, "posted").inc()
            logger.info(
                "Ledger post: mess=%s delta=%+d balance=%d reason=%s ref=%s",
                mess_id, delta, new_balance, reason.value, reference_id,
            )
            return PostResult(transaction=tx, balance=new_balance, created=True)

        LEDGER_POSTINGS.labels(reason.value, "conflict").inc()
        raise LedgerConflict(
            f"Could not update balance for mess {mess_id} after "
            f"{self.config.ledger_max_cas_retries} attempts",
            mess_id=mess_id,
        )

    async def balance_of(self, session: AsyncSession, mess_id: str) -> int:
        """
        Saldo derivado del log (suma de deltas). 0 si el comedor no tiene cuenta.
        """
        account = await self.account_repo.get_by_mess_id(session, mess_id)
        if account is None:
            return 0
        return await self.tx_repo.sum_deltas(session, account.id)

    async def history(
        self,
        session: AsyncSession,
        mess_id: str,
        *,
        reasons: Optional[Iterable[CreditTxReason]] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        batch_size: int = 100,
    ) -> AsyncIterator[CreditTransaction]:
        """
        Recorre los movimientos del comedor en orden de inserción.

        Es perezoso (páginas de `batch_size` por keyset) y reiniciable:
        cada llamada empieza un recorrido nuevo desde el primer movimiento.
        """
        account = await self.account_repo.get_by_mess_id(session, mess_id)
        if account is None:
            return
        reasons = list(reasons) if reasons else None

        after_id = 0
        while True:
            page = await self.tx_repo.list_after(
                session,
                account.id,
                after_id=after_id,
                limit=batch_size,
                reasons=reasons,
                since=since,
                until=until,
            )
            for tx in page:
                yield tx
            if len(page) < batch_size:
                return
            after_id = page[-1].id

    async def audit(self, session: AsyncSession, mess_id: str) -> BalanceAudit:
        """
        Compara el saldo cacheado contra el fold del log.
        """
        account = await self.account_repo.get_by_mess_id(session, mess_id)
        if account is None:
            return BalanceAudit(mess_id=mess_id, cached=0, folded=0)
        folded = await self.tx_repo.sum_deltas(session, account.id)
        audit = BalanceAudit(mess_id=mess_id, cached=account.balance, folded=folded)
        if not audit.consistent:
            logger.error(
                "Ledger drift detected: mess=%s cached=%d folded=%d",
                mess_id, audit.cached, audit.folded,
            )
        return audit


class _StaleBalance(Exception):
    """Señal interna: el compare-and-swap perdió contra otro escritor."""


__all__ = [
    "PostResult",
    "BalanceAudit",
    "AccountService",
    "CreditLedger",
]
