# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/credits/repositories.py

Repositorios para el ledger de créditos.

Autor: MessCredit
Fecha: 2026-03-02
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy import select, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from app.shared.utils.datetime_helpers import utcnow
from .models import CreditAccount, CreditTransaction
from .enums import CreditAccountStatus, CreditTxReason

logger = logging.getLogger(__name__)


class CreditAccountRepository:
    """Repositorio para CreditAccount (saldo cacheado por comedor)."""

    async def get_by_mess_id(
        self,
        session: AsyncSession,
        mess_id: str,
        *,
        for_update: bool = False,
    ) -> Optional[CreditAccount]:
        """
        Obtiene la cuenta de un comedor.
        """
        stmt = select(CreditAccount).where(CreditAccount.mess_id == mess_id)
        if for_update:
            stmt = stmt.with_for_update()

        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        session: AsyncSession,
        mess_id: str,
        *,
        low_balance_threshold: int,
        billing_period: str,
    ) -> tuple[CreditAccount, bool]:
        """
        Obtiene o crea la cuenta de un comedor.

        Usa SAVEPOINT para manejar concurrencia sin invalidar
        la transacción principal del request.

        Returns:
            Tuple (account, created: bool)
        """
        account = await self.get_by_mess_id(session, mess_id)
        if account:
            return account, False

        try:
            async with session.begin_nested():
                account = CreditAccount(
                    mess_id=mess_id,
                    balance=0,
                    version=0,
                    low_balance_threshold=low_balance_threshold,
                    auto_renewal=True,
                    billing_period=billing_period,
                    status=CreditAccountStatus.SUSPENDED,
                )
                session.add(account)
                await session.flush()
            logger.info("Credit account opened for mess %s", mess_id)
            return account, True
        except IntegrityError:
            # SAVEPOINT hace rollback; otro request creó la cuenta
            logger.debug("Credit account already exists for mess %s (concurrent create)", mess_id)

        account = await self.get_by_mess_id(session, mess_id)
        if account:
            return account, False

        raise RuntimeError(f"Failed to get or create credit account for mess {mess_id}")

    async def compare_and_swap_balance(
        self,
        session: AsyncSession,
        account: CreditAccount,
        *,
        expected_version: int,
        new_balance: int,
    ) -> bool:
        """
        Actualiza el saldo cacheado solo si la versión no cambió.

        Returns:
            True si la fila se actualizó; False si otro escritor ganó.
        """
        now = utcnow()
        stmt = (
            update(CreditAccount)
            .where(
                CreditAccount.id == account.id,
                CreditAccount.version == expected_version,
            )
            .values(
                balance=new_balance,
                version=expected_version + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        if result.rowcount != 1:
            return False

        # Sincroniza la instancia en memoria sin marcarla como modificada
        set_committed_value(account, "balance", new_balance)
        set_committed_value(account, "version", expected_version + 1)
        set_committed_value(account, "updated_at", now)
        return True

    async def refresh(self, session: AsyncSession, account: CreditAccount) -> CreditAccount:
        await session.refresh(account, attribute_names=["balance", "version", "status"])
        return account

    async def list_by_status(
        self,
        session: AsyncSession,
        statuses: Optional[Iterable[CreditAccountStatus]] = None,
    ) -> Sequence[CreditAccount]:
        stmt = select(CreditAccount).order_by(CreditAccount.id.asc())
        if statuses:
            stmt = stmt.where(CreditAccount.status.in_(list(statuses)))
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_by_status(self, session: AsyncSession) -> dict[str, int]:
        stmt = select(CreditAccount.status, func.count(CreditAccount.id)).group_by(CreditAccount.status)
        result = await session.execute(stmt)
        return {
            (status.value if hasattr(status, "value") else str(status)): count
            for status, count in result.all()
        }

    async def total_outstanding(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.coalesce(func.sum(CreditAccount.balance), 0)))
        return int(result.scalar_one())


class CreditTransactionRepository:
    """Repositorio para el ledger (append-only)."""

    async def create(
        self,
        session: AsyncSession,
        *,
        account: CreditAccount,
        delta: int,
        reason: CreditTxReason,
        reference_id: str,
        balance_after: int,
        description: Optional[str] = None,
        tx_metadata: Optional[dict] = None,
    ) -> CreditTransaction:
        """
        Agrega un movimiento al ledger.

        Validaciones:
        - delta != 0
        """
        if delta == 0:
            raise ValueError("delta cannot be zero")

        tx = CreditTransaction(
            account_id=account.id,
            mess_id=account.mess_id,
            delta=delta,
            reason=reason if isinstance(reason, CreditTxReason) else CreditTxReason(reason),
            reference_id=reference_id,
            balance_after=balance_after,
            description=description,
            tx_metadata=tx_metadata or {},
            created_at=utcnow(),
        )
        session.add(tx)
        await session.flush()
        return tx

    async def get_by_reference(
        self,
        session: AsyncSession,
        account_id: int,
        reason: CreditTxReason,
        reference_id: str,
    ) -> Optional[CreditTransaction]:
        """
        Busca un movimiento por su llave de idempotencia (reason, reference_id).
        """
        result = await session.execute(
            select(CreditTransaction).where(
                CreditTransaction.account_id == account_id,
                CreditTransaction.reason == reason,
                CreditTransaction.reference_id == reference_id,
            )
        )
        return result.scalar_one_or_none()

    async def sum_deltas(self, session: AsyncSession, account_id: int) -> int:
        """
        Fold del log: SUM(delta) de la cuenta.
        """
        result = await session.execute(
            select(func.coalesce(func.sum(CreditTransaction.delta), 0)).where(
                CreditTransaction.account_id == account_id
            )
        )
        return int(result.scalar_one())

    def _filtered(
        self,
        account_id: int,
        *,
        reasons: Optional[Iterable[CreditTxReason]] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ):
        stmt = select(CreditTransaction).where(CreditTransaction.account_id == account_id)
        if reasons:
            stmt = stmt.where(CreditTransaction.reason.in_(list(reasons)))
        if since is not None:
            stmt = stmt.where(CreditTransaction.created_at >= since)
        if until is not None:
            stmt = stmt.where(CreditTransaction.created_at < until)
        return stmt

    async def list_after(
        self,
        session: AsyncSession,
        account_id: int,
        *,
        after_id: int = 0,
        limit: int = 100,
        reasons: Optional[Iterable[CreditTxReason]] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> Sequence[CreditTransaction]:
        """
        Página ascendente por id (keyset) para recorrer el historial completo.
        """
        stmt = (
            self._filtered(account_id, reasons=reasons, since=since, until=until)
            .where(CreditTransaction.id > after_id)
            .order_by(CreditTransaction.id.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_page(
        self,
        session: AsyncSession,
        account_id: int,
        *,
        reasons: Optional[Iterable[CreditTxReason]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[Sequence[CreditTransaction], int]:
        """
        Página descendente (más recientes primero) y total de registros.
        """
        base = self._filtered(account_id, reasons=reasons)
        total = await session.execute(select(func.count()).select_from(base.subquery()))
        stmt = base.order_by(CreditTransaction.id.desc()).limit(limit).offset(offset)
        result = await session.execute(stmt)
        return result.scalars().all(), int(total.scalar_one())

    async def summarize_by_reason(
        self,
        session: AsyncSession,
        *,
        account_id: Optional[int] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> dict[CreditTxReason, tuple[int, int]]:
        """
        Totales por razón: {reason: (sum_delta, count)}.
        Sin account_id agrega sobre todos los comedores.
        """
        stmt = select(
            CreditTransaction.reason,
            func.coalesce(func.sum(CreditTransaction.delta), 0),
            func.count(CreditTransaction.id),
        ).group_by(CreditTransaction.reason)
        if account_id is not None:
            stmt = stmt.where(CreditTransaction.account_id == account_id)
        if since is not None:
            stmt = stmt.where(CreditTransaction.created_at >= since)
        if until is not None:
            stmt = stmt.where(CreditTransaction.created_at < until)

        result = await session.execute(stmt)
        return {
            CreditTxReason(reason): (int(total), int(count))
            for reason, total, count in result.all()
        }


__all__ = [
    "CreditAccountRepository",
    "CreditTransactionRepository",
]
