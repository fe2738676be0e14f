# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/trial/services.py

Gestor de prueba gratuita.

Flujo de activate():
1. INSERT del FreeTrialRecord dentro de un SAVEPOINT; UNIQUE(mess_id)
   rechaza un segundo intento (AlreadyUsed) sin postear nada.
2. Movimiento trial_grant en el ledger con reference_id = id del registro.
3. La cuenta pasa a estado `trial`.

Autor: MessCredit
Fecha: 2026-03-03
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_billing import BillingConfig
from app.shared.utils.datetime_helpers import utcnow
from app.modules.billing.credits import (
    AccountService,
    CreditAccountStatus,
    CreditLedger,
    CreditTxReason,
)
from app.modules.billing.errors import AlreadyUsed, TrialUnavailable
from .models import FreeTrialRecord

logger = logging.getLogger(__name__)


@dataclass
class TrialEligibility:
    """Resultado de check_eligibility."""
    eligible: bool
    reason: str
    trial_credits: int
    trial_duration_days: int
    record: Optional[FreeTrialRecord] = None


class FreeTrialManager:
    """Prueba gratuita única por comedor."""

    def __init__(
        self,
        config: BillingConfig,
        ledger: CreditLedger,
        accounts: AccountService,
    ):
        self.config = config
        self.ledger = ledger
        self.accounts = accounts

    async def get_record(self, session: AsyncSession, mess_id: str) -> Optional[FreeTrialRecord]:
        result = await session.execute(
            select(FreeTrialRecord).where(FreeTrialRecord.mess_id == mess_id)
        )
        return result.scalar_one_or_none()

    async def check_eligibility(self, session: AsyncSession, mess_id: str) -> TrialEligibility:
        record = await self.get_record(session, mess_id)
        if record is not None:
            reason = "already_used"
        elif not self.config.trial_enabled:
            reason = "trials_disabled"
        else:
            reason = "eligible"
        return TrialEligibility(
            eligible=reason == "eligible",
            reason=reason,
            trial_credits=self.config.trial_credits,
            trial_duration_days=self.config.trial_duration_days,
            record=record,
        )

    async def activate(
        self,
        session: AsyncSession,
        mess_id: str,
        *,
        now: Optional[datetime] = None,
    ) -> FreeTrialRecord:
        """
        Activa la prueba gratuita y otorga sus créditos.

        Raises:
            TrialUnavailable: pruebas deshabilitadas globalmente
            AlreadyUsed: el comedor ya activó su prueba (no se otorga nada)
        """
        if not self.config.trial_enabled:
            raise TrialUnavailable("Free trials are currently disabled", mess_id=mess_id)

        existing = await self.get_record(session, mess_id)
        if existing is not None:
            logger.info("Trial activation refused: already used mess=%s", mess_id)
            raise AlreadyUsed(mess_id, record=existing)

        now = now or utcnow()
        account = await self.accounts.get_or_open_account(session, mess_id)

        try:
            async with session.begin_nested():
                record = FreeTrialRecord(
                    mess_id=mess_id,
                    credits_granted=self.config.trial_credits,
                    activated_at=now,
                    expires_at=now + timedelta(days=self.config.trial_duration_days),
                )
                session.add(record)
                await session.flush()
        except IntegrityError:
            # Activación concurrente: otro request insertó primero
            logger.info("Trial activation lost race mess=%s", mess_id)
            raise AlreadyUsed(mess_id, record=await self.get_record(session, mess_id))

        await self.ledger.post(
            session,
            mess_id,
            self.config.trial_credits,
            CreditTxReason.TRIAL_GRANT,
            str(record.id),
            description=f"Free trial activated - {self.config.trial_duration_days} days",
        )
        await self.accounts.set_status(session, account, CreditAccountStatus.TRIAL)

        logger.info(
            "Trial activated: mess=%s credits=%d expires_at=%s",
            mess_id, record.credits_granted, record.expires_at.isoformat(),
        )
        return record

    async def is_trial_active(
        self,
        session: AsyncSession,
        mess_id: str,
        *,
        now: Optional[datetime] = None,
    ) -> bool:
        record = await self.get_record(session, mess_id)
        return record is not None and record.is_active_at(now or utcnow())

    async def expire_trials(self, session: AsyncSession, *, now: Optional[datetime] = None) -> int:
        """
        Cierra pruebas vencidas: la cuenta queda `active` si conserva saldo
        o `suspended` si no.

        Returns:
            Número de pruebas procesadas
        """
        now = now or utcnow()
        result = await session.execute(
            select(FreeTrialRecord).where(
                FreeTrialRecord.expired_at.is_(None),
                FreeTrialRecord.expires_at <= now,
            )
        )
        records = result.scalars().all()

        for record in records:
            account = await self.accounts.get_or_open_account(session, record.mess_id)
            if account.status == CreditAccountStatus.TRIAL:
                target = (
                    CreditAccountStatus.ACTIVE if account.balance > 0 else CreditAccountStatus.SUSPENDED
                )
                await self.accounts.set_status(session, account, target)
            record.expired_at = now
            logger.info("Trial expired: mess=%s account_status=%s", record.mess_id, account.status.value)

        await session.flush()
        return len(records)


__all__ = ["FreeTrialManager", "TrialEligibility"]
