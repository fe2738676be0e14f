# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/payment_verification_repository.py

Repositorio para la tabla payment_verifications.

Autor: MessCredit
Fecha: 2026-03-07
"""

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.modules.payments.enums import VerificationMethod, VerificationStatus
from app.modules.payments.models import PaymentVerification


class PaymentVerificationRepository(BaseRepository[PaymentVerification]):
    def __init__(self) -> None:
        super().__init__(PaymentVerification)

    async def get_by_gateway_transaction_id(
        self,
        session: AsyncSession,
        gateway_transaction_id: str,
    ) -> Optional[PaymentVerification]:
        """Busca por la llave de idempotencia de la pasarela."""
        result = await session.execute(
            select(PaymentVerification).where(
                PaymentVerification.gateway_transaction_id == gateway_transaction_id
            )
        )
        return result.scalars().first()

    async def list_for_order(self, session: AsyncSession, order_id: int) -> Sequence[PaymentVerification]:
        result = await session.execute(
            select(PaymentVerification)
            .where(PaymentVerification.order_id == order_id)
            .order_by(PaymentVerification.id.asc())
        )
        return result.scalars().all()

    async def has_pending_manual(self, session: AsyncSession, order_id: int) -> bool:
        """True si la orden tiene un comprobante manual esperando revisión."""
        result = await session.execute(
            select(PaymentVerification.id)
            .where(
                PaymentVerification.order_id == order_id,
                PaymentVerification.method == VerificationMethod.MANUAL_PROOF,
                PaymentVerification.status == VerificationStatus.PENDING,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_pending_manual(self, session: AsyncSession, *, limit: int = 100) -> Sequence[PaymentVerification]:
        result = await session.execute(
            select(PaymentVerification)
            .where(
                PaymentVerification.method == VerificationMethod.MANUAL_PROOF,
                PaymentVerification.status == VerificationStatus.PENDING,
            )
            .order_by(PaymentVerification.id.asc())
            .limit(limit)
        )
        return result.scalars().all()


__all__ = ["PaymentVerificationRepository"]
