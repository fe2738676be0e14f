# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/payment_order_repository.py

Repositorio para la tabla payment_orders.

Autor: MessCredit
Fecha: 2026-03-07
"""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.modules.payments.enums import PaymentOrderStatus, VerificationStatus
from app.modules.payments.models import PaymentOrder, PaymentVerification


class PaymentOrderRepository(BaseRepository[PaymentOrder]):
    def __init__(self) -> None:
        super().__init__(PaymentOrder)

    async def get_by_gateway_ref(
        self,
        session: AsyncSession,
        gateway_order_ref: str,
        *,
        for_update: bool = False,
    ) -> Optional[PaymentOrder]:
        stmt = select(PaymentOrder).where(PaymentOrder.gateway_order_ref == gateway_order_ref)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalars().first()

    async def list_by_mess(
        self,
        session: AsyncSession,
        mess_id: str,
        *,
        status: Optional[PaymentOrderStatus] = None,
        limit: int = 50,
    ) -> Sequence[PaymentOrder]:
        stmt = select(PaymentOrder).where(PaymentOrder.mess_id == mess_id)
        if status is not None:
            stmt = stmt.where(PaymentOrder.status == status)
        stmt = stmt.order_by(PaymentOrder.id.desc()).limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_expirable(self, session: AsyncSession, now: datetime) -> Sequence[PaymentOrder]:
        """
        Órdenes `created` vencidas sin comprobante manual pendiente de revisión.
        """
        pending_proof = exists().where(
            PaymentVerification.order_id == PaymentOrder.id,
            PaymentVerification.status == VerificationStatus.PENDING,
        )
        stmt = (
            select(PaymentOrder)
            .where(
                PaymentOrder.status == PaymentOrderStatus.CREATED,
                PaymentOrder.expires_at <= now,
                ~pending_proof,
            )
            .order_by(PaymentOrder.id.asc())
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalars().all()


__all__ = ["PaymentOrderRepository"]
