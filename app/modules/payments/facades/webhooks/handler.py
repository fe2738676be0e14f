# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/webhooks/handler.py

Función de alto nivel para manejar el webhook de la pasarela desde rutas HTTP.

1. Resuelve la orden por la referencia de la pasarela
2. Delega la verificación (firma, idempotencia, vencimiento) al
   ReconciliationService
3. Confirma la transacción y traduce el resultado a un WebhookOutcome

Un webhook tardío (orden vencida) se confirma igual: la orden queda
`expired` y la verificación `rejected`, y la pasarela recibe 200 para
que no reintente.

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import GatewayPaymentStatus
from app.modules.payments.errors import OrderExpired
from app.modules.payments.services import ReconciliationService, WebhookProof

logger = logging.getLogger(__name__)


@dataclass
class WebhookOutcome:
    status: str
    order_id: int
    verification_id: Optional[int] = None
    duplicate: bool = False


async def handle_gateway_webhook(
    session: AsyncSession,
    service: ReconciliationService,
    *,
    order_ref: str,
    gateway_transaction_id: str,
    status: GatewayPaymentStatus,
    signature: str,
    failure_reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> WebhookOutcome:
    """
    Procesa un evento firmado de la pasarela.

    Raises:
        OrderNotFound: referencia de orden desconocida
        GatewaySignatureMismatch: firma inválida (nada se persiste)
        OrderNotVerifiable: la orden ya es terminal por otra vía
    """
    order = await service.get_order_by_ref(session, order_ref)
    order_id = order.id

    already = await service.verification_repo.get_by_gateway_transaction_id(
        session, gateway_transaction_id
    )

    proof = WebhookProof(
        signature=signature,
        gateway_status=status,
        failure_reason=failure_reason,
    )
    try:
        verification = await service.verify(
            session,
            order_id,
            gateway_transaction_id,
            proof,
            now=now,
        )
    except OrderExpired:
        await session.commit()
        logger.info("Late gateway webhook rejected: order=%s gtx=%s", order_id, gateway_transaction_id)
        return WebhookOutcome(status="rejected", order_id=order_id)

    outcome = WebhookOutcome(
        status=verification.status.value,
        order_id=order_id,
        verification_id=verification.id,
        duplicate=already is not None,
    )
    await session.commit()
    return outcome


__all__ = ["WebhookOutcome", "handle_gateway_webhook"]

# Fin del archivo backend/app/modules/payments/facades/webhooks/handler.py
