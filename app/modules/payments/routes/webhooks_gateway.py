# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/webhooks_gateway.py

Webhook endpoint de la pasarela de pagos.

Endpoint:
- POST /payments/webhooks/gateway

Respuestas:
- 200: verificado, fallido, duplicado o rechazado por orden vencida
- 401: firma inválida (sin efectos)
- 404: orden desconocida
- 409: la orden ya es terminal por otra vía

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import get_async_session
from app.modules.billing.container import BillingServices, get_billing_services
from app.modules.payments.facades import handle_gateway_webhook
from app.modules.payments.schemas import GatewayWebhookPayload, WebhookAckResponse

router = APIRouter(
    prefix="/webhooks",
    tags=["payments:webhooks"],
)


@router.post(
    "/gateway",
    response_model=WebhookAckResponse,
    status_code=status.HTTP_200_OK,
)
async def gateway_webhook(
    payload: GatewayWebhookPayload,
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
) -> WebhookAckResponse:
    """
    Webhook firmado (HMAC-SHA256) de la pasarela. Idempotente por
    gatewayTransactionId: los reintentos devuelven el mismo resultado.
    """
    outcome = await handle_gateway_webhook(
        session,
        services.reconciliation,
        order_ref=payload.order_ref,
        gateway_transaction_id=payload.gateway_transaction_id,
        status=payload.status,
        signature=payload.signature,
        failure_reason=payload.failure_reason,
    )
    return WebhookAckResponse(
        status=outcome.status,
        order_id=outcome.order_id,
        verification_id=outcome.verification_id,
        duplicate=outcome.duplicate,
    )


# Fin del archivo backend/app/modules/payments/routes/webhooks_gateway.py
