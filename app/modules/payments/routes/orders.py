# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/orders.py

Órdenes de compra de créditos del dueño del comedor.

Endpoints:
- POST /payments/orders
- GET  /payments/orders
- GET  /payments/orders/{order_id}
- POST /payments/orders/{order_id}/manual-proof

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import get_async_session
from app.modules.auth import Principal, require_mess_owner
from app.modules.billing.container import BillingServices, get_billing_services
from app.modules.payments.errors import OrderExpired
from app.modules.payments.schemas import (
    ManualProofRequest,
    PaymentOrderCreateRequest,
    PaymentOrderOut,
    PaymentVerificationOut,
)
from app.modules.payments.services import ManualProof

router = APIRouter(prefix="/orders", tags=["payments:orders"])


@router.post("", response_model=PaymentOrderOut, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: PaymentOrderCreateRequest,
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """
    Abre una orden en la pasarela. Los créditos se acreditan solo cuando
    llega la verificación (webhook firmado o comprobante aprobado).
    """
    order = await services.reconciliation.create_order(
        session,
        principal.mess_id,
        plan_id=payload.plan_id,
        requested_credits=payload.credits,
    )
    await session.commit()
    return order


@router.get("", response_model=List[PaymentOrderOut])
async def list_orders(
    limit: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    return await services.reconciliation.list_orders(session, principal.mess_id, limit=limit)


@router.get("/{order_id}", response_model=PaymentOrderOut)
async def get_order(
    order_id: int,
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """Estado de la orden para polling del frontend."""
    return await services.reconciliation.get_order(session, order_id, mess_id=principal.mess_id)


@router.post(
    "/{order_id}/manual-proof",
    response_model=PaymentVerificationOut,
    status_code=status.HTTP_202_ACCEPTED,
)
async def submit_manual_proof(
    order_id: int,
    payload: ManualProofRequest,
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """
    Registra un comprobante de pago manual; queda pendiente de revisión.
    """
    # Solo el dueño de la orden puede adjuntar comprobantes
    await services.reconciliation.get_order(session, order_id, mess_id=principal.mess_id)
    try:
        verification = await services.reconciliation.verify(
            session,
            order_id,
            payload.gateway_transaction_id,
            ManualProof(proof_reference=payload.proof_reference, submitted_by=principal.user_id),
        )
    except OrderExpired:
        # La orden queda persistida como expired aunque se responda 409
        await session.commit()
        raise
    await session.commit()
    return verification


# Fin del archivo backend/app/modules/payments/routes/orders.py
