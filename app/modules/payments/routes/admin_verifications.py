# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/admin_verifications.py

Revisión administrativa de comprobantes de pago manuales.

Endpoints:
- GET  /admin/billing/verifications/pending
- POST /admin/billing/verifications/{verification_id}/approve
- POST /admin/billing/verifications/{verification_id}/reject

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import get_async_session
from app.modules.auth import Principal, require_admin
from app.modules.billing.container import BillingServices, get_billing_services
from app.modules.payments.schemas import PaymentVerificationOut, RejectProofRequest

router = APIRouter(
    prefix="/verifications",
    tags=["admin:payments"],
)


@router.get("/pending", response_model=List[PaymentVerificationOut])
async def list_pending_proofs(
    _: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    return await services.reconciliation.list_pending_manual(session)


@router.post("/{verification_id}/approve", response_model=PaymentVerificationOut)
async def approve_proof(
    verification_id: int,
    admin: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """Aprueba el comprobante y acredita los créditos de la orden."""
    verification = await services.reconciliation.approve_manual(
        session, verification_id, reviewer=admin.user_id
    )
    await session.commit()
    return verification


@router.post("/{verification_id}/reject", response_model=PaymentVerificationOut)
async def reject_proof(
    verification_id: int,
    payload: RejectProofRequest,
    admin: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    verification = await services.reconciliation.reject_manual(
        session, verification_id, reviewer=admin.user_id, reason=payload.reason
    )
    await session.commit()
    return verification


# Fin del archivo backend/app/modules/payments/routes/admin_verifications.py
