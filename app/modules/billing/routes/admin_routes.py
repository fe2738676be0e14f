# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/routes/admin_routes.py

Rutas administrativas de facturación (rol admin).

Endpoints:
- GET    /admin/billing/slabs
- POST   /admin/billing/slabs
- PUT    /admin/billing/slabs
- PATCH  /admin/billing/slabs/{slab_id}
- DELETE /admin/billing/slabs/{slab_id}
- GET    /admin/billing/plans
- POST   /admin/billing/plans
- PATCH  /admin/billing/plans/{plan_id}
- DELETE /admin/billing/plans/{plan_id}
- POST   /admin/billing/adjustments
- GET    /admin/billing/accounts/{mess_id}/audit
- GET    /admin/billing/accounts/{mess_id}/bills
- PUT    /admin/billing/accounts/{mess_id}/leave-cap
- POST   /admin/billing/bills/{bill_id}/waive
- GET    /admin/billing/analytics

Toda mutación queda registrada en el logger de auditoría por el servicio
correspondiente (actor = sub del token).

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import get_async_session
from app.modules.auth import Principal, require_admin
from app.modules.billing.container import BillingServices, get_billing_services
from app.modules.billing.cycles import BillStatus
from app.modules.billing.pricing import SlabBand
from app.modules.billing.schemas import (
    AccountSummaryResponse,
    BalanceAuditResponse,
    BillingAnalyticsResponse,
    BillOut,
    CreditAdjustmentRequest,
    CreditAdjustmentResponse,
    LeaveCapRequest,
    PlanCreateRequest,
    PlanOut,
    PlanUpdateRequest,
    SlabIn,
    SlabOut,
    SlabReplaceRequest,
    SlabUpdateRequest,
    TransactionOut,
    WaiveBillRequest,
)

router = APIRouter(tags=["admin:billing"])


# ---------------------------------------------------------------------------
# Slabs
# ---------------------------------------------------------------------------
@router.get("/slabs", response_model=List[SlabOut])
async def list_slabs(
    include_inactive: bool = Query(False),
    _: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    return await services.slabs.list_slabs(session, include_inactive=include_inactive)


@router.post("/slabs", response_model=SlabOut, status_code=status.HTTP_201_CREATED)
async def create_slab(
    payload: SlabIn,
    admin: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """Agrega un slab; la tabla activa debe seguir particionando [1, ∞)."""
    slab = await services.slabs.create_slab(
        session,
        min_users=payload.min_users,
        max_users=payload.max_users,
        cycle_cost=payload.cycle_cost,
        actor=admin.user_id,
    )
    await session.commit()
    return slab


@router.put("/slabs", response_model=List[SlabOut])
async def replace_slabs(
    payload: SlabReplaceRequest,
    admin: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """Sustituye la tabla de precios completa en una sola transacción."""
    slabs = await services.slabs.replace_slabs(
        session,
        [SlabBand(min_users=s.min_users, max_users=s.max_users, cycle_cost=s.cycle_cost) for s in payload.slabs],
        actor=admin.user_id,
    )
    await session.commit()
    return slabs


@router.patch("/slabs/{slab_id}", response_model=SlabOut)
async def update_slab(
    slab_id: int,
    payload: SlabUpdateRequest,
    admin: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    slab = await services.slabs.update_slab(
        session,
        slab_id,
        min_users=payload.min_users,
        max_users=payload.max_users,
        clear_max_users=payload.clear_max_users,
        cycle_cost=payload.cycle_cost,
        actor=admin.user_id,
    )
    await session.commit()
    return slab


@router.delete("/slabs/{slab_id}", response_model=SlabOut)
async def deactivate_slab(
    slab_id: int,
    admin: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    slab = await services.slabs.deactivate_slab(session, slab_id, actor=admin.user_id)
    await session.commit()
    return slab


# ---------------------------------------------------------------------------
# Planes de compra
# ---------------------------------------------------------------------------
@router.get("/plans", response_model=List[PlanOut])
async def list_all_plans(
    _: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    return await services.catalog.list_plans(session)


@router.post("/plans", response_model=PlanOut, status_code=status.HTTP_201_CREATED)
async def create_plan(
    payload: PlanCreateRequest,
    admin: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    plan = await services.catalog.create_plan(session, actor=admin.user_id, **payload.model_dump())
    await session.commit()
    return plan


@router.patch("/plans/{plan_id}", response_model=PlanOut)
async def update_plan(
    plan_id: int,
    payload: PlanUpdateRequest,
    admin: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    plan = await services.catalog.update_plan(
        session, plan_id, actor=admin.user_id, **payload.model_dump(exclude_unset=True)
    )
    await session.commit()
    return plan


@router.delete("/plans/{plan_id}", response_model=PlanOut)
async def deactivate_plan(
    plan_id: int,
    admin: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """Baja lógica: el plan deja de ofrecerse pero conserva su historial."""
    plan = await services.catalog.deactivate_plan(session, plan_id, actor=admin.user_id)
    await session.commit()
    return plan


# ---------------------------------------------------------------------------
# Cuentas, ajustes y facturas
# ---------------------------------------------------------------------------
@router.post("/adjustments", response_model=CreditAdjustmentResponse)
async def adjust_credits(
    payload: CreditAdjustmentRequest,
    admin: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """
    Ajuste directo del saldo. idempotency_key evita aplicarlo dos veces.
    """
    result = await services.reports.adjust(
        session,
        payload.mess_id,
        payload.delta,
        idempotency_key=payload.idempotency_key,
        description=payload.description,
        actor=admin.user_id,
    )
    await session.commit()
    return CreditAdjustmentResponse(
        transaction=TransactionOut.model_validate(result.transaction),
        balance=result.balance,
        created=result.created,
    )


@router.get("/accounts/{mess_id}/audit", response_model=BalanceAuditResponse)
async def audit_account(
    mess_id: str,
    _: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """Compara el saldo cacheado contra la suma del ledger."""
    audit = await services.ledger.audit(session, mess_id)
    return BalanceAuditResponse.model_validate(audit)


@router.get("/accounts/{mess_id}/bills", response_model=List[BillOut])
async def list_account_bills(
    mess_id: str,
    bill_status: Optional[BillStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    _: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    return await services.cycles.list_bills(session, mess_id, status=bill_status, limit=limit, offset=offset)


@router.put("/accounts/{mess_id}/leave-cap", response_model=AccountSummaryResponse)
async def set_leave_cap(
    mess_id: str,
    payload: LeaveCapRequest,
    admin: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """Tope de días de permiso reembolsables por miembro y ciclo del comedor."""
    account = await services.accounts.set_max_leave_days(
        session, mess_id, payload.max_leave_days_per_cycle, actor=admin.user_id
    )
    await session.commit()
    return account


@router.post("/bills/{bill_id}/waive", response_model=BillOut)
async def waive_bill(
    bill_id: int,
    payload: WaiveBillRequest,
    admin: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    bill = await services.cycles.waive(session, bill_id, actor=admin.user_id, reason=payload.reason)
    await session.commit()
    return bill


@router.get("/analytics", response_model=BillingAnalyticsResponse)
async def get_analytics(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    _: Principal = Depends(require_admin),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    analytics = await services.reports.analytics(session, start=start, end=end)
    return BillingAnalyticsResponse.model_validate(analytics)


# Fin del archivo backend/app/modules/billing/routes/admin_routes.py
