# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/routes/mess_owner_routes.py

Rutas del dueño del comedor. El comedor se toma siempre del token
(Principal.mess_id); ningún endpoint acepta mess_id en el body o query.

Endpoints:
- GET  /billing/account
- PUT  /billing/account/auto-renewal
- PUT  /billing/account/low-balance-threshold
- GET  /billing/account/low-balance
- GET  /billing/transactions
- GET  /billing/usage
- GET  /billing/plans
- GET  /billing/pricing/quote
- GET  /billing/trial/eligibility
- POST /billing/trial/activate
- GET  /billing/bills
- GET  /billing/bills/preview
- POST /billing/bills/generate
- GET  /billing/bills/{bill_id}
- POST /billing/bills/{bill_id}/pay
- POST /billing/leave-adjustments
- POST /billing/leave-adjustments/{adjustment_id}/apply
- POST /billing/leave-adjustments/{adjustment_id}/revoke

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import get_async_session
from app.modules.auth import Principal, require_mess_owner
from app.modules.billing.container import BillingServices, get_billing_services
from app.modules.billing.credits import CreditTxReason
from app.modules.billing.cycles import Bill, BillStatus
from app.modules.billing.errors import (
    AlreadyApplied,
    AlreadyUsed,
    BillNotFound,
    InsufficientCredits,
    LeaveAdjustmentNotFound,
)
from app.modules.billing.leave import LeaveAdjustment
from app.modules.billing.schemas import (
    AccountSummaryResponse,
    AutoRenewalRequest,
    BillOut,
    BillPreviewResponse,
    CostQuoteResponse,
    GenerateBillRequest,
    LeaveAdjustmentOut,
    LeaveAdjustmentRequest,
    LeaveApplyResponse,
    LeaveRevokeRequest,
    LowBalanceResponse,
    LowBalanceThresholdRequest,
    PlanOut,
    TransactionOut,
    TransactionsPageResponse,
    TrialActivationResponse,
    TrialEligibilityResponse,
    TrialRecordOut,
    UsageReportResponse,
)

router = APIRouter(tags=["billing"])


async def _owned_bill(services: BillingServices, session: AsyncSession, bill_id: int, mess_id: str) -> Bill:
    bill = await services.cycles.get_bill(session, bill_id)
    if bill.mess_id != mess_id:
        raise BillNotFound(f"Bill {bill_id} not found", bill_id=bill_id)
    return bill


async def _owned_adjustment(
    services: BillingServices,
    session: AsyncSession,
    adjustment_id: int,
    mess_id: str,
) -> LeaveAdjustment:
    adjustment = await services.leave.get(session, adjustment_id)
    if adjustment.mess_id != mess_id:
        raise LeaveAdjustmentNotFound(
            f"Leave adjustment {adjustment_id} not found",
            adjustment_id=adjustment_id,
        )
    return adjustment


# ---------------------------------------------------------------------------
# Cuenta
# ---------------------------------------------------------------------------
@router.get("/account", response_model=AccountSummaryResponse)
async def get_account_summary(
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    account = await services.accounts.get_or_open_account(session, principal.mess_id)
    await session.commit()
    return account


@router.put("/account/auto-renewal", response_model=AccountSummaryResponse)
async def set_auto_renewal(
    payload: AutoRenewalRequest,
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    account = await services.cycles.toggle_auto_renewal(session, principal.mess_id, payload.enabled)
    await session.commit()
    return account


@router.put("/account/low-balance-threshold", response_model=AccountSummaryResponse)
async def set_low_balance_threshold(
    payload: LowBalanceThresholdRequest,
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    account = await services.accounts.set_low_balance_threshold(session, principal.mess_id, payload.threshold)
    await session.commit()
    return account


@router.get("/account/low-balance", response_model=LowBalanceResponse)
async def get_low_balance(
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """Aviso de saldo bajo y ciclos estimados restantes al costo actual."""
    result = await services.reports.low_balance(session, principal.mess_id)
    await session.commit()
    return LowBalanceResponse.model_validate(result)


# ---------------------------------------------------------------------------
# Historial y uso
# ---------------------------------------------------------------------------
@router.get("/transactions", response_model=TransactionsPageResponse)
async def list_transactions(
    reason: Optional[CreditTxReason] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    page = await services.reports.transactions_page(
        session, principal.mess_id, reason=reason, limit=limit, offset=offset
    )
    await session.commit()
    return TransactionsPageResponse(
        items=[TransactionOut.model_validate(tx) for tx in page.items],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
        has_more=page.has_more,
    )


@router.get("/usage", response_model=UsageReportResponse)
async def get_usage_report(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    report = await services.reports.usage_report(session, principal.mess_id, start=start, end=end)
    await session.commit()
    return UsageReportResponse.model_validate(report)


# ---------------------------------------------------------------------------
# Catálogo y precios
# ---------------------------------------------------------------------------
@router.get("/plans", response_model=List[PlanOut])
async def list_plans(
    _: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    return await services.catalog.list_active_plans(session)


@router.get("/pricing/quote", response_model=CostQuoteResponse)
async def quote_cycle_cost(
    active_user_count: Optional[int] = Query(None, ge=0),
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """
    Costo del ciclo para el conteo dado (o el actual) y cuánto sube al
    agregar un miembro más.
    """
    if active_user_count is None:
        active_user_count = await services.cycles.count_active_users(session, principal.mess_id)
    engine = await services.slabs.load_engine(session)
    return CostQuoteResponse(
        active_user_count=active_user_count,
        cycle_cost=engine.resolve_cost(active_user_count),
        marginal_cost=engine.marginal_cost(active_user_count),
    )


# ---------------------------------------------------------------------------
# Prueba gratuita
# ---------------------------------------------------------------------------
@router.get("/trial/eligibility", response_model=TrialEligibilityResponse)
async def get_trial_eligibility(
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    eligibility = await services.trials.check_eligibility(session, principal.mess_id)
    return TrialEligibilityResponse.model_validate(eligibility)


@router.post("/trial/activate", response_model=TrialActivationResponse)
async def activate_trial(
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """
    Activa la prueba gratuita. Un segundo intento responde 200 con
    already_used=true y no otorga créditos.
    """
    try:
        record = await services.trials.activate(session, principal.mess_id)
        already_used = False
    except AlreadyUsed as exc:
        record = exc.record
        already_used = True

    account = await services.accounts.get_or_open_account(session, principal.mess_id)
    await session.commit()
    return TrialActivationResponse(
        trial=TrialRecordOut.model_validate(record) if record is not None else None,
        already_used=already_used,
        balance=account.balance,
    )


# ---------------------------------------------------------------------------
# Facturas
# ---------------------------------------------------------------------------
@router.get("/bills", response_model=List[BillOut])
async def list_bills(
    bill_status: Optional[BillStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    return await services.cycles.list_bills(
        session, principal.mess_id, status=bill_status, limit=limit, offset=offset
    )


@router.get("/bills/preview", response_model=BillPreviewResponse)
async def preview_bill(
    cycle_date: Optional[date] = Query(None),
    active_user_count: Optional[int] = Query(None, ge=0),
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """Cálculo de la factura del ciclo sin generarla ni cobrarla."""
    account = await services.accounts.get_or_open_account(session, principal.mess_id)
    preview = await services.cycles.preview(
        session,
        principal.mess_id,
        window=services.cycles.window_for(account, cycle_date),
        active_user_count=active_user_count,
    )
    await session.commit()
    return BillPreviewResponse.model_validate(preview)


@router.post("/bills/generate", response_model=BillOut)
async def generate_bill(
    payload: GenerateBillRequest,
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """
    Genera (idempotente) la factura del ciclo vigente y la cobra si la
    renovación automática está activa y el saldo alcanza.
    """
    account = await services.accounts.get_or_open_account(session, principal.mess_id)
    bill = await services.cycles.generate(
        session,
        principal.mess_id,
        services.cycles.window_for(account, payload.cycle_date),
        active_user_count=payload.active_user_count,
    )
    await session.commit()
    return bill


@router.get("/bills/{bill_id}", response_model=BillOut)
async def get_bill(
    bill_id: int,
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    return await _owned_bill(services, session, bill_id, principal.mess_id)


@router.post("/bills/{bill_id}/pay", response_model=BillOut)
async def pay_bill(
    bill_id: int,
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """
    Reintenta el cobro de una factura pending/overdue.
    Responde 402 si el saldo sigue sin alcanzar.
    """
    await _owned_bill(services, session, bill_id, principal.mess_id)
    try:
        bill = await services.cycles.retry_debit(session, bill_id)
    except InsufficientCredits:
        # Persistir el motivo registrado en la factura
        await session.commit()
        raise
    await session.commit()
    return bill


# ---------------------------------------------------------------------------
# Permisos (leave)
# ---------------------------------------------------------------------------
@router.post(
    "/leave-adjustments",
    response_model=LeaveAdjustmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def compute_leave_adjustment(
    payload: LeaveAdjustmentRequest,
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """
    Calcula (una sola vez por solicitud de permiso) el reembolso de un
    permiso aprobado en el módulo de membresías.
    """
    adjustment = await services.cycles.compute_leave_adjustment(
        session, principal.mess_id, payload.leave_request_id
    )
    await session.commit()
    return adjustment


@router.post("/leave-adjustments/{adjustment_id}/apply", response_model=LeaveApplyResponse)
async def apply_leave_adjustment(
    adjustment_id: int,
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    """Acredita el reembolso. Reintentos responden 200 con already_applied=true."""
    await _owned_adjustment(services, session, adjustment_id, principal.mess_id)
    try:
        transaction = await services.leave.apply(session, adjustment_id)
        already_applied = False
    except AlreadyApplied as exc:
        transaction = exc.transaction
        already_applied = True

    adjustment = await services.leave.get(session, adjustment_id)
    await session.commit()
    return LeaveApplyResponse(
        adjustment=LeaveAdjustmentOut.model_validate(adjustment),
        transaction=TransactionOut.model_validate(transaction) if transaction is not None else None,
        already_applied=already_applied,
    )


@router.post("/leave-adjustments/{adjustment_id}/revoke", response_model=LeaveAdjustmentOut)
async def revoke_leave_adjustment(
    adjustment_id: int,
    payload: LeaveRevokeRequest,
    principal: Principal = Depends(require_mess_owner),
    services: BillingServices = Depends(get_billing_services),
    session: AsyncSession = Depends(get_async_session),
):
    await _owned_adjustment(services, session, adjustment_id, principal.mess_id)
    adjustment = await services.leave.revoke(session, adjustment_id, payload.leave_status)
    await session.commit()
    return adjustment


# Fin del archivo backend/app/modules/billing/routes/mess_owner_routes.py
