# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/routes/internal_routes.py

Disparo manual de los jobs de facturación (cron externo, operación).
Protegido con el token de servicio interno (APP_SERVICE_TOKEN).

Endpoints:
- POST /internal/billing/jobs/overdue-sweep
- POST /internal/billing/jobs/cycle-generation
- POST /internal/billing/jobs/order-expiry
- POST /internal/billing/jobs/trial-expiry

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

import dataclasses
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.shared.internal_auth import InternalServiceAuth
from app.modules.billing.container import BillingServices, get_billing_services
from app.modules.billing.jobs import (
    CYCLE_GENERATION_JOB_ID,
    ORDER_EXPIRY_JOB_ID,
    OVERDUE_SWEEP_JOB_ID,
    TRIAL_EXPIRY_JOB_ID,
    run_cycle_generation,
    run_order_expiry,
    run_overdue_sweep,
    run_trial_expiry,
)
from app.modules.billing.schemas import JobRunResponse

router = APIRouter(prefix="/jobs", tags=["internal:billing"])


@router.post("/overdue-sweep", response_model=JobRunResponse)
async def trigger_overdue_sweep(
    request: Request,
    _auth: InternalServiceAuth,
    as_of: Optional[date] = Query(None, description="Fecha de corte (hoy por defecto)"),
    services: BillingServices = Depends(get_billing_services),
):
    marked = await run_overdue_sweep(request.app.state.session_factory, services, today=as_of)
    return JobRunResponse(job_id=OVERDUE_SWEEP_JOB_ID, result={"marked_overdue": marked})


@router.post("/cycle-generation", response_model=JobRunResponse)
async def trigger_cycle_generation(
    request: Request,
    _auth: InternalServiceAuth,
    as_of: Optional[date] = Query(None),
    services: BillingServices = Depends(get_billing_services),
):
    summary = await run_cycle_generation(request.app.state.session_factory, services, today=as_of)
    return JobRunResponse(job_id=CYCLE_GENERATION_JOB_ID, result=dataclasses.asdict(summary))


@router.post("/order-expiry", response_model=JobRunResponse)
async def trigger_order_expiry(
    request: Request,
    _auth: InternalServiceAuth,
    as_of: Optional[datetime] = Query(None),
    services: BillingServices = Depends(get_billing_services),
):
    expired = await run_order_expiry(request.app.state.session_factory, services, now=as_of)
    return JobRunResponse(job_id=ORDER_EXPIRY_JOB_ID, result={"expired_orders": expired})


@router.post("/trial-expiry", response_model=JobRunResponse)
async def trigger_trial_expiry(
    request: Request,
    _auth: InternalServiceAuth,
    as_of: Optional[datetime] = Query(None),
    services: BillingServices = Depends(get_billing_services),
):
    expired = await run_trial_expiry(request.app.state.session_factory, services, now=as_of)
    return JobRunResponse(job_id=TRIAL_EXPIRY_JOB_ID, result={"expired_trials": expired})


# Fin del archivo backend/app/modules/billing/routes/internal_routes.py
