# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/jobs/billing_jobs.py

Jobs programados de facturación.

- overdue sweep (diario): pending vencidas -> overdue
- cycle generation (diario): factura de la ventana vigente por cuenta;
  generate es idempotente, así que la frecuencia puede ser mayor que la
  duración del ciclo
- order expiry (cada 5 min): órdenes de pago vencidas -> expired
- trial expiry (cada hora): cierre de pruebas gratuitas vencidas

Cada ejecución abre su propia sesión (commit al final, rollback si falla).
Los mismos callables se usan desde los endpoints internos.

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.shared.config.settings_base import BaseAppSettings
from app.shared.database.database import session_scope
from app.shared.scheduler import SchedulerService
from app.modules.billing.container import BillingServices
from app.modules.billing.cycles import CycleRunSummary
from app.modules.billing.metrics import JOB_RUNS

logger = logging.getLogger(__name__)

OVERDUE_SWEEP_JOB_ID = "billing_overdue_sweep"
CYCLE_GENERATION_JOB_ID = "billing_cycle_generation"
ORDER_EXPIRY_JOB_ID = "payments_order_expiry"
TRIAL_EXPIRY_JOB_ID = "billing_trial_expiry"

T = TypeVar("T")


async def _run_job(
    job_id: str,
    session_factory: async_sessionmaker[AsyncSession],
    body: Callable[[AsyncSession], Awaitable[T]],
) -> T:
    try:
        async with session_scope(session_factory) as session:
            result = await body(session)
    except Exception:
        JOB_RUNS.labels(job_id, "error").inc()
        logger.exception("Job %s failed", job_id)
        raise
    JOB_RUNS.labels(job_id, "ok").inc()
    logger.info("Job %s finished result=%s", job_id, result)
    return result


async def run_overdue_sweep(
    session_factory: async_sessionmaker[AsyncSession],
    services: BillingServices,
    *,
    today: Optional[date] = None,
) -> int:
    return await _run_job(
        OVERDUE_SWEEP_JOB_ID,
        session_factory,
        lambda session: services.cycles.mark_overdue(session, today=today),
    )


async def run_cycle_generation(
    session_factory: async_sessionmaker[AsyncSession],
    services: BillingServices,
    *,
    today: Optional[date] = None,
) -> CycleRunSummary:
    return await _run_job(
        CYCLE_GENERATION_JOB_ID,
        session_factory,
        lambda session: services.cycles.generate_due_cycles(session, today=today),
    )


async def run_order_expiry(
    session_factory: async_sessionmaker[AsyncSession],
    services: BillingServices,
    *,
    now: Optional[datetime] = None,
) -> int:
    return await _run_job(
        ORDER_EXPIRY_JOB_ID,
        session_factory,
        lambda session: services.reconciliation.expire_orders(session, now=now),
    )


async def run_trial_expiry(
    session_factory: async_sessionmaker[AsyncSession],
    services: BillingServices,
    *,
    now: Optional[datetime] = None,
) -> int:
    return await _run_job(
        TRIAL_EXPIRY_JOB_ID,
        session_factory,
        lambda session: services.trials.expire_trials(session, now=now),
    )


def register_billing_jobs(
    scheduler: SchedulerService,
    settings: BaseAppSettings,
    session_factory: async_sessionmaker[AsyncSession],
    services: BillingServices,
) -> list[str]:
    """
    Registra los cuatro jobs en el scheduler de la aplicación.

    Returns:
        IDs de los jobs registrados
    """
    deps: dict[str, Any] = {"session_factory": session_factory, "services": services}
    job_ids = [
        scheduler.add_cron_job(run_overdue_sweep, OVERDUE_SWEEP_JOB_ID, settings.overdue_sweep_cron, **deps),
        scheduler.add_cron_job(
            run_cycle_generation, CYCLE_GENERATION_JOB_ID, settings.cycle_generation_cron, **deps
        ),
        scheduler.add_interval_job(
            run_order_expiry, ORDER_EXPIRY_JOB_ID, minutes=settings.order_expiry_interval_minutes, **deps
        ),
        scheduler.add_interval_job(
            run_trial_expiry, TRIAL_EXPIRY_JOB_ID, minutes=settings.trial_expiry_interval_minutes, **deps
        ),
    ]
    logger.info("Billing jobs registered: %s", ", ".join(job_ids))
    return job_ids


__all__ = [
    "OVERDUE_SWEEP_JOB_ID",
    "CYCLE_GENERATION_JOB_ID",
    "ORDER_EXPIRY_JOB_ID",
    "TRIAL_EXPIRY_JOB_ID",
    "run_overdue_sweep",
    "run_cycle_generation",
    "run_order_expiry",
    "run_trial_expiry",
    "register_billing_jobs",
]
