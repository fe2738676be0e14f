# -*- coding: utf-8 -*-
"""
Tests de los jobs programados: cada uno abre su propia sesión y confirma.
"""

from datetime import date, timedelta

from app.modules.billing.credits import CreditAccountStatus, CreditTxReason
from app.modules.billing.cycles import BillStatus, cycle_window_for
from app.modules.billing.pricing import SlabBand
from app.modules.billing.jobs import (
    CYCLE_GENERATION_JOB_ID,
    ORDER_EXPIRY_JOB_ID,
    OVERDUE_SWEEP_JOB_ID,
    TRIAL_EXPIRY_JOB_ID,
    register_billing_jobs,
    run_cycle_generation,
    run_order_expiry,
    run_overdue_sweep,
    run_trial_expiry,
)
from app.shared.scheduler import SchedulerService
from app.shared.utils.datetime_helpers import utcnow

MESS = "mess-jobs"


async def test_cycle_generation_and_overdue_sweep_commit(session_factory, services, members):
    async with session_factory() as session:
        await services.slabs.replace_slabs(session, [SlabBand(1, None, 100)], actor="test")
        await members(session, MESS, 5)
        await services.ledger.post(session, MESS, 40, CreditTxReason.PURCHASE, "gtx-1")
        await session.commit()

    summary = await run_cycle_generation(session_factory, services, today=date(2026, 3, 18))
    assert summary.created == 1

    marked = await run_overdue_sweep(session_factory, services, today=date(2026, 3, 20))
    assert marked == 1

    async with session_factory() as session:
        bill = await services.cycles.find_bill(session, MESS, cycle_window_for(date(2026, 3, 18), "month"))
        assert bill.status == BillStatus.OVERDUE
        account = await services.accounts.get_account(session, MESS)
        assert account.status == CreditAccountStatus.SUSPENDED


async def test_trial_expiry_job(session_factory, services):
    now = utcnow()
    async with session_factory() as session:
        await services.trials.activate(session, MESS, now=now)
        await session.commit()

    assert await run_trial_expiry(session_factory, services, now=now + timedelta(days=8)) == 1

    async with session_factory() as session:
        account = await services.accounts.get_account(session, MESS)
        assert account.status == CreditAccountStatus.ACTIVE


async def test_order_expiry_job(session_factory, services):
    now = utcnow()
    async with session_factory() as session:
        await services.reconciliation.create_order(session, MESS, requested_credits=100, now=now)
        await session.commit()

    assert await run_order_expiry(session_factory, services, now=now + timedelta(minutes=31)) == 1


async def test_register_billing_jobs(settings, session_factory, services):
    scheduler = SchedulerService()

    job_ids = register_billing_jobs(scheduler, settings, session_factory, services)

    assert job_ids == [
        OVERDUE_SWEEP_JOB_ID,
        CYCLE_GENERATION_JOB_ID,
        ORDER_EXPIRY_JOB_ID,
        TRIAL_EXPIRY_JOB_ID,
    ]
    assert {job["id"] for job in scheduler.get_jobs()} == set(job_ids)
    assert scheduler.is_running is False
