# -*- coding: utf-8 -*-
"""
Tests del procesador de ciclos: generación idempotente, liquidación,
descuento de permisos, morosidad y waivers.
"""

from datetime import date

import pytest

from app.modules.billing.credits import CreditAccountStatus, CreditTxReason
from app.modules.billing.cycles import BillStatus, BillStatusReason, cycle_window_for
from app.modules.billing.errors import InsufficientCredits, InvalidBillTransition, NoSlabMatch
from app.modules.billing.leave import LeavePolicy, LeaveRequest, LeaveRequestStatus

MESS = "mess-cycles"
MARCH = cycle_window_for(date(2026, 3, 18), "month")


async def _fund(session, services, amount, ref="gtx-fund"):
    await services.ledger.post(session, MESS, amount, CreditTxReason.PURCHASE, ref)


async def _approved_leave(session, services, *, cycle_cost, leave_id="leave-1"):
    return await services.leave.compute_adjustment(
        session,
        LeaveRequest(
            leave_request_id=leave_id,
            membership_id="member-1",
            mess_id=MESS,
            start_date=date(2026, 3, 10),
            end_date=date(2026, 3, 12),
            status=LeaveRequestStatus.APPROVED,
        ),
        LeavePolicy(
            cycle_cost=cycle_cost,
            cycle_start=MARCH.start,
            cycle_end=MARCH.end,
            max_leave_days_per_cycle=10,
        ),
    )


async def test_generate_debits_when_auto_renewal_and_balance(session, services, priced, members):
    await members(session, MESS, 5)
    await _fund(session, services, 500)

    bill = await services.cycles.generate(session, MESS, MARCH)

    assert bill.status == BillStatus.PAID
    assert bill.active_user_count == 5
    assert bill.slab_cost == 100
    assert bill.net_amount == 100
    assert bill.due_date == date(2026, 3, 8)
    assert bill.debit_transaction_id is not None
    assert await services.ledger.balance_of(session, MESS) == 400


async def test_generate_is_idempotent_per_window(session, services, priced, members):
    await members(session, MESS, 5)
    await _fund(session, services, 500)

    first = await services.cycles.generate(session, MESS, MARCH)
    second = await services.cycles.generate(session, MESS, MARCH)

    assert second.id == first.id
    debits = [tx async for tx in services.ledger.history(session, MESS, reasons=[CreditTxReason.BILL_DEBIT])]
    assert len(debits) == 1
    assert await services.ledger.balance_of(session, MESS) == 400


async def test_inactive_members_are_not_billed(session, services, priced, members):
    await members(session, MESS, 10)
    await members(session, "other-mess", 30)
    await members(session, MESS + "-x", 3, status="left")

    assert await services.cycles.count_active_users(session, MESS) == 10


async def test_insufficient_balance_leaves_bill_pending(session, services, priced, members):
    await members(session, MESS, 12)
    await _fund(session, services, 150)

    bill = await services.cycles.generate(session, MESS, MARCH)

    assert bill.status == BillStatus.PENDING
    assert bill.status_reason == BillStatusReason.INSUFFICIENT_CREDITS.value
    assert bill.net_amount == 200
    assert await services.ledger.balance_of(session, MESS) == 150


async def test_disabled_auto_renewal_leaves_bill_pending(session, services, priced, members):
    await members(session, MESS, 5)
    await _fund(session, services, 500)
    await services.accounts.toggle_auto_renewal(session, MESS, False)

    bill = await services.cycles.generate(session, MESS, MARCH)

    assert bill.status == BillStatus.PENDING
    assert bill.status_reason == BillStatusReason.AUTO_RENEWAL_DISABLED.value
    assert await services.ledger.balance_of(session, MESS) == 500


async def test_bill_is_waived_during_active_trial(session, services, priced, members):
    await members(session, MESS, 5)
    await services.trials.activate(session, MESS)

    bill = await services.cycles.generate(session, MESS, MARCH)

    assert bill.status == BillStatus.WAIVED
    assert bill.status_reason == BillStatusReason.TRIAL_ACTIVE.value
    assert await services.ledger.balance_of(session, MESS) == 100


async def test_zero_users_cost_nothing(session, services, priced):
    bill = await services.cycles.generate(session, MESS, MARCH)

    assert bill.slab_cost == 0
    assert bill.status == BillStatus.PAID
    assert bill.debit_transaction_id is None


async def test_generate_without_matching_slab_raises(session, services, members):
    await members(session, MESS, 5)
    with pytest.raises(NoSlabMatch):
        await services.cycles.generate(session, MESS, MARCH)


async def test_leave_adjustments_are_deducted_and_consumed(session, services, priced, members):
    await members(session, MESS, 5)
    await _fund(session, services, 500)
    # 310 / 31 = 10 por día, 3 días -> 30
    adjustment = await _approved_leave(session, services, cycle_cost=310)

    bill = await services.cycles.generate(session, MESS, MARCH)

    assert bill.leave_adjustment_total == 30
    assert bill.net_amount == 70
    assert adjustment.applied is True
    assert adjustment.bill_id == bill.id
    assert await services.ledger.balance_of(session, MESS) == 430
    assert await services.leave.list_pending_for_window(session, MESS, MARCH.start, MARCH.end) == []


async def test_leave_consumed_up_to_slab_cost(session, services, priced, members):
    await members(session, MESS, 5)
    # 310 / 31 -> 30; 3100 / 31 -> 300, no cabe en el costo del slab (100)
    small = await _approved_leave(session, services, cycle_cost=310)
    large = await _approved_leave(session, services, cycle_cost=3100, leave_id="leave-2")

    bill = await services.cycles.generate(session, MESS, MARCH)

    assert bill.leave_adjustment_total == 30
    assert bill.net_amount == 70
    assert small.bill_id == bill.id
    assert large.applied is False

    refund = await services.leave.apply(session, large.id)
    assert refund.delta == 300
    assert await services.ledger.balance_of(session, MESS) == 300


async def test_leave_that_does_not_fit_stays_pending(session, services, priced, members):
    await members(session, MESS, 5)
    # 1000 / 31 = 32 por día -> 96; 124 / 31 = 4 -> 12 (no cabe: 108 > 100)
    first = await _approved_leave(session, services, cycle_cost=1000)
    second = await _approved_leave(session, services, cycle_cost=124, leave_id="leave-2")

    bill = await services.cycles.generate(session, MESS, MARCH)

    assert first.applied is True
    assert second.applied is False
    assert bill.leave_adjustment_total == 96
    assert bill.net_amount == 4


async def test_trial_waived_bill_keeps_leave_pending(session, services, priced, members):
    await members(session, MESS, 5)
    await services.trials.activate(session, MESS)
    adjustment = await _approved_leave(session, services, cycle_cost=310)

    bill = await services.cycles.generate(session, MESS, MARCH)

    assert bill.status == BillStatus.WAIVED
    assert bill.leave_adjustment_total == 0
    assert adjustment.applied is False
    assert adjustment.bill_id is None

    await services.leave.apply(session, adjustment.id)
    assert await services.ledger.balance_of(session, MESS) == 100 + 30


async def test_preview_does_not_persist(session, services, priced, members):
    await members(session, MESS, 11)
    await _fund(session, services, 100)

    preview = await services.cycles.preview(session, MESS, window=MARCH)

    assert preview.slab_cost == 200
    assert preview.net_amount == 200
    assert preview.sufficient_balance is False
    assert preview.existing_bill_id is None
    assert await services.cycles.find_bill(session, MESS, MARCH) is None


async def test_mark_overdue_suspends_account(session, services, priced, members):
    await members(session, MESS, 5)
    await _fund(session, services, 50)
    bill = await services.cycles.generate(session, MESS, MARCH)
    account = await services.accounts.get_account(session, MESS)
    await services.accounts.set_status(session, account, CreditAccountStatus.ACTIVE)

    assert await services.cycles.mark_overdue(session, today=date(2026, 3, 8)) == 0
    assert await services.cycles.mark_overdue(session, today=date(2026, 3, 9)) == 1

    assert bill.status == BillStatus.OVERDUE
    assert account.status == CreditAccountStatus.SUSPENDED
    # Sin efecto en el ledger
    assert await services.ledger.balance_of(session, MESS) == 50


async def test_retry_debit_pays_and_reactivates(session, services, priced, members):
    await members(session, MESS, 5)
    await _fund(session, services, 50)
    bill = await services.cycles.generate(session, MESS, MARCH)
    await services.cycles.mark_overdue(session, today=date(2026, 3, 9))

    with pytest.raises(InsufficientCredits):
        await services.cycles.retry_debit(session, bill.id)
    assert bill.status == BillStatus.OVERDUE

    await _fund(session, services, 100, ref="gtx-topup")
    paid = await services.cycles.retry_debit(session, bill.id)

    assert paid.status == BillStatus.PAID
    assert await services.ledger.balance_of(session, MESS) == 50
    account = await services.accounts.get_account(session, MESS)
    assert account.status == CreditAccountStatus.ACTIVE


async def test_waive_pending_bill(session, services, priced, members):
    await members(session, MESS, 5)
    bill = await services.cycles.generate(session, MESS, MARCH)

    waived = await services.cycles.waive(session, bill.id, actor="admin-1", reason="goodwill")

    assert waived.status == BillStatus.WAIVED
    assert waived.waived_by == "admin-1"
    assert waived.status_reason == "goodwill"


async def test_paid_bill_cannot_be_waived(session, services, priced, members):
    await members(session, MESS, 5)
    await _fund(session, services, 500)
    bill = await services.cycles.generate(session, MESS, MARCH)

    with pytest.raises(InvalidBillTransition):
        await services.cycles.waive(session, bill.id, actor="admin-1")


async def test_waived_bill_cannot_be_paid(session, services, priced, members):
    await members(session, MESS, 5)
    bill = await services.cycles.generate(session, MESS, MARCH)
    await services.cycles.waive(session, bill.id, actor="admin-1")

    with pytest.raises(InvalidBillTransition):
        await services.cycles.retry_debit(session, bill.id)


async def test_generate_due_cycles_covers_every_account(session, services, priced, members):
    await members(session, MESS, 5)
    await _fund(session, services, 500)
    await services.accounts.get_or_open_account(session, "empty-mess")

    summary = await services.cycles.generate_due_cycles(session, today=date(2026, 3, 18))
    again = await services.cycles.generate_due_cycles(session, today=date(2026, 3, 18))

    assert (summary.processed, summary.created, summary.failed) == (2, 2, 0)
    assert (again.processed, again.created, again.failed) == (2, 0, 0)
    assert await services.cycles.find_bill(session, MESS, MARCH) is not None


async def test_generate_due_cycles_isolates_failures(session, services, members):
    # Sin slabs: un comedor con usuarios falla, uno vacío cuesta 0
    await members(session, MESS, 5)
    await services.accounts.get_or_open_account(session, MESS)
    await services.accounts.get_or_open_account(session, "empty-mess")

    summary = await services.cycles.generate_due_cycles(session, today=date(2026, 3, 18))

    assert summary.processed == 2
    assert summary.created == 1
    assert summary.failed == 1
