# -*- coding: utf-8 -*-
"""
Tests del ciclo de vida de ajustes por permiso: cálculo, aplicación única
y revocación.
"""

from datetime import date

import pytest

from app.modules.billing.credits import CreditTxReason
from app.modules.billing.cycles import MessMembership, cycle_window_for
from app.modules.billing.errors import AlreadyApplied, InvalidLeaveState, LeaveRequestNotFound
from app.modules.billing.leave import LeavePolicy, LeaveRequest, LeaveRequestStatus, MessLeaveRequest
from app.modules.billing.pricing import SlabBand

MESS = "mess-leave"

# Marzo 2026: 31 días, 10 créditos por día
POLICY = LeavePolicy(
    cycle_cost=310,
    cycle_start=date(2026, 3, 1),
    cycle_end=date(2026, 3, 31),
    max_leave_days_per_cycle=5,
)


def _leave(
    leave_id="leave-1",
    start=date(2026, 3, 10),
    end=date(2026, 3, 12),
    status=LeaveRequestStatus.APPROVED,
    membership_id="member-1",
):
    return LeaveRequest(
        leave_request_id=leave_id,
        membership_id=membership_id,
        mess_id=MESS,
        start_date=start,
        end_date=end,
        status=status,
    )


async def test_compute_adjustment_persists_refund(session, services):
    adjustment = await services.leave.compute_adjustment(session, _leave(), POLICY)

    assert adjustment.id is not None
    assert adjustment.daily_credit_value == 10
    assert adjustment.credited_days == 3
    assert adjustment.refund_amount == 30
    assert adjustment.applied is False


async def test_compute_adjustment_is_idempotent_per_leave_request(session, services):
    first = await services.leave.compute_adjustment(session, _leave(), POLICY)
    second = await services.leave.compute_adjustment(session, _leave(), POLICY)
    assert second.id == first.id


async def test_compute_adjustment_caps_days(session, services):
    adjustment = await services.leave.compute_adjustment(
        session, _leave(start=date(2026, 3, 1), end=date(2026, 3, 20)), POLICY
    )
    assert adjustment.leave_days_in_cycle == 20
    assert adjustment.credited_days == 5
    assert adjustment.refund_amount == 50


@pytest.mark.parametrize(
    "status",
    [LeaveRequestStatus.PENDING, LeaveRequestStatus.REJECTED, LeaveRequestStatus.CANCELLED],
)
async def test_compute_adjustment_requires_approved_leave(session, services, status):
    with pytest.raises(InvalidLeaveState):
        await services.leave.compute_adjustment(session, _leave(status=status), POLICY)


async def test_apply_credits_refund_exactly_once(session, services):
    adjustment = await services.leave.compute_adjustment(session, _leave(), POLICY)

    tx = await services.leave.apply(session, adjustment.id)

    assert tx.delta == 30
    assert tx.reason == CreditTxReason.LEAVE_REFUND
    assert tx.reference_id == str(adjustment.id)
    assert adjustment.applied is True
    assert adjustment.transaction_id == tx.id

    with pytest.raises(AlreadyApplied) as exc:
        await services.leave.apply(session, adjustment.id)

    assert exc.value.transaction.id == tx.id
    assert await services.ledger.balance_of(session, MESS) == 30


async def test_apply_with_zero_refund_records_no_movement(session, services):
    # Permiso completamente fuera del ciclo
    adjustment = await services.leave.compute_adjustment(
        session, _leave(start=date(2026, 4, 2), end=date(2026, 4, 4)), POLICY
    )
    assert adjustment.refund_amount == 0

    assert await services.leave.apply(session, adjustment.id) is None
    assert adjustment.applied is True
    assert await services.ledger.balance_of(session, MESS) == 0


async def test_revoked_adjustment_cannot_be_applied(session, services):
    adjustment = await services.leave.compute_adjustment(session, _leave(), POLICY)
    await services.leave.revoke(session, adjustment.id, LeaveRequestStatus.CANCELLED)

    with pytest.raises(InvalidLeaveState):
        await services.leave.apply(session, adjustment.id)
    assert await services.ledger.balance_of(session, MESS) == 0


async def test_applied_adjustment_cannot_be_revoked(session, services):
    adjustment = await services.leave.compute_adjustment(session, _leave(), POLICY)
    await services.leave.apply(session, adjustment.id)

    with pytest.raises(InvalidLeaveState):
        await services.leave.revoke(session, adjustment.id, LeaveRequestStatus.CANCELLED)


async def test_revoke_rejects_approved_status(session, services):
    adjustment = await services.leave.compute_adjustment(session, _leave(), POLICY)
    with pytest.raises(ValueError):
        await services.leave.revoke(session, adjustment.id, LeaveRequestStatus.APPROVED)


async def test_pending_for_window_excludes_applied_and_revoked(session, services):
    kept = await services.leave.compute_adjustment(session, _leave("leave-1"), POLICY)
    applied = await services.leave.compute_adjustment(session, _leave("leave-2"), POLICY)
    revoked = await services.leave.compute_adjustment(session, _leave("leave-3"), POLICY)
    await services.leave.apply(session, applied.id)
    await services.leave.revoke(session, revoked.id, LeaveRequestStatus.REJECTED)

    pending = await services.leave.list_pending_for_window(session, MESS, date(2026, 3, 1), date(2026, 3, 31))

    assert [adj.id for adj in pending] == [kept.id]


# -----------------------------------------------------------------------------
# Tope por miembro y ciclo
# -----------------------------------------------------------------------------
async def test_cap_is_shared_by_requests_of_same_member(session, services):
    first = await services.leave.compute_adjustment(session, _leave("leave-1"), POLICY)
    second = await services.leave.compute_adjustment(
        session, _leave("leave-2", start=date(2026, 3, 20), end=date(2026, 3, 23)), POLICY
    )
    third = await services.leave.compute_adjustment(
        session, _leave("leave-3", start=date(2026, 3, 25), end=date(2026, 3, 26)), POLICY
    )

    assert first.credited_days == 3
    assert second.leave_days_in_cycle == 4
    assert second.credited_days == 2
    assert third.credited_days == 0
    assert third.refund_amount == 0


async def test_cap_is_per_member(session, services):
    await services.leave.compute_adjustment(
        session, _leave("leave-1", start=date(2026, 3, 1), end=date(2026, 3, 10)), POLICY
    )
    other = await services.leave.compute_adjustment(
        session, _leave("leave-2", membership_id="member-2"), POLICY
    )
    assert other.credited_days == 3


async def test_revoked_adjustment_releases_cap(session, services):
    revoked = await services.leave.compute_adjustment(
        session, _leave("leave-1", start=date(2026, 3, 1), end=date(2026, 3, 10)), POLICY
    )
    await services.leave.revoke(session, revoked.id, LeaveRequestStatus.CANCELLED)

    adjustment = await services.leave.compute_adjustment(session, _leave("leave-2"), POLICY)
    assert adjustment.credited_days == 3


# -----------------------------------------------------------------------------
# Política calculada en el servidor
# -----------------------------------------------------------------------------
async def _stored_leave(session, leave_id="stored-1", *, mess_id=MESS, status=LeaveRequestStatus.APPROVED):
    session.add(
        MessLeaveRequest(
            id=leave_id,
            mess_id=mess_id,
            membership_id="member-1",
            start_date=date(2026, 3, 10),
            end_date=date(2026, 3, 12),
            status=status,
        )
    )
    await session.flush()


async def test_max_leave_days_defaults_to_config(session, services):
    account = await services.accounts.get_or_open_account(session, MESS)
    assert account.max_leave_days_per_cycle is None
    assert services.accounts.max_leave_days(account) == services.config.default_max_leave_days_per_cycle

    await services.accounts.set_max_leave_days(session, MESS, 3, actor="admin-1")
    assert services.accounts.max_leave_days(account) == 3


async def test_set_max_leave_days_rejects_negative(session, services):
    with pytest.raises(ValueError):
        await services.accounts.set_max_leave_days(session, MESS, -1, actor="admin-1")


async def test_policy_uses_per_member_slab_cost(session, services, priced, members):
    await members(session, MESS, 5)

    policy = await services.cycles.leave_policy_for(session, MESS, date(2026, 3, 10))

    # 100 créditos del slab entre 5 miembros activos
    assert policy.cycle_cost == 20
    assert (policy.cycle_start, policy.cycle_end) == (date(2026, 3, 1), date(2026, 3, 31))
    assert policy.max_leave_days_per_cycle == services.config.default_max_leave_days_per_cycle


async def test_policy_uses_existing_bill_of_cycle(session, services, priced, members):
    await members(session, MESS, 5)
    await services.cycles.generate(session, MESS, cycle_window_for(date(2026, 3, 1), "month"))
    await members(session, MESS, 20)

    policy = await services.cycles.leave_policy_for(session, MESS, date(2026, 3, 10))

    # La factura se generó con 5 usuarios y slab 100
    assert policy.cycle_cost == 20


async def test_policy_without_members_refunds_nothing(session, services, priced):
    await _stored_leave(session)
    adjustment = await services.cycles.compute_leave_adjustment(session, MESS, "stored-1")
    assert adjustment.cycle_cost == 0
    assert adjustment.refund_amount == 0


async def test_compute_leave_adjustment_reads_stored_request(session, services):
    await services.slabs.replace_slabs(
        session, [SlabBand(min_users=1, max_users=None, cycle_cost=3100)], actor="test"
    )
    await _stored_leave(session)
    await services.accounts.set_max_leave_days(session, MESS, 2, actor="admin-1")
    session.add(MessMembership(mess_id=MESS, user_id="u-1", status="active"))
    await session.flush()

    adjustment = await services.cycles.compute_leave_adjustment(session, MESS, "stored-1")

    assert adjustment.leave_request_id == "stored-1"
    assert adjustment.cycle_cost == 3100
    assert adjustment.daily_credit_value == 100
    assert adjustment.credited_days == 2
    assert adjustment.refund_amount == 200


async def test_compute_leave_adjustment_of_other_mess_is_not_found(session, services):
    await _stored_leave(session, mess_id="mess-other")
    with pytest.raises(LeaveRequestNotFound):
        await services.cycles.compute_leave_adjustment(session, MESS, "stored-1")


async def test_compute_leave_adjustment_requires_approved_stored_request(session, services, priced):
    await _stored_leave(session, status=LeaveRequestStatus.PENDING)
    with pytest.raises(InvalidLeaveState):
        await services.cycles.compute_leave_adjustment(session, MESS, "stored-1")


async def test_leave_cancelled_after_compute_is_not_refunded(session, services, priced, members):
    await members(session, MESS, 1)
    await _stored_leave(session)
    adjustment = await services.cycles.compute_leave_adjustment(session, MESS, "stored-1")

    stored = await session.get(MessLeaveRequest, "stored-1")
    stored.status = LeaveRequestStatus.CANCELLED
    await session.flush()

    with pytest.raises(InvalidLeaveState):
        await services.leave.apply(session, adjustment.id)
    assert adjustment.leave_status == LeaveRequestStatus.CANCELLED
    assert await services.ledger.balance_of(session, MESS) == 0
