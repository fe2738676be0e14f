# -*- coding: utf-8 -*-
"""
Tests de reportes de uso, saldo bajo, analítica y ajustes administrativos.
"""

import pytest

from app.modules.billing.credits import CreditTxReason
from app.modules.billing.errors import InsufficientCredits

MESS = "mess-reports"


async def test_usage_report_splits_added_and_used(session, services):
    await services.ledger.post(session, MESS, 500, CreditTxReason.PURCHASE, "gtx-1")
    await services.ledger.post(session, MESS, -200, CreditTxReason.BILL_DEBIT, "bill-1")
    await services.ledger.post(session, MESS, 30, CreditTxReason.LEAVE_REFUND, "adj-1")

    report = await services.reports.usage_report(session, MESS)

    assert report.balance == 330
    assert report.credits_added == 530
    assert report.credits_used == 200
    by_reason = {r.reason: (r.total, r.count) for r in report.by_reason}
    assert by_reason[CreditTxReason.PURCHASE] == (500, 1)
    assert by_reason[CreditTxReason.BILL_DEBIT] == (-200, 1)


async def test_transactions_page_is_newest_first(session, services):
    for i in range(3):
        await services.ledger.post(session, MESS, 10, CreditTxReason.ADJUSTMENT, f"adj-{i}")

    page = await services.reports.transactions_page(session, MESS, limit=2)

    assert page.total == 3
    assert [tx.reference_id for tx in page.items] == ["adj-2", "adj-1"]
    assert page.has_more is True


async def test_low_balance_estimates_remaining_cycles(session, services, priced, members):
    await members(session, MESS, 5)
    await services.ledger.post(session, MESS, 250, CreditTxReason.PURCHASE, "gtx-1")
    await services.accounts.set_low_balance_threshold(session, MESS, 300)

    status = await services.reports.low_balance(session, MESS)

    assert status.is_low is True
    assert status.cycle_cost == 100
    assert status.estimated_cycles_remaining == 2


async def test_low_balance_without_pricing_has_no_estimate(session, services, members):
    await members(session, MESS, 5)
    status = await services.reports.low_balance(session, MESS)
    assert status.cycle_cost is None
    assert status.estimated_cycles_remaining is None


async def test_negative_threshold_is_rejected(session, services):
    with pytest.raises(ValueError):
        await services.accounts.set_low_balance_threshold(session, MESS, -1)


async def test_adjust_is_idempotent_by_key(session, services):
    first = await services.reports.adjust(
        session, MESS, 75, idempotency_key="support-1", description="Compensation", actor="admin-1"
    )
    second = await services.reports.adjust(
        session, MESS, 75, idempotency_key="support-1", description="Compensation", actor="admin-1"
    )

    assert first.created and not second.created
    assert second.balance == 75
    assert first.transaction.tx_metadata == {"actor": "admin-1"}


async def test_negative_adjust_cannot_overdraw(session, services):
    with pytest.raises(InsufficientCredits):
        await services.reports.adjust(
            session, MESS, -10, idempotency_key="support-2", description="Clawback", actor="admin-1"
        )


async def test_analytics_aggregates_accounts(session, services):
    await services.ledger.post(session, MESS, 500, CreditTxReason.PURCHASE, "gtx-1")
    await services.ledger.post(session, "mess-other", 200, CreditTxReason.PURCHASE, "gtx-2")

    analytics = await services.reports.analytics(session)

    assert analytics.total_outstanding_credits == 700
    assert analytics.accounts_by_status == {"suspended": 2}
    totals = {r.reason: r.total for r in analytics.by_reason}
    assert totals[CreditTxReason.PURCHASE] == 700
