# -*- coding: utf-8 -*-
"""
Tests de conciliación de pagos: webhooks firmados, duplicados, pagos
tardíos, órdenes fallidas y comprobantes manuales.
"""

from datetime import timedelta

import pytest

from app.modules.billing.credits import CreditAccountStatus, CreditTxReason
from app.modules.billing.errors import PlanNotFound
from app.modules.payments.enums import (
    GatewayPaymentStatus,
    PaymentOrderStatus,
    VerificationMethod,
    VerificationStatus,
)
from app.modules.payments.errors import (
    GatewaySignatureMismatch,
    OrderExpired,
    OrderNotVerifiable,
)
from app.modules.payments.services import ManualProof, WebhookProof
from app.shared.utils.datetime_helpers import utcnow

MESS = "mess-pay"
CAPTURED = GatewayPaymentStatus.CAPTURED
FAILED = GatewayPaymentStatus.FAILED


def _webhook(sign, order, gtx, status=CAPTURED, **kwargs):
    return WebhookProof(signature=sign(order.gateway_order_ref, gtx, status.value), gateway_status=status, **kwargs)


async def _purchases(session, services):
    return [tx async for tx in services.ledger.history(session, MESS, reasons=[CreditTxReason.PURCHASE])]


async def test_create_order_for_plan(session, services):
    await services.catalog.seed_default_plans(session, "INR")
    plan = (await services.catalog.list_active_plans(session))[1]
    now = utcnow()

    order = await services.reconciliation.create_order(session, MESS, plan_id=plan.id, now=now)

    assert order.status == PaymentOrderStatus.CREATED
    assert order.credits == plan.total_credits
    assert order.amount_cents == plan.price_cents
    assert order.gateway_order_ref.startswith("order_")
    assert order.expires_at == now + timedelta(minutes=30)


async def test_create_order_for_loose_credits(session, services):
    order = await services.reconciliation.create_order(session, MESS, requested_credits=250)
    assert order.credits == 250
    assert order.amount_cents == 250 * 100
    assert order.plan_id is None


@pytest.mark.parametrize("kwargs", [{}, {"plan_id": 1, "requested_credits": 10}, {"requested_credits": 0}])
async def test_create_order_validates_input(session, services, kwargs):
    with pytest.raises(ValueError):
        await services.reconciliation.create_order(session, MESS, **kwargs)


async def test_create_order_with_inactive_plan(session, services):
    plan = await services.catalog.create_plan(session, name="Gone", base_credits=10, price_cents=1000)
    await services.catalog.deactivate_plan(session, plan.id)
    with pytest.raises(PlanNotFound):
        await services.reconciliation.create_order(session, MESS, plan_id=plan.id)


async def test_captured_webhook_credits_and_activates_account(session, services, sign):
    order = await services.reconciliation.create_order(session, MESS, requested_credits=500)

    verification = await services.reconciliation.verify(session, order.id, "pay_1", _webhook(sign, order, "pay_1"))

    assert verification.status == VerificationStatus.VERIFIED
    assert verification.method == VerificationMethod.WEBHOOK
    assert order.status == PaymentOrderStatus.VERIFIED
    assert await services.ledger.balance_of(session, MESS) == 500
    purchases = await _purchases(session, services)
    assert [tx.reference_id for tx in purchases] == ["pay_1"]
    assert verification.credit_transaction_id == purchases[0].id
    account = await services.accounts.get_account(session, MESS)
    assert account.status == CreditAccountStatus.ACTIVE


async def test_duplicate_webhook_credits_once(session, services, sign):
    order = await services.reconciliation.create_order(session, MESS, requested_credits=500)
    proof = _webhook(sign, order, "pay_1")

    first = await services.reconciliation.verify(session, order.id, "pay_1", proof)
    second = await services.reconciliation.verify(session, order.id, "pay_1", proof)

    assert second.id == first.id
    assert len(await _purchases(session, services)) == 1
    assert await services.ledger.balance_of(session, MESS) == 500


async def test_bad_signature_changes_nothing(session, services):
    order = await services.reconciliation.create_order(session, MESS, requested_credits=500)
    proof = WebhookProof(signature="deadbeef", gateway_status=CAPTURED)

    with pytest.raises(GatewaySignatureMismatch):
        await services.reconciliation.verify(session, order.id, "pay_1", proof)

    assert order.status == PaymentOrderStatus.CREATED
    assert await services.ledger.balance_of(session, MESS) == 0


async def test_signature_is_bound_to_status(session, services, sign):
    order = await services.reconciliation.create_order(session, MESS, requested_credits=500)
    # Firma de un evento `failed` reutilizada como `captured`
    proof = WebhookProof(signature=sign(order.gateway_order_ref, "pay_1", "failed"), gateway_status=CAPTURED)

    with pytest.raises(GatewaySignatureMismatch):
        await services.reconciliation.verify(session, order.id, "pay_1", proof)


async def test_late_webhook_is_rejected_without_credit(session, services, sign):
    now = utcnow()
    order = await services.reconciliation.create_order(session, MESS, requested_credits=500, now=now)

    with pytest.raises(OrderExpired):
        await services.reconciliation.verify(
            session, order.id, "pay_late", _webhook(sign, order, "pay_late"), now=now + timedelta(minutes=31)
        )

    assert order.status == PaymentOrderStatus.EXPIRED
    assert await services.ledger.balance_of(session, MESS) == 0
    verification = await services.reconciliation.verification_repo.get_by_gateway_transaction_id(session, "pay_late")
    assert verification.status == VerificationStatus.REJECTED
    assert verification.failure_reason == "order_expired"


async def test_failed_webhook_makes_order_terminal(session, services, sign):
    order = await services.reconciliation.create_order(session, MESS, requested_credits=500)

    failed = await services.reconciliation.verify(
        session, order.id, "pay_f", _webhook(sign, order, "pay_f", FAILED, failure_reason="card_declined")
    )

    assert failed.status == VerificationStatus.FAILED
    assert order.status == PaymentOrderStatus.FAILED
    assert order.failure_reason == "card_declined"

    with pytest.raises(OrderNotVerifiable):
        await services.reconciliation.verify(session, order.id, "pay_2", _webhook(sign, order, "pay_2"))
    assert await services.ledger.balance_of(session, MESS) == 0


async def test_transaction_id_cannot_verify_two_orders(session, services, sign):
    first = await services.reconciliation.create_order(session, MESS, requested_credits=100)
    second = await services.reconciliation.create_order(session, MESS, requested_credits=100)
    await services.reconciliation.verify(session, first.id, "pay_1", _webhook(sign, first, "pay_1"))

    with pytest.raises(OrderNotVerifiable):
        await services.reconciliation.verify(session, second.id, "pay_1", _webhook(sign, second, "pay_1"))
    assert await services.ledger.balance_of(session, MESS) == 100


async def test_manual_proof_waits_for_approval(session, services):
    order = await services.reconciliation.create_order(session, MESS, requested_credits=300)

    verification = await services.reconciliation.verify(
        session, order.id, "utr-123", ManualProof(proof_reference="proofs/utr-123.png", submitted_by="owner-1")
    )

    assert verification.status == VerificationStatus.PENDING
    assert await services.ledger.balance_of(session, MESS) == 0
    assert [v.id for v in await services.reconciliation.list_pending_manual(session)] == [verification.id]

    approved = await services.reconciliation.approve_manual(session, verification.id, reviewer="admin-1")

    assert approved.status == VerificationStatus.VERIFIED
    assert approved.reviewed_by == "admin-1"
    assert order.status == PaymentOrderStatus.VERIFIED
    assert await services.ledger.balance_of(session, MESS) == 300
    # Aprobar de nuevo no acredita dos veces
    await services.reconciliation.approve_manual(session, verification.id, reviewer="admin-1")
    assert await services.ledger.balance_of(session, MESS) == 300


async def test_manual_proof_can_be_approved_after_expiry(session, services):
    now = utcnow()
    order = await services.reconciliation.create_order(session, MESS, requested_credits=300, now=now)
    verification = await services.reconciliation.verify(
        session, order.id, "utr-1", ManualProof(proof_reference="proofs/utr-1.png"), now=now
    )

    assert await services.reconciliation.expire_orders(session, now=now + timedelta(hours=2)) == 0

    await services.reconciliation.approve_manual(
        session, verification.id, reviewer="admin-1", now=now + timedelta(hours=3)
    )
    assert await services.ledger.balance_of(session, MESS) == 300


async def test_late_second_proof_keeps_first_proof_approvable(session, services):
    now = utcnow()
    order = await services.reconciliation.create_order(session, MESS, requested_credits=300, now=now)
    first = await services.reconciliation.verify(
        session, order.id, "utr-1", ManualProof(proof_reference="proofs/utr-1.png"), now=now
    )

    second = await services.reconciliation.verify(
        session, order.id, "utr-2", ManualProof(proof_reference="proofs/utr-2.png"), now=now + timedelta(hours=1)
    )
    assert second.status == VerificationStatus.PENDING
    assert order.status == PaymentOrderStatus.CREATED

    await services.reconciliation.approve_manual(
        session, first.id, reviewer="admin-1", now=now + timedelta(hours=2)
    )
    assert order.status == PaymentOrderStatus.VERIFIED
    assert await services.ledger.balance_of(session, MESS) == 300


async def test_webhook_after_expiry_credits_order_held_by_manual_proof(session, services, sign):
    now = utcnow()
    order = await services.reconciliation.create_order(session, MESS, requested_credits=300, now=now)
    await services.reconciliation.verify(
        session, order.id, "utr-1", ManualProof(proof_reference="proofs/utr-1.png"), now=now
    )

    verification = await services.reconciliation.verify(
        session, order.id, "pay_1", _webhook(sign, order, "pay_1"), now=now + timedelta(hours=1)
    )

    assert verification.status == VerificationStatus.VERIFIED
    assert order.status == PaymentOrderStatus.VERIFIED
    assert await services.ledger.balance_of(session, MESS) == 300


async def test_rejected_manual_proof_fails_order(session, services):
    order = await services.reconciliation.create_order(session, MESS, requested_credits=300)
    verification = await services.reconciliation.verify(
        session, order.id, "utr-1", ManualProof(proof_reference="proofs/utr-1.png")
    )

    rejected = await services.reconciliation.reject_manual(
        session, verification.id, reviewer="admin-1", reason="unreadable"
    )

    assert rejected.status == VerificationStatus.REJECTED
    assert order.status == PaymentOrderStatus.FAILED
    with pytest.raises(OrderNotVerifiable):
        await services.reconciliation.approve_manual(session, verification.id, reviewer="admin-1")
    assert await services.ledger.balance_of(session, MESS) == 0


async def test_expire_orders_only_touches_overdue_created_orders(session, services, sign):
    now = utcnow()
    stale = await services.reconciliation.create_order(session, MESS, requested_credits=100, now=now)
    paid = await services.reconciliation.create_order(session, MESS, requested_credits=100, now=now)
    fresh = await services.reconciliation.create_order(
        session, MESS, requested_credits=100, now=now + timedelta(minutes=20)
    )
    await services.reconciliation.verify(session, paid.id, "pay_1", _webhook(sign, paid, "pay_1"), now=now)

    expired = await services.reconciliation.expire_orders(session, now=now + timedelta(minutes=31))

    assert expired == 1
    assert stale.status == PaymentOrderStatus.EXPIRED
    assert paid.status == PaymentOrderStatus.VERIFIED
    assert fresh.status == PaymentOrderStatus.CREATED
