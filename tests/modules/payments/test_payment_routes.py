# -*- coding: utf-8 -*-
"""
Tests HTTP de órdenes de pago, webhook de la pasarela y revisión de
comprobantes manuales.
"""

from datetime import timedelta

from sqlalchemy import update

from app.modules.payments.models import PaymentOrder
from app.shared.utils.datetime_helpers import utcnow

WEBHOOK_URL = "/api/payments/webhooks/gateway"


async def _create_order(client, owner_headers, credits=500):
    resp = await client.post("/api/payments/orders", json={"credits": credits}, headers=owner_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _event(sign, order, gtx, status="captured", **extra):
    return {
        "gatewayTransactionId": gtx,
        "orderId": order["gateway_order_ref"],
        "status": status,
        "signature": sign(order["gateway_order_ref"], gtx, status),
        **extra,
    }


async def _expire(app_session_factory, order_id):
    async with app_session_factory() as session:
        await session.execute(
            update(PaymentOrder)
            .where(PaymentOrder.id == order_id)
            .values(expires_at=utcnow() - timedelta(minutes=1))
        )
        await session.commit()


async def _balance(client, owner_headers):
    return (await client.get("/api/billing/account", headers=owner_headers)).json()["balance"]


# -----------------------------------------------------------------------------
# Órdenes
# -----------------------------------------------------------------------------
async def test_create_and_get_order(client, owner_headers):
    order = await _create_order(client, owner_headers)

    assert order["status"] == "created"
    assert order["credits"] == 500
    assert order["amount_cents"] == 50000

    resp = await client.get(f"/api/payments/orders/{order['id']}", headers=owner_headers)
    assert resp.json()["id"] == order["id"]
    listed = await client.get("/api/payments/orders", headers=owner_headers)
    assert [o["id"] for o in listed.json()] == [order["id"]]


async def test_order_requires_plan_or_credits(client, owner_headers):
    resp = await client.post("/api/payments/orders", json={}, headers=owner_headers)
    assert resp.status_code == 422


async def test_order_of_other_mess_is_hidden(client, owner_headers, make_token):
    order = await _create_order(client, owner_headers)
    other = {"Authorization": f"Bearer {make_token('owner-9', mess_id='mess-9')}"}

    resp = await client.get(f"/api/payments/orders/{order['id']}", headers=other)
    assert resp.status_code == 404


# -----------------------------------------------------------------------------
# Webhook
# -----------------------------------------------------------------------------
async def test_captured_webhook_credits_once(client, owner_headers, sign):
    order = await _create_order(client, owner_headers)
    event = _event(sign, order, "pay_1")

    first = await client.post(WEBHOOK_URL, json=event)
    second = await client.post(WEBHOOK_URL, json=event)

    assert first.status_code == 200
    assert first.json()["status"] == "verified"
    assert first.json()["duplicate"] is False
    assert second.status_code == 200
    assert second.json()["duplicate"] is True
    assert second.json()["verification_id"] == first.json()["verification_id"]
    assert await _balance(client, owner_headers) == 500

    account = (await client.get("/api/billing/account", headers=owner_headers)).json()
    assert account["status"] == "active"


async def test_webhook_with_bad_signature_is_unauthorized(client, owner_headers):
    order = await _create_order(client, owner_headers)
    event = {
        "gatewayTransactionId": "pay_1",
        "orderId": order["gateway_order_ref"],
        "status": "captured",
        "signature": "0" * 64,
    }

    resp = await client.post(WEBHOOK_URL, json=event)

    assert resp.status_code == 401
    assert resp.json()["detail"]["error_code"] == "gateway_signature_mismatch"
    assert await _balance(client, owner_headers) == 0


async def test_webhook_for_unknown_order(client, sign):
    fake = {"gateway_order_ref": "order_missing"}
    resp = await client.post(WEBHOOK_URL, json=_event(sign, fake, "pay_1"))
    assert resp.status_code == 404


async def test_late_webhook_is_acknowledged_as_rejected(client, owner_headers, sign, app_session_factory):
    order = await _create_order(client, owner_headers)
    await _expire(app_session_factory, order["id"])

    resp = await client.post(WEBHOOK_URL, json=_event(sign, order, "pay_late"))

    assert resp.status_code == 200
    assert resp.json()["status"] == "rejected"
    assert await _balance(client, owner_headers) == 0
    stored = await client.get(f"/api/payments/orders/{order['id']}", headers=owner_headers)
    assert stored.json()["status"] == "expired"


async def test_failed_payment_then_capture_is_not_verifiable(client, owner_headers, sign):
    order = await _create_order(client, owner_headers)

    failed = await client.post(
        WEBHOOK_URL, json=_event(sign, order, "pay_f", "failed", failureReason="card_declined")
    )
    assert failed.json()["status"] == "failed"

    resp = await client.post(WEBHOOK_URL, json=_event(sign, order, "pay_2"))
    assert resp.status_code == 409
    assert await _balance(client, owner_headers) == 0


# -----------------------------------------------------------------------------
# Comprobantes manuales
# -----------------------------------------------------------------------------
async def test_manual_proof_approved_by_admin(client, owner_headers, admin_headers):
    order = await _create_order(client, owner_headers, credits=300)

    submitted = await client.post(
        f"/api/payments/orders/{order['id']}/manual-proof",
        json={"gateway_transaction_id": "utr-555", "proof_reference": "proofs/utr-555.png"},
        headers=owner_headers,
    )
    assert submitted.status_code == 202
    assert submitted.json()["status"] == "pending"
    assert submitted.json()["submitted_by"] == "owner-1"

    pending = await client.get("/api/admin/billing/verifications/pending", headers=admin_headers)
    assert [v["id"] for v in pending.json()] == [submitted.json()["id"]]

    approved = await client.post(
        f"/api/admin/billing/verifications/{submitted.json()['id']}/approve", headers=admin_headers
    )
    assert approved.status_code == 200
    assert approved.json()["status"] == "verified"
    assert approved.json()["reviewed_by"] == "admin-1"
    assert await _balance(client, owner_headers) == 300


async def test_manual_proof_rejected_by_admin(client, owner_headers, admin_headers):
    order = await _create_order(client, owner_headers, credits=300)
    submitted = await client.post(
        f"/api/payments/orders/{order['id']}/manual-proof",
        json={"gateway_transaction_id": "utr-556", "proof_reference": "proofs/utr-556.png"},
        headers=owner_headers,
    )

    rejected = await client.post(
        f"/api/admin/billing/verifications/{submitted.json()['id']}/reject",
        json={"reason": "amount mismatch"},
        headers=admin_headers,
    )

    assert rejected.json()["status"] == "rejected"
    stored = await client.get(f"/api/payments/orders/{order['id']}", headers=owner_headers)
    assert stored.json()["status"] == "failed"
    assert await _balance(client, owner_headers) == 0


async def test_manual_proof_on_expired_order(client, owner_headers, app_session_factory):
    order = await _create_order(client, owner_headers)
    await _expire(app_session_factory, order["id"])

    resp = await client.post(
        f"/api/payments/orders/{order['id']}/manual-proof",
        json={"gateway_transaction_id": "utr-late", "proof_reference": "proofs/utr-late.png"},
        headers=owner_headers,
    )

    assert resp.status_code == 409
    assert resp.json()["detail"]["error_code"] == "payment_order_expired"
    stored = await client.get(f"/api/payments/orders/{order['id']}", headers=owner_headers)
    assert stored.json()["status"] == "expired"


async def test_owner_cannot_review_proofs(client, owner_headers):
    resp = await client.get("/api/admin/billing/verifications/pending", headers=owner_headers)
    assert resp.status_code == 403
