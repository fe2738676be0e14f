# -*- coding: utf-8 -*-
"""
Tests de verificación HMAC de webhooks de la pasarela.
"""

import hashlib
import hmac

from app.modules.payments.services.webhooks.signature_verification import (
    compute_gateway_signature,
    verify_gateway_signature,
)

SECRET = "whsec_unit"


def _expected(order_ref, gtx, status):
    msg = f"{order_ref}|{gtx}|{status}".encode()
    return hmac.new(SECRET.encode(), msg, hashlib.sha256).hexdigest()


def test_compute_signature_matches_hmac_sha256():
    assert compute_gateway_signature(SECRET, "order_1", "gtx_1", "captured") == _expected(
        "order_1", "gtx_1", "captured"
    )


def test_valid_signature_is_accepted_case_insensitively():
    sig = _expected("order_1", "gtx_1", "captured").upper()
    assert verify_gateway_signature(
        SECRET, order_ref="order_1", gateway_transaction_id="gtx_1", status="captured", signature=sig
    )


def test_signature_over_other_status_is_rejected():
    sig = _expected("order_1", "gtx_1", "failed")
    assert not verify_gateway_signature(
        SECRET, order_ref="order_1", gateway_transaction_id="gtx_1", status="captured", signature=sig
    )


def test_missing_signature_is_rejected():
    assert not verify_gateway_signature(
        SECRET, order_ref="order_1", gateway_transaction_id="gtx_1", status="captured", signature=None
    )


def test_without_secret_every_webhook_is_rejected():
    sig = compute_gateway_signature("", "order_1", "gtx_1", "captured")
    assert not verify_gateway_signature(
        "", order_ref="order_1", gateway_transaction_id="gtx_1", status="captured", signature=sig
    )
