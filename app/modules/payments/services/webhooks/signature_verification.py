# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/webhooks/signature_verification.py

Verificación de firmas de webhooks de la pasarela.

La pasarela firma "{order_ref}|{gateway_transaction_id}|{status}" con
HMAC-SHA256 y el secreto compartido; la firma viaja en hex. La
comparación es en tiempo constante. Sin secreto configurado todo webhook
se rechaza (no existe bypass).

Autor: MessCredit
Fecha: 2026-03-07
"""
from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def signed_message(order_ref: str, gateway_transaction_id: str, status: str) -> bytes:
    return f"{order_ref}|{gateway_transaction_id}|{status}".encode("utf-8")


def compute_gateway_signature(
    secret: str,
    order_ref: str,
    gateway_transaction_id: str,
    status: str,
) -> str:
    """Firma hex esperada para un evento de pago."""
    return hmac.new(
        secret.encode("utf-8"),
        msg=signed_message(order_ref, gateway_transaction_id, status),
        digestmod=hashlib.sha256,
    ).hexdigest()


def verify_gateway_signature(
    secret: str,
    *,
    order_ref: str,
    gateway_transaction_id: str,
    status: str,
    signature: Optional[str],
) -> bool:
    """
    Returns:
        True si la firma es válida, False en caso contrario
    """
    if not secret:
        logger.error("Gateway webhook rejected: GATEWAY_WEBHOOK_SECRET not configured")
        return False
    if not signature:
        logger.warning("Gateway webhook rejected: missing signature")
        return False

    expected = compute_gateway_signature(secret, order_ref, gateway_transaction_id, status)
    return hmac.compare_digest(expected, signature.strip().lower())


__all__ = ["signed_message", "compute_gateway_signature", "verify_gateway_signature"]
