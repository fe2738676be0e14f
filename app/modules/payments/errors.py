# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/errors.py

Errores de conciliación de pagos. Heredan de BillingError para compartir
el mismo manejo HTTP (error_code + http_status).

Autor: MessCredit
Fecha: 2026-03-07
"""

from __future__ import annotations

from app.modules.billing.errors import BillingError


class GatewaySignatureMismatch(BillingError):
    """Firma del webhook inválida. Se rechaza sin efectos y se audita."""

    error_code = "gateway_signature_mismatch"
    http_status = 401


class OrderNotFound(BillingError):
    error_code = "payment_order_not_found"
    http_status = 404


class OrderExpired(BillingError):
    """La orden venció sin verificarse; nunca podrá verificarse después."""

    error_code = "payment_order_expired"
    http_status = 409


class OrderNotVerifiable(BillingError):
    """La orden está en un estado terminal distinto de expired (p. ej. failed)."""

    error_code = "payment_order_not_verifiable"
    http_status = 409


class VerificationNotFound(BillingError):
    error_code = "payment_verification_not_found"
    http_status = 404


class GatewayError(BillingError):
    """La pasarela no pudo crear la orden."""

    error_code = "payment_gateway_error"
    http_status = 502


__all__ = [
    "GatewaySignatureMismatch",
    "OrderNotFound",
    "OrderExpired",
    "OrderNotVerifiable",
    "VerificationNotFound",
    "GatewayError",
]
