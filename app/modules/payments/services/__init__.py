# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/__init__.py

Servicios del módulo Payments.

Autor: MessCredit
Fecha: 2026-03-07
"""

from .gateway_client import (
    GatewayOrder,
    HttpPaymentGateway,
    LocalPaymentGateway,
    PaymentGateway,
    build_payment_gateway,
)
from .reconciliation_service import (
    ManualProof,
    PaymentProof,
    ReconciliationService,
    WebhookProof,
)

__all__ = [
    "GatewayOrder",
    "HttpPaymentGateway",
    "LocalPaymentGateway",
    "PaymentGateway",
    "build_payment_gateway",
    "ManualProof",
    "PaymentProof",
    "ReconciliationService",
    "WebhookProof",
]
