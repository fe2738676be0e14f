# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/__init__.py

Esquemas Pydantic del módulo Payments.

Autor: MessCredit
Fecha: 2026-03-09
"""

from .order_schemas import (
    ManualProofRequest,
    PaymentOrderCreateRequest,
    PaymentOrderOut,
    PaymentVerificationOut,
    RejectProofRequest,
)
from .webhook_schemas import GatewayWebhookPayload, WebhookAckResponse

__all__ = [
    "ManualProofRequest",
    "PaymentOrderCreateRequest",
    "PaymentOrderOut",
    "PaymentVerificationOut",
    "RejectProofRequest",
    "GatewayWebhookPayload",
    "WebhookAckResponse",
]
