# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/__init__.py

Superficie de exportación de enums del módulo Payments.

Incluye:
- PaymentOrderStatus
- VerificationMethod
- VerificationStatus
- GatewayPaymentStatus

Autor: MessCredit
Fecha: 2026-03-07
"""

from .payment_order_status_enum import PaymentOrderStatus
from .verification_enums import GatewayPaymentStatus, VerificationMethod, VerificationStatus

__all__ = [
    "PaymentOrderStatus",
    "VerificationMethod",
    "VerificationStatus",
    "GatewayPaymentStatus",
]

# Fin del archivo backend/app/modules/payments/enums/__init__.py
