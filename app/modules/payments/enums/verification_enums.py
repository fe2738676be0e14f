# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/verification_enums.py

Enums de verificación de pagos.

Autor: MessCredit
Fecha: 2026-03-07
"""

from enum import Enum


class VerificationMethod(str, Enum):
    """Origen de la prueba de pago."""
    WEBHOOK = "webhook"
    MANUAL_PROOF = "manual_proof"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    FAILED = "failed"


class GatewayPaymentStatus(str, Enum):
    """Estado reportado por la pasarela en el webhook."""
    CAPTURED = "captured"
    FAILED = "failed"


__all__ = ["VerificationMethod", "VerificationStatus", "GatewayPaymentStatus"]

# Fin del archivo backend/app/modules/payments/enums/verification_enums.py
