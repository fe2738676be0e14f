# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/credits/enums.py

Enums para el ledger de créditos.

Autor: MessCredit
Fecha: 2026-03-02
"""

from enum import Enum


class CreditTxReason(str, Enum):
    """
    Motivo de un movimiento en el ledger.

    Junto con reference_id forma la llave de idempotencia del movimiento.
    """
    PURCHASE = "purchase"          # Compra verificada (+)
    BILL_DEBIT = "bill_debit"      # Cobro de factura de ciclo (-)
    LEAVE_REFUND = "leave_refund"  # Reembolso por permiso (+)
    TRIAL_GRANT = "trial_grant"    # Créditos de prueba gratuita (+)
    ADJUSTMENT = "adjustment"      # Ajuste administrativo (+/-)


class CreditAccountStatus(str, Enum):
    """
    Estado de la cuenta de créditos de un comedor.

    Una cuenta nueva nace SUSPENDED hasta que se activa una prueba o se
    verifica una compra.
    """
    ACTIVE = "active"
    TRIAL = "trial"
    SUSPENDED = "suspended"


__all__ = [
    "CreditTxReason",
    "CreditAccountStatus",
]
