# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/payment_order_status_enum.py

Estados de una orden de pago de la pasarela.

created -> verified | failed | expired (terminales)

Autor: MessCredit
Fecha: 2026-03-07
"""

from enum import Enum


class PaymentOrderStatus(str, Enum):
    CREATED = "created"
    VERIFIED = "verified"
    FAILED = "failed"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentOrderStatus.CREATED


__all__ = ["PaymentOrderStatus"]

# Fin del archivo backend/app/modules/payments/enums/payment_order_status_enum.py
