# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/__init__.py

Repositorios del módulo Payments.

Autor: MessCredit
Fecha: 2026-03-07
"""

from .payment_order_repository import PaymentOrderRepository
from .payment_verification_repository import PaymentVerificationRepository

__all__ = ["PaymentOrderRepository", "PaymentVerificationRepository"]
