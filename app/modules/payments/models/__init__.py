# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/__init__.py

Punto de entrada de modelos ORM del módulo Payments.

Importar este paquete registra las tablas en Base.metadata:
- PaymentOrder
- PaymentVerification

Autor: MessCredit
Fecha: 2026-03-07
"""

from __future__ import annotations

from .payment_order_models import PaymentOrder
from .payment_verification_models import PaymentVerification

__all__ = ["PaymentOrder", "PaymentVerification"]

# Fin del archivo backend/app/modules/payments/models/__init__.py
