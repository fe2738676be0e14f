# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/__init__.py

Módulo de pagos de MessCredit.

Este módulo gestiona:
- Órdenes de compra de créditos en la pasarela
- Verificación idempotente (webhook firmado o comprobante manual)
- Conciliación contra el ledger de créditos (movimiento `purchase`)

Estructura:
- enums: PaymentOrderStatus, VerificationMethod, VerificationStatus
- models: PaymentOrder, PaymentVerification
- repositories: acceso a datos
- services: pasarela, firmas y ReconciliationService
- facades: manejo de webhooks de alto nivel
- routes: adaptadores HTTP

Autor: MessCredit
Fecha: 2026-03-07
"""
