# -*- coding: utf-8 -*-
"""
backend/app/routes/__init__.py

Ensamblador principal de ruteadores de la API de MessCredit.

Uso:
    from app.routes import router
    app.include_router(router)

Capas:
- /health                      estado del servicio
- /api/billing/...             dueño del comedor
- /api/payments/...            órdenes de compra y webhooks de la pasarela
- /api/admin/billing/...       administración (rol admin)
- /api/internal/billing/...    disparo manual de jobs (token de servicio)

Autor: MessCredit
Fecha: 2026-03-09
"""

from fastapi import APIRouter

from app.modules.billing.routes import router as billing_router
from app.modules.payments.routes import router as payments_router

from .health_routes import router as health_router

router = APIRouter()

# Health check sin prefijo adicional
router.include_router(health_router)

router.include_router(billing_router)
router.include_router(payments_router)

__all__ = ["router"]

# Fin del archivo backend/app/routes/__init__.py
