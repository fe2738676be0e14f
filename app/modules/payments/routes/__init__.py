# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/__init__.py

Ensamblador de rutas del módulo Payments.

Incluye:
- /api/payments/orders/*
- /api/payments/webhooks/gateway
- /api/admin/billing/verifications/*

Autor: MessCredit
Fecha: 2026-03-09
"""

from fastapi import APIRouter

from .orders import router as orders_router
from .webhooks_gateway import router as webhooks_router
from .admin_verifications import router as admin_verifications_router

router = APIRouter()

router.include_router(orders_router, prefix="/api/payments")
router.include_router(webhooks_router, prefix="/api/payments")
router.include_router(admin_verifications_router, prefix="/api/admin/billing")

__all__ = ["router"]

# Fin del archivo backend/app/modules/payments/routes/__init__.py
