# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/routes/__init__.py

Ensamblador de rutas del módulo Billing.

Incluye:
- /api/billing/*                    (dueño del comedor)
- /api/admin/billing/*              (administración)
- /api/internal/billing/jobs/*      (disparo manual de jobs, token de servicio)

Autor: MessCredit
Fecha: 2026-03-09
"""

from fastapi import APIRouter

from .mess_owner_routes import router as mess_owner_router
from .admin_routes import router as admin_router
from .internal_routes import router as internal_router

router = APIRouter()

router.include_router(mess_owner_router, prefix="/api/billing")
router.include_router(admin_router, prefix="/api/admin/billing")
router.include_router(internal_router, prefix="/api/internal/billing")

__all__ = ["router"]

# Fin del archivo backend/app/modules/billing/routes/__init__.py
