# -*- coding: utf-8 -*-
"""
backend/app/routes/health_routes.py

Endpoint básico de health check del backend MessCredit.

Autor: MessCredit
Fecha: 2026-03-09
"""

from fastapi import APIRouter, Request

from app.shared.database import check_database_health
from app.shared.utils.datetime_helpers import to_iso8601, utcnow

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    summary="Health check del backend",
    description=(
        "Devuelve el estado básico del backend, incluyendo "
        "verificación simple de conectividad a la base de datos."
    ),
)
async def health_check(request: Request) -> dict:
    """
    Health check básico del backend.

    Returns:
        dict: información mínima de estado de la aplicación.
    """
    settings = request.app.state.settings

    db_ok = await check_database_health(request.app.state.engine, timeout_s=2.0)

    scheduler = getattr(request.app.state, "scheduler", None)

    return {
        "status": "ok" if db_ok else "degraded",
        "timestamp": to_iso8601(utcnow()),
        "environment": settings.python_env,
        "database": {
            "reachable": db_ok,
        },
        "scheduler": {
            "running": bool(scheduler and scheduler.is_running),
        },
        "service": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
    }

# Fin del archivo backend/app/routes/health_routes.py
