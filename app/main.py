# -*- coding: utf-8 -*-
"""
backend/app/main.py

Punto de entrada principal del backend MessCredit.

Ajustes clave:
- create_app(settings) construye la aplicación a partir de una configuración
  explícita; no hay objetos globales de settings, engine ni scheduler.
- Engine, session factory, servicios de facturación y scheduler viven en
  app.state y se liberan en el shutdown del lifespan.
- Montaje de observabilidad Prometheus (/metrics) vía app.observability.prom
- Jobs de facturación (morosidad, ciclos, expiración de órdenes y pruebas)
  registrados en el SchedulerService de la aplicación.

Ejecución:
    uvicorn app.main:create_app --factory
    python -m app.main

Autor: MessCredit
Fecha: 2026-03-09
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import anyio
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.modules.billing.container import build_billing_services
from app.modules.billing.jobs import register_billing_jobs
from app.modules.payments.services import build_payment_gateway
from app.observability import setup_observability
from app.routes import router as api_router
from app.shared.config import BaseAppSettings, load_settings, setup_logging
from app.shared.database import create_all, make_engine, make_session_factory, session_scope
from app.shared.middleware import (
    JSONExceptionMiddleware,
    RequestLoggingMiddleware,
    register_exception_handlers,
)
from app.shared.scheduler import SchedulerService
from app.shared.utils.json_response import UTF8JSONResponse

logger = logging.getLogger(__name__)

_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"  # backend/.env

openapi_tags = [
    {"name": "billing", "description": "Cuenta de créditos, facturas, prueba gratuita y permisos"},
    {"name": "payments", "description": "Órdenes de compra de créditos y webhooks de la pasarela"},
    {"name": "admin:billing", "description": "Slabs, planes, ajustes, waivers y analítica"},
    {"name": "internal:billing", "description": "Disparo manual de jobs (token de servicio)"},
    {"name": "health", "description": "Estado del servicio"},
]


def _load_env_file() -> None:
    """
    Carga backend/.env antes de construir settings.
    En DEV .env manda sobre el entorno; en PROD se respetan las variables
    del entorno del proveedor.
    """
    python_env = os.getenv("PYTHON_ENV", "development").strip().strip('"').strip("'").lower()
    override = python_env != "production"
    loaded = load_dotenv(dotenv_path=_ENV_PATH, override=override)
    logger.debug("[dotenv] path=%s loaded=%s override=%s", _ENV_PATH, loaded, override)


def _configure_cors(app: FastAPI, settings: BaseAppSettings) -> None:
    origins = settings.get_cors_origins()
    is_wildcard_only = origins == ["*"]

    if is_wildcard_only and settings.is_prod:
        logger.error("CORS wildcard rejected in production; cross-origin requests will be blocked")
        return

    # "*" con allow_credentials=True es inválido en navegadores
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=not is_wildcard_only,
        allow_methods=["*"] if is_wildcard_only else ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        max_age=600,
    )
    logger.info("CORS configured origins=%s", origins)


def create_app(settings: Optional[BaseAppSettings] = None) -> FastAPI:
    """
    Construye la aplicación FastAPI.

    Args:
        settings: Configuración explícita. Si es None se carga .env y se
            construye según PYTHON_ENV.
    """
    if settings is None:
        _load_env_file()
        settings = load_settings()

    setup_logging(settings.log_level, settings.log_format)

    engine = make_engine(settings)
    session_factory = make_session_factory(engine)
    gateway = build_payment_gateway(settings)
    services = build_billing_services(settings.billing_config(), gateway=gateway)
    scheduler = SchedulerService()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # ────────── STARTUP ──────────
        if settings.db_create_all:
            await create_all(engine)
            logger.info("[DB] Tablas creadas (DB_CREATE_ALL)")

        if settings.is_dev:
            async with session_scope(session_factory) as session:
                seeded = await services.catalog.seed_default_plans(session, settings.currency)
            if seeded:
                logger.info("Seeded %d default credit purchase plans", seeded)

        if settings.scheduler_enabled:
            register_billing_jobs(scheduler, settings, session_factory, services)
            scheduler.start()
        else:
            logger.info("Scheduler deshabilitado (SCHEDULER_ENABLED=false)")

        logger.info("Backend %s %s iniciado env=%s", settings.app_name, settings.app_version, settings.python_env)

        try:
            yield
        finally:
            # ────────── SHUTDOWN ──────────
            logger.info("Iniciando shutdown ordenado...")
            with anyio.CancelScope(shield=True):
                if scheduler.is_running:
                    scheduler.shutdown(wait=True)
                aclose = getattr(gateway, "aclose", None)
                if aclose is not None:
                    await aclose()
                await engine.dispose()
            logger.info("Backend %s apagado", settings.app_name)

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Facturación por créditos para comedores multi-tenant",
        version=settings.app_version,
        lifespan=lifespan,
        openapi_tags=openapi_tags,
        default_response_class=UTF8JSONResponse,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.billing = services
    app.state.scheduler = scheduler

    # Orden de middlewares: el último agregado es el más externo
    setup_observability(app, http_metrics=settings.http_metrics_enabled)
    app.add_middleware(JSONExceptionMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    _configure_cors(app, settings)

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


if __name__ == "__main__":
    import uvicorn

    _load_env_file()
    _settings = load_settings()
    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=_settings.app_host,
        port=_settings.app_port,
        reload=_settings.is_dev,
    )

# Fin del archivo backend/app/main.py
