# -*- coding: utf-8 -*-
"""
backend/app/shared/database/database.py

SQLAlchemy async: engine y session factory construidos a partir de la
configuración explícita (sin engine global a nivel de módulo).

Provee:
- make_engine(settings) (asyncpg en PostgreSQL, aiosqlite en dev/tests)
- make_session_factory(engine)
- Dependencia FastAPI: get_async_session (lee app.state.session_factory)
- context manager: session_scope(factory)
- create_all(engine) para dev/tests
- check_database_health(engine)

Notas:
- pysqlite no emite BEGIN/SAVEPOINT como SQLAlchemy espera; se aplica la
  receta documentada (isolation_level=None + BEGIN explícito) para que
  begin_nested() funcione igual que en PostgreSQL.
- En SQLite la transacción arranca con BEGIN IMMEDIATE: los escritores
  concurrentes esperan el lock (busy timeout) en lugar de fallar al
  promover un lock de lectura.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.shared.config.settings_base import BaseAppSettings
from app.shared.database.base import Base

logger = logging.getLogger(__name__)


def _install_sqlite_savepoint_support(engine: AsyncEngine) -> None:
    """Habilita SAVEPOINT/BEGIN correctos en SQLite (receta oficial de SQLAlchemy)."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Desactiva el BEGIN implícito del driver
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_engine(settings: BaseAppSettings) -> AsyncEngine:
    """Crea el engine async para la URL configurada."""
    url = settings.database_url
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=settings.db_echo_sql)
        _install_sqlite_savepoint_support(engine)
    else:
        engine = create_async_engine(
            url,
            echo=settings.db_echo_sql,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
        )
    logger.info("[DB] Engine creado dialect=%s echo=%s", engine.dialect.name, settings.db_echo_sql)
    return engine


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory (sin expirar objetos al commit, sin autoflush)."""
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        class_=AsyncSession,
        autoflush=False,
    )


async def create_all(engine: AsyncEngine) -> None:
    """Crea las tablas de todos los modelos registrados en Base (dev/tests)."""
    # Importa los modelos para registrarlos en Base.metadata
    import app.modules.billing.models  # noqa: F401
    import app.modules.payments.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ── Dependencia FastAPI
async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with factory() as session:
        try:
            yield session
        except SQLAlchemyError:
            # Rollback para liberar cualquier transacción/lock
            await session.rollback()
            raise
        finally:
            if session.in_transaction():
                await session.rollback()


# ── Context manager reutilizable en jobs/scripts/tests
@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Abre una sesión, hace commit si el bloque termina bien y rollback si falla."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ── Health check
async def check_database_health(
    engine: AsyncEngine,
    timeout_s: float = 3.0,
    sql: str = "SELECT 1",
) -> bool:
    """
    Verifica conectividad a la base de datos.

    Returns:
        True si la conexión es exitosa, False en caso contrario
    """
    try:
        async with asyncio.timeout(timeout_s):
            async with engine.connect() as conn:
                await conn.execute(text(sql))
        return True
    except (SQLAlchemyError, OSError, TimeoutError) as e:
        logger.warning("[DB] Health check falló: %s", e)
        return False


__all__ = [
    "make_engine",
    "make_session_factory",
    "create_all",
    "get_async_session",
    "session_scope",
    "check_database_health",
]
# Fin del archivo backend/app/shared/database/database.py
