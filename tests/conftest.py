# -*- coding: utf-8 -*-
"""
Config global de tests para MessCredit.

- Settings de prueba explícitos (SQLite por archivo en tmp_path, scheduler
  apagado, secretos dummy)
- Engine + tablas por test; sesión directa para pruebas de servicios
- App FastAPI construida con create_app(settings) y cliente httpx con
  ciclo de vida (asgi-lifespan)
- Helpers para tokens JWT, slabs, membresías y firmas de la pasarela
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Optional

import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from app.main import create_app
from app.modules.auth import UserRole, create_access_token
from app.modules.billing.container import build_billing_services
from app.modules.billing.cycles import MessMembership
from app.modules.billing.pricing import SlabBand
from app.modules.payments.services.webhooks.signature_verification import compute_gateway_signature
from app.shared.config import load_settings
from app.shared.database import create_all, make_engine, make_session_factory

WEBHOOK_SECRET = "whsec_test_dummy"
INTERNAL_TOKEN = "internal-test-token"

# Tabla de precios usada en casi todas las pruebas
DEFAULT_BANDS = [
    SlabBand(min_users=1, max_users=10, cycle_cost=100),
    SlabBand(min_users=11, max_users=25, cycle_cost=200),
    SlabBand(min_users=26, max_users=None, cycle_cost=350),
]


# -----------------------------------------------------------------------------
# Settings / base de datos
# -----------------------------------------------------------------------------
@pytest.fixture
def settings(tmp_path):
    return load_settings("test", db_url=f"sqlite+aiosqlite:///{tmp_path / 'messcredit.db'}")


@pytest.fixture
async def engine(settings):
    engine = make_engine(settings)
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def services(settings):
    return build_billing_services(settings.billing_config())


# -----------------------------------------------------------------------------
# Helpers de datos
# -----------------------------------------------------------------------------
async def seed_slabs(session, services, bands=None):
    slabs = await services.slabs.replace_slabs(session, bands or DEFAULT_BANDS, actor="test")
    await session.flush()
    return slabs


async def add_members(session, mess_id: str, count: int, *, status: str = "active") -> None:
    for i in range(count):
        session.add(MessMembership(mess_id=mess_id, user_id=f"{mess_id}-u{i}", status=status))
    await session.flush()


def sign_webhook(order_ref: str, gateway_transaction_id: str, status: str, secret: str = WEBHOOK_SECRET) -> str:
    return compute_gateway_signature(secret, order_ref, gateway_transaction_id, status)


@pytest.fixture
async def priced(session, services):
    """Tabla de precios por defecto: 1-10 → 100, 11-25 → 200, 26+ → 350."""
    return await seed_slabs(session, services)


@pytest.fixture
def members():
    return add_members


@pytest.fixture
def sign():
    return sign_webhook


# -----------------------------------------------------------------------------
# App FastAPI y cliente httpx
# -----------------------------------------------------------------------------
@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
async def client(app) -> AsyncIterator[AsyncClient]:
    """
    Cliente HTTP asíncrono contra la app con ASGITransport y gestión de
    startup/shutdown mediante asgi-lifespan.
    """
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as c:
            yield c


@pytest.fixture
def app_session_factory(app):
    """Session factory de la app (misma base que usan las rutas)."""
    return app.state.session_factory


@pytest.fixture
def make_token(settings):
    def _make(
        subject: str = "owner-1",
        *,
        mess_id: Optional[str] = "mess-1",
        role: UserRole = UserRole.mess_owner,
    ) -> str:
        extra = {"role": role.value}
        if mess_id:
            extra["mess_id"] = mess_id
        return create_access_token(settings, subject, **extra)

    return _make


@pytest.fixture
def owner_headers(make_token):
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def admin_headers(make_token):
    token = make_token("admin-1", mess_id=None, role=UserRole.admin)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def internal_headers():
    return {"Authorization": f"Bearer {INTERNAL_TOKEN}"}
