# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/catalog/services.py

Catálogo de planes de compra de créditos.

- list_active_plans / resolve_plan: consumidos por comedores y por
  la creación de órdenes de pago.
- create/update/deactivate: administración (soft delete).
- seed_default_plans: siembra inicial en entornos vacíos (dev/tests).

Autor: MessCredit
Fecha: 2026-03-03
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.logging_config import get_audit_logger
from app.shared.database.repository import BaseRepository
from app.modules.billing.errors import PlanNotFound
from .models import CreditPurchasePlan

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()


# Planes por defecto para un catálogo vacío
DEFAULT_PLANS: List[dict] = [
    {
        "name": "Starter",
        "description": "Para comedores pequeños",
        "base_credits": 500,
        "bonus_credits": 0,
        "price_cents": 49900,
        "is_popular": False,
    },
    {
        "name": "Growth",
        "description": "El más elegido",
        "base_credits": 1500,
        "bonus_credits": 150,
        "price_cents": 139900,
        "is_popular": True,
    },
    {
        "name": "Scale",
        "description": "Para comedores con muchos miembros",
        "base_credits": 5000,
        "bonus_credits": 750,
        "price_cents": 449900,
        "is_popular": False,
    },
]

_MUTABLE_FIELDS = frozenset({
    "name", "description", "base_credits", "bonus_credits", "price_cents",
    "currency", "features", "validity_days", "is_active", "is_popular",
})


class CreditPurchaseCatalog:
    """Planes de compra de créditos."""

    def __init__(self, plan_repo: Optional[BaseRepository[CreditPurchasePlan]] = None):
        self.plan_repo = plan_repo or BaseRepository(CreditPurchasePlan)

    async def list_active_plans(self, session: AsyncSession) -> Sequence[CreditPurchasePlan]:
        """Planes activos ordenados por precio ascendente."""
        return await self.plan_repo.list(
            session,
            CreditPurchasePlan.is_active.is_(True),
            order_by=CreditPurchasePlan.price_cents.asc(),
        )

    async def list_plans(self, session: AsyncSession) -> Sequence[CreditPurchasePlan]:
        return await self.plan_repo.list(session, order_by=CreditPurchasePlan.price_cents.asc())

    async def resolve_plan(self, session: AsyncSession, plan_id: int) -> CreditPurchasePlan:
        """
        Plan activo por id.

        Raises:
            PlanNotFound: si no existe o está inactivo
        """
        plan = await self.plan_repo.get(session, plan_id)
        if plan is None or not plan.is_active:
            raise PlanNotFound(plan_id)
        return plan

    async def create_plan(
        self,
        session: AsyncSession,
        *,
        actor: Optional[str] = None,
        **fields: Any,
    ) -> CreditPurchasePlan:
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown plan fields: {sorted(unknown)}")
        plan = await self.plan_repo.create(session, **fields)
        audit_logger.info(
            "plan_created id=%s name=%s credits=%s price_cents=%s actor=%s",
            plan.id, plan.name, plan.total_credits, plan.price_cents, actor,
        )
        return plan

    async def update_plan(
        self,
        session: AsyncSession,
        plan_id: int,
        *,
        actor: Optional[str] = None,
        **changes: Any,
    ) -> CreditPurchasePlan:
        unknown = set(changes) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown plan fields: {sorted(unknown)}")
        plan = await self.plan_repo.get(session, plan_id)
        if plan is None:
            raise PlanNotFound(plan_id)
        await self.plan_repo.update(session, plan, **changes)
        audit_logger.info("plan_updated id=%s fields=%s actor=%s", plan.id, sorted(changes), actor)
        return plan

    async def deactivate_plan(
        self,
        session: AsyncSession,
        plan_id: int,
        *,
        actor: Optional[str] = None,
    ) -> CreditPurchasePlan:
        return await self.update_plan(session, plan_id, actor=actor, is_active=False)

    async def seed_default_plans(self, session: AsyncSession, currency: str) -> int:
        """Inserta DEFAULT_PLANS si la tabla está vacía. Devuelve cuántos creó."""
        count = await session.execute(select(func.count(CreditPurchasePlan.id)))
        if count.scalar_one() > 0:
            return 0
        for data in DEFAULT_PLANS:
            await self.plan_repo.create(session, currency=currency, **data)
        logger.info("Seeded %d default purchase plans", len(DEFAULT_PLANS))
        return len(DEFAULT_PLANS)


__all__ = ["CreditPurchaseCatalog", "DEFAULT_PLANS"]
