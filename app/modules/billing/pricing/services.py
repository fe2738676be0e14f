# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/pricing/services.py

Servicio de slabs: carga la instantánea de slabs activos para el motor
de precios y administra su configuración (solo admin).

Toda mutación valida que el conjunto ACTIVO resultante siga siendo una
partición de [1, ...) antes de persistir.

Autor: MessCredit
Fecha: 2026-03-03
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.logging_config import get_audit_logger
from app.shared.database.repository import BaseRepository
from app.modules.billing.errors import SlabNotFound
from .engine import PricingEngine, SlabBand, validate_partition
from .models import CreditSlab

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()


class SlabService:
    """Administración de slabs y construcción del PricingEngine."""

    def __init__(self, slab_repo: Optional[BaseRepository[CreditSlab]] = None):
        self.slab_repo = slab_repo or BaseRepository(CreditSlab)

    async def list_slabs(
        self,
        session: AsyncSession,
        *,
        include_inactive: bool = False,
    ) -> Sequence[CreditSlab]:
        criteria = [] if include_inactive else [CreditSlab.is_active.is_(True)]
        return await self.slab_repo.list(session, *criteria, order_by=CreditSlab.min_users.asc())

    async def load_engine(self, session: AsyncSession) -> PricingEngine:
        """Instantánea de slabs activos lista para cálculos puros."""
        slabs = await self.list_slabs(session)
        return PricingEngine([SlabBand.from_model(s) for s in slabs])

    async def _active_bands(self, session: AsyncSession, *, excluding: Optional[int] = None) -> list[SlabBand]:
        slabs = await self.list_slabs(session)
        return [SlabBand.from_model(s) for s in slabs if s.id != excluding]

    async def _get(self, session: AsyncSession, slab_id: int) -> CreditSlab:
        slab = await self.slab_repo.get(session, slab_id, for_update=True)
        if slab is None:
            raise SlabNotFound(f"Slab {slab_id} not found", slab_id=slab_id)
        return slab

    async def create_slab(
        self,
        session: AsyncSession,
        *,
        min_users: int,
        max_users: Optional[int],
        cycle_cost: int,
        actor: Optional[str] = None,
    ) -> CreditSlab:
        candidate = SlabBand(min_users=min_users, max_users=max_users, cycle_cost=cycle_cost)
        validate_partition([*await self._active_bands(session), candidate])

        slab = await self.slab_repo.create(
            session,
            min_users=min_users,
            max_users=max_users,
            cycle_cost=cycle_cost,
            is_active=True,
        )
        audit_logger.info(
            "slab_created id=%s range=[%s,%s] cost=%s actor=%s",
            slab.id, min_users, max_users, cycle_cost, actor,
        )
        return slab

    async def update_slab(
        self,
        session: AsyncSession,
        slab_id: int,
        *,
        min_users: Optional[int] = None,
        max_users: Optional[int] = None,
        clear_max_users: bool = False,
        cycle_cost: Optional[int] = None,
        actor: Optional[str] = None,
    ) -> CreditSlab:
        slab = await self._get(session, slab_id)
        new_band = SlabBand(
            min_users=slab.min_users if min_users is None else min_users,
            max_users=None if clear_max_users else (slab.max_users if max_users is None else max_users),
            cycle_cost=slab.cycle_cost if cycle_cost is None else cycle_cost,
        )
        if slab.is_active:
            validate_partition([*await self._active_bands(session, excluding=slab.id), new_band])

        await self.slab_repo.update(
            session,
            slab,
            min_users=new_band.min_users,
            max_users=new_band.max_users,
            cycle_cost=new_band.cycle_cost,
        )
        audit_logger.info(
            "slab_updated id=%s range=[%s,%s] cost=%s actor=%s",
            slab.id, new_band.min_users, new_band.max_users, new_band.cycle_cost, actor,
        )
        return slab

    async def deactivate_slab(
        self,
        session: AsyncSession,
        slab_id: int,
        *,
        actor: Optional[str] = None,
    ) -> CreditSlab:
        slab = await self._get(session, slab_id)
        if not slab.is_active:
            return slab
        validate_partition(await self._active_bands(session, excluding=slab.id))

        await self.slab_repo.update(session, slab, is_active=False)
        audit_logger.info("slab_deactivated id=%s actor=%s", slab.id, actor)
        return slab

    async def replace_slabs(
        self,
        session: AsyncSession,
        bands: Sequence[SlabBand],
        *,
        actor: Optional[str] = None,
    ) -> Sequence[CreditSlab]:
        """
        Sustituye la tabla de precios completa de forma atómica.
        Los slabs anteriores quedan inactivos (historial).
        """
        ordered = validate_partition(bands)

        await session.execute(
            update(CreditSlab)
            .where(CreditSlab.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        created = [
            await self.slab_repo.create(
                session,
                min_users=band.min_users,
                max_users=band.max_users,
                cycle_cost=band.cycle_cost,
                is_active=True,
            )
            for band in ordered
        ]
        audit_logger.info("slabs_replaced count=%d actor=%s", len(created), actor)
        return created


__all__ = ["SlabService"]
