# -*- coding: utf-8 -*-
"""
backend/app/shared/database/repository.py

Repositorio base para operaciones async con SQLAlchemy.

Autor: MessCredit
Fecha: 2026-03-02
"""

from typing import Any, Type, TypeVar, Generic, Sequence, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")  # modelo ORM


class BaseRepository(Generic[T]):
    """Repositorio asincrónico base para CRUD común."""

    def __init__(self, model: Type[T]):
        self.model = model

    # -------------------------------------------------------------
    # CRUD básico
    # -------------------------------------------------------------
    async def get(
        self,
        session: AsyncSession,
        obj_id: Any,
        *,
        for_update: bool = False,
    ) -> Optional[T]:
        if not for_update:
            return await session.get(self.model, obj_id)
        stmt = select(self.model).where(self.model.id == obj_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list(self, session: AsyncSession, *criteria, order_by=None) -> Sequence[T]:
        stmt = select(self.model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def create(self, session: AsyncSession, **kwargs) -> T:
        obj = self.model(**kwargs)
        session.add(obj)
        await session.flush()
        return obj

    async def update(self, session: AsyncSession, obj: T, **changes) -> T:
        for key, value in changes.items():
            setattr(obj, key, value)
        await session.flush()
        return obj

# Fin del archivo backend/app/shared/database/repository.py
