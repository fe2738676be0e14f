# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/pricing/engine.py

Motor de precios puro: resuelve el costo de un ciclo a partir del número
de usuarios activos. No toca la base de datos; se construye con una
instantánea de los slabs activos.

Autor: MessCredit
Fecha: 2026-03-03
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from app.modules.billing.errors import NoSlabMatch, SlabConfigurationError


@dataclass(frozen=True)
class SlabBand:
    """Rango inclusivo de usuarios y su costo por ciclo."""
    min_users: int
    max_users: Optional[int]
    cycle_cost: int

    def covers(self, count: int) -> bool:
        if count < self.min_users:
            return False
        return self.max_users is None or count <= self.max_users

    @classmethod
    def from_model(cls, slab) -> "SlabBand":
        return cls(min_users=slab.min_users, max_users=slab.max_users, cycle_cost=slab.cycle_cost)


def validate_partition(bands: Iterable[SlabBand]) -> list[SlabBand]:
    """
    Verifica que los slabs cubran [1, ...) sin huecos ni traslapes.

    Returns:
        Los slabs ordenados por min_users.

    Raises:
        SlabConfigurationError: con el primer problema encontrado
    """
    ordered = sorted(bands, key=lambda b: b.min_users)
    if not ordered:
        return ordered

    for band in ordered:
        if band.min_users < 1:
            raise SlabConfigurationError("Slab min_users must be >= 1", min_users=band.min_users)
        if band.max_users is not None and band.max_users < band.min_users:
            raise SlabConfigurationError(
                f"Slab range [{band.min_users}, {band.max_users}] is inverted",
                min_users=band.min_users,
                max_users=band.max_users,
            )
        if band.cycle_cost < 0:
            raise SlabConfigurationError("Slab cost must be >= 0", min_users=band.min_users)

    if ordered[0].min_users != 1:
        raise SlabConfigurationError(
            f"Slabs must start at 1 user (first starts at {ordered[0].min_users})",
            gap_start=1,
            gap_end=ordered[0].min_users - 1,
        )

    for prev, nxt in zip(ordered, ordered[1:]):
        if prev.max_users is None:
            raise SlabConfigurationError(
                f"Open-ended slab starting at {prev.min_users} overlaps slab starting at {nxt.min_users}",
                min_users=nxt.min_users,
            )
        if nxt.min_users <= prev.max_users:
            raise SlabConfigurationError(
                f"Slabs [{prev.min_users}, {prev.max_users}] and "
                f"[{nxt.min_users}, {nxt.max_users}] overlap",
                min_users=nxt.min_users,
            )
        if nxt.min_users > prev.max_users + 1:
            raise SlabConfigurationError(
                f"Gap between {prev.max_users} and {nxt.min_users} users",
                gap_start=prev.max_users + 1,
                gap_end=nxt.min_users - 1,
            )
    return ordered


class PricingEngine:
    """
    Resolución de costo por ciclo.

    Regla: slabs ordenados ascendentemente por min_users; gana el primero
    cuyo rango contiene el conteo. Con 0 usuarios activos no hay nada
    que cobrar.
    """

    def __init__(self, bands: Sequence[SlabBand]):
        self._bands = tuple(sorted(bands, key=lambda b: b.min_users))

    @property
    def bands(self) -> tuple[SlabBand, ...]:
        return self._bands

    def resolve_cost(self, active_user_count: int) -> int:
        if active_user_count <= 0:
            return 0
        for band in self._bands:
            if band.covers(active_user_count):
                return band.cycle_cost
        raise NoSlabMatch(active_user_count)

    def marginal_cost(self, current_count: int) -> int:
        """Créditos extra por ciclo que implica sumar un usuario más."""
        return self.resolve_cost(current_count + 1) - self.resolve_cost(current_count)


__all__ = ["SlabBand", "PricingEngine", "validate_partition"]
