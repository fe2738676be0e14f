# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/leave/schemas.py

Registros tipados de entrada para el cálculo de permisos.

Se validan en la frontera (rutas HTTP o el módulo de membresías que los
construye); el calculador asume datos ya validados.

Autor: MessCredit
Fecha: 2026-03-04
"""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LeaveRequestStatus(str, Enum):
    """Estado de una solicitud de permiso (propiedad del módulo de membresías)."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class LeaveRequest(BaseModel):
    """Solicitud de permiso de un miembro: rango inclusivo de días."""

    model_config = ConfigDict(frozen=True)

    leave_request_id: str = Field(min_length=1, max_length=64)
    membership_id: str = Field(min_length=1, max_length=64)
    mess_id: str = Field(min_length=1, max_length=64)
    start_date: date
    end_date: date
    status: LeaveRequestStatus

    @model_validator(mode="after")
    def _check_range(self) -> "LeaveRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class LeavePolicy(BaseModel):
    """Parámetros del plan de comidas para el ciclo en que cae el permiso."""

    model_config = ConfigDict(frozen=True)

    cycle_cost: int = Field(ge=0, description="Créditos que cuesta el ciclo al miembro")
    cycle_start: date
    cycle_end: date
    max_leave_days_per_cycle: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_cycle(self) -> "LeavePolicy":
        if self.cycle_end < self.cycle_start:
            raise ValueError("cycle_end must be on or after cycle_start")
        return self

    @property
    def days_in_cycle(self) -> int:
        return (self.cycle_end - self.cycle_start).days + 1


__all__ = ["LeaveRequestStatus", "LeaveRequest", "LeavePolicy"]
