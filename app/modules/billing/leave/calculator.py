# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/leave/calculator.py

Cálculo puro del reembolso por permiso.

    daily  = cycle_cost // days_in_cycle      (división entera)
    refund = daily * min(leave_days, max_leave_days_per_cycle)

El residuo de la división nunca se reembolsa: con 310 créditos en 30 días
el valor diario es 10 y 10 créditos del ciclo no son reembolsables.

Autor: MessCredit
Fecha: 2026-03-04
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class LeaveRefund:
    daily_credit_value: int
    leave_days: int
    credited_days: int
    refund_amount: int


def overlap_days(start: date, end: date, window_start: date, window_end: date) -> int:
    """Días (inclusivos) en que [start, end] se cruza con la ventana."""
    lo = max(start, window_start)
    hi = min(end, window_end)
    if hi < lo:
        return 0
    return (hi - lo).days + 1


def calculate_leave_refund(
    cycle_cost: int,
    days_in_cycle: int,
    leave_days: int,
    max_leave_days: int,
) -> LeaveRefund:
    """
    Reembolso en créditos para `leave_days` días de permiso.

    Raises:
        ValueError: días de ciclo no positivos o valores negativos
    """
    if days_in_cycle <= 0:
        raise ValueError("days_in_cycle must be positive")
    if cycle_cost < 0 or leave_days < 0 or max_leave_days < 0:
        raise ValueError("cycle_cost, leave_days and max_leave_days must be >= 0")

    daily = cycle_cost // days_in_cycle
    credited = min(leave_days, max_leave_days)
    return LeaveRefund(
        daily_credit_value=daily,
        leave_days=leave_days,
        credited_days=credited,
        refund_amount=daily * credited,
    )


__all__ = ["LeaveRefund", "overlap_days", "calculate_leave_refund"]
