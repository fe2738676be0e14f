# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/cycles/windows.py

Ventanas de ciclo alineadas al calendario.

- day: el propio día
- week: domingo a sábado
- 15days: 1-15 y 16-fin de mes
- month / 3months / 6months / year: meses calendario, trimestres,
  semestres y año natural

Autor: MessCredit
Fecha: 2026-03-05
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from app.shared.config.settings_billing import BillingPeriod

_MONTH_SPANS = {"month": 1, "3months": 3, "6months": 6, "year": 12}


@dataclass(frozen=True)
class CycleWindow:
    """Rango de fechas inclusivo [start, end] de un ciclo."""
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("cycle window end must be >= start")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def _last_day(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def cycle_window_for(day: date, period: BillingPeriod) -> CycleWindow:
    """Ventana del periodo que contiene `day`."""
    if period == "day":
        return CycleWindow(day, day)

    if period == "week":
        # weekday(): lunes=0 ... domingo=6
        start = day - timedelta(days=(day.weekday() + 1) % 7)
        return CycleWindow(start, start + timedelta(days=6))

    if period == "15days":
        if day.day <= 15:
            return CycleWindow(day.replace(day=1), day.replace(day=15))
        return CycleWindow(day.replace(day=16), _last_day(day.year, day.month))

    span = _MONTH_SPANS.get(period)
    if span is None:
        raise ValueError(f"Unsupported billing period: {period}")
    first_month = ((day.month - 1) // span) * span + 1
    return CycleWindow(
        date(day.year, first_month, 1),
        _last_day(day.year, first_month + span - 1),
    )


def next_window(window: CycleWindow, period: BillingPeriod) -> CycleWindow:
    return cycle_window_for(window.end + timedelta(days=1), period)


def previous_window(window: CycleWindow, period: BillingPeriod) -> CycleWindow:
    return cycle_window_for(window.start - timedelta(days=1), period)


__all__ = ["CycleWindow", "cycle_window_for", "next_window", "previous_window"]
