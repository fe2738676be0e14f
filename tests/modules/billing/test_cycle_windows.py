# -*- coding: utf-8 -*-
"""
Tests de ventanas de ciclo alineadas al calendario.
"""

from datetime import date

import pytest

from app.modules.billing.cycles import CycleWindow, cycle_window_for, next_window, previous_window


@pytest.mark.parametrize(
    "period, day, start, end",
    [
        ("day", date(2026, 3, 18), date(2026, 3, 18), date(2026, 3, 18)),
        # 2026-03-18 es miércoles; la semana va de domingo a sábado
        ("week", date(2026, 3, 18), date(2026, 3, 15), date(2026, 3, 21)),
        ("week", date(2026, 3, 15), date(2026, 3, 15), date(2026, 3, 21)),
        ("15days", date(2026, 2, 10), date(2026, 2, 1), date(2026, 2, 15)),
        ("15days", date(2026, 2, 20), date(2026, 2, 16), date(2026, 2, 28)),
        ("month", date(2024, 2, 10), date(2024, 2, 1), date(2024, 2, 29)),
        ("3months", date(2026, 5, 5), date(2026, 4, 1), date(2026, 6, 30)),
        ("6months", date(2026, 8, 1), date(2026, 7, 1), date(2026, 12, 31)),
        ("year", date(2026, 8, 1), date(2026, 1, 1), date(2026, 12, 31)),
    ],
)
def test_cycle_window_for(period, day, start, end):
    window = cycle_window_for(day, period)
    assert (window.start, window.end) == (start, end)
    assert window.contains(day)


def test_month_window_has_calendar_days():
    assert cycle_window_for(date(2026, 4, 9), "month").days == 30


def test_next_and_previous_windows_are_adjacent():
    window = cycle_window_for(date(2026, 3, 9), "month")
    assert next_window(window, "month") == CycleWindow(date(2026, 4, 1), date(2026, 4, 30))
    assert previous_window(window, "month") == CycleWindow(date(2026, 2, 1), date(2026, 2, 28))


def test_inverted_window_is_rejected():
    with pytest.raises(ValueError):
        CycleWindow(date(2026, 3, 2), date(2026, 3, 1))


def test_unknown_period_is_rejected():
    with pytest.raises(ValueError):
        cycle_window_for(date(2026, 3, 2), "fortnight")
