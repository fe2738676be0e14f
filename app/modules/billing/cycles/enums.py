# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/cycles/enums.py

Estados de factura y transiciones permitidas.

Autor: MessCredit
Fecha: 2026-03-05
"""

from enum import Enum


class BillStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    WAIVED = "waived"


class BillStatusReason(str, Enum):
    """Motivo visible de un estado no pagado (o de un waiver)."""
    AUTO_RENEWAL_DISABLED = "auto_renewal_disabled"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    TRIAL_ACTIVE = "trial_active"
    PAST_DUE = "past_due"
    ADMIN_WAIVER = "admin_waiver"


# paid y waived son terminales
BILL_TRANSITIONS: dict[BillStatus, frozenset[BillStatus]] = {
    BillStatus.PENDING: frozenset({BillStatus.PAID, BillStatus.OVERDUE, BillStatus.WAIVED}),
    BillStatus.OVERDUE: frozenset({BillStatus.PAID, BillStatus.WAIVED}),
    BillStatus.PAID: frozenset(),
    BillStatus.WAIVED: frozenset(),
}


def can_transition(current: BillStatus, target: BillStatus) -> bool:
    return target in BILL_TRANSITIONS[current]


__all__ = ["BillStatus", "BillStatusReason", "BILL_TRANSITIONS", "can_transition"]
