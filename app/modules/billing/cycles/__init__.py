# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/cycles/__init__.py

Ciclos de facturación: ventanas, facturas y su liquidación.
"""

from .enums import BILL_TRANSITIONS, BillStatus, BillStatusReason, can_transition
from .models import ACTIVE_MEMBERSHIP_STATUS, Bill, MessMembership
from .services import BillingCycleProcessor, BillPreview, CycleRunSummary
from .windows import CycleWindow, cycle_window_for, next_window, previous_window

__all__ = [
    "BILL_TRANSITIONS",
    "BillStatus",
    "BillStatusReason",
    "can_transition",
    "ACTIVE_MEMBERSHIP_STATUS",
    "Bill",
    "MessMembership",
    "BillingCycleProcessor",
    "BillPreview",
    "CycleRunSummary",
    "CycleWindow",
    "cycle_window_for",
    "next_window",
    "previous_window",
]
