# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/leave/__init__.py

Ajustes de créditos por permisos de miembros.
"""

from .calculator import LeaveRefund, calculate_leave_refund, overlap_days
from .models import LeaveAdjustment, MessLeaveRequest
from .schemas import LeavePolicy, LeaveRequest, LeaveRequestStatus
from .services import LeaveAdjustmentCalculator

__all__ = [
    "LeaveRefund",
    "calculate_leave_refund",
    "overlap_days",
    "LeaveAdjustment",
    "MessLeaveRequest",
    "LeavePolicy",
    "LeaveRequest",
    "LeaveRequestStatus",
    "LeaveAdjustmentCalculator",
]
