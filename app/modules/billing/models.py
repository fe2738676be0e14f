# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/models.py

Registro de modelos ORM de facturación.

Importar este módulo registra todas las tablas de billing en
Base.metadata (create_all en dev/tests).

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

from app.modules.billing.catalog.models import CreditPurchasePlan
from app.modules.billing.credits.models import CreditAccount, CreditTransaction
from app.modules.billing.cycles.models import Bill, MessMembership
from app.modules.billing.leave.models import LeaveAdjustment, MessLeaveRequest
from app.modules.billing.pricing.models import CreditSlab
from app.modules.billing.trial.models import FreeTrialRecord

__all__ = [
    "CreditPurchasePlan",
    "CreditAccount",
    "CreditTransaction",
    "Bill",
    "MessMembership",
    "LeaveAdjustment",
    "MessLeaveRequest",
    "CreditSlab",
    "FreeTrialRecord",
]
