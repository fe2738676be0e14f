# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/reports/__init__.py

Reportes de uso, historial y analítica de facturación.
"""

from .services import (
    BillingAnalytics,
    BillingReports,
    LowBalanceStatus,
    ReasonTotal,
    TransactionsPage,
    UsageReport,
)

__all__ = [
    "BillingAnalytics",
    "BillingReports",
    "LowBalanceStatus",
    "ReasonTotal",
    "TransactionsPage",
    "UsageReport",
]
