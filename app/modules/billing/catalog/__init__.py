# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/catalog/__init__.py

Catálogo de planes de compra de créditos.
"""

from .models import CreditPurchasePlan
from .services import CreditPurchaseCatalog, DEFAULT_PLANS

__all__ = ["CreditPurchasePlan", "CreditPurchaseCatalog", "DEFAULT_PLANS"]
