# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/pricing/__init__.py

Motor de precios por slabs de usuarios activos.

Autor: MessCredit
Fecha: 2026-03-03
"""

from .models import CreditSlab
from .engine import PricingEngine, SlabBand, validate_partition
from .services import SlabService

__all__ = [
    "CreditSlab",
    "PricingEngine",
    "SlabBand",
    "validate_partition",
    "SlabService",
]
