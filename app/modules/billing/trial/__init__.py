# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/trial/__init__.py

Prueba gratuita única por comedor.
"""

from .models import FreeTrialRecord
from .services import FreeTrialManager, TrialEligibility

__all__ = ["FreeTrialRecord", "FreeTrialManager", "TrialEligibility"]
