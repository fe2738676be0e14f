# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/jobs/__init__.py

Jobs programados del módulo billing.

Autor: MessCredit
Fecha: 2026-03-09
"""

from .billing_jobs import (
    CYCLE_GENERATION_JOB_ID,
    ORDER_EXPIRY_JOB_ID,
    OVERDUE_SWEEP_JOB_ID,
    TRIAL_EXPIRY_JOB_ID,
    register_billing_jobs,
    run_cycle_generation,
    run_order_expiry,
    run_overdue_sweep,
    run_trial_expiry,
)

__all__ = [
    "CYCLE_GENERATION_JOB_ID",
    "ORDER_EXPIRY_JOB_ID",
    "OVERDUE_SWEEP_JOB_ID",
    "TRIAL_EXPIRY_JOB_ID",
    "register_billing_jobs",
    "run_cycle_generation",
    "run_order_expiry",
    "run_overdue_sweep",
    "run_trial_expiry",
]
