# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_billing.py

Objeto de configuración explícito para los componentes de facturación.

Se construye una sola vez al arrancar (BaseAppSettings.billing_config) y se
pasa a cada servicio por constructor. Es inmutable: ningún componente lee
variables de entorno ni singletons globales.

Autor: MessCredit
Fecha: 2026-03-02
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# Periodos de ciclo de facturación soportados
BillingPeriod = Literal["day", "week", "15days", "month", "3months", "6months", "year"]


class BillingConfig(BaseModel):
    """Parámetros de facturación por créditos."""

    model_config = ConfigDict(frozen=True)

    billing_period: BillingPeriod = "month"
    bill_due_days: int = Field(default=7, ge=0)

    # Prueba gratuita
    trial_enabled: bool = True
    trial_credits: int = Field(default=100, gt=0)
    trial_duration_days: int = Field(default=7, gt=0)

    # Ledger
    overdraft_reasons: frozenset[str] = frozenset({"leave_refund"})
    ledger_max_cas_retries: int = Field(default=5, ge=1)
    default_low_balance_threshold: int = Field(default=100, ge=0)

    # Ciclos / permisos
    waive_bills_during_trial: bool = True
    default_max_leave_days_per_cycle: int = Field(default=10, ge=0)

    # Pagos
    payment_order_ttl_minutes: int = Field(default=30, gt=0)
    price_per_credit_cents: int = Field(default=100, gt=0)
    currency: str = "INR"
    gateway_webhook_secret: str = ""

    def allows_overdraft(self, reason: str) -> bool:
        """True si la razón puede dejar el saldo por debajo de cero."""
        return str(getattr(reason, "value", reason)) in self.overdraft_reasons


__all__ = ["BillingConfig", "BillingPeriod"]
# Fin del archivo backend/app/shared/config/settings_billing.py
