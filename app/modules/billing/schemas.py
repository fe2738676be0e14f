# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/schemas.py

Esquemas Pydantic para las rutas HTTP de facturación por créditos.

Los servicios devuelven modelos ORM o dataclasses; estos esquemas los
serializan con from_attributes. Los requests se validan aquí y llegan
tipados al núcleo.

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.modules.billing.credits.enums import CreditAccountStatus, CreditTxReason
from app.modules.billing.cycles.enums import BillStatus
from app.modules.billing.leave.schemas import LeaveRequestStatus


class _ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Cuenta y ledger
# ---------------------------------------------------------------------------
class AccountSummaryResponse(_ORMModel):
    """Resumen de la cuenta de créditos del comedor."""

    mess_id: str
    balance: int
    status: CreditAccountStatus
    auto_renewal: bool
    billing_period: str
    low_balance_threshold: int
    is_low_balance: bool
    max_leave_days_per_cycle: Optional[int] = None


class AutoRenewalRequest(BaseModel):
    enabled: bool = Field(description="Cobrar automáticamente cada factura generada.")


class LowBalanceThresholdRequest(BaseModel):
    threshold: int = Field(ge=0)


class TransactionOut(_ORMModel):
    id: int
    delta: int
    reason: CreditTxReason
    reference_id: str
    balance_after: int
    description: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="tx_metadata")
    created_at: datetime


class TransactionsPageResponse(_ORMModel):
    items: list[TransactionOut]
    total: int
    limit: int
    offset: int
    has_more: bool


class ReasonTotalOut(_ORMModel):
    reason: CreditTxReason
    total: int
    count: int


class UsageReportResponse(_ORMModel):
    mess_id: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    balance: int
    credits_added: int
    credits_used: int
    by_reason: list[ReasonTotalOut]


class LowBalanceResponse(_ORMModel):
    mess_id: str
    balance: int
    threshold: int
    is_low: bool
    cycle_cost: Optional[int] = None
    estimated_cycles_remaining: Optional[int] = None


# ---------------------------------------------------------------------------
# Catálogo
# ---------------------------------------------------------------------------
class PlanOut(_ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    base_credits: int
    bonus_credits: int
    total_credits: int
    price_cents: int
    currency: str
    features: list[Any] = Field(default_factory=list)
    validity_days: Optional[int] = None
    is_active: bool
    is_popular: bool


class PlanCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None
    base_credits: int = Field(gt=0)
    bonus_credits: int = Field(default=0, ge=0)
    price_cents: int = Field(gt=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)
    features: list[str] = Field(default_factory=list)
    validity_days: Optional[int] = Field(default=None, gt=0)
    is_popular: bool = False


class PlanUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    base_credits: Optional[int] = Field(default=None, gt=0)
    bonus_credits: Optional[int] = Field(default=None, ge=0)
    price_cents: Optional[int] = Field(default=None, gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    features: Optional[list[str]] = None
    validity_days: Optional[int] = Field(default=None, gt=0)
    is_active: Optional[bool] = None
    is_popular: Optional[bool] = None


# ---------------------------------------------------------------------------
# Prueba gratuita
# ---------------------------------------------------------------------------
class TrialRecordOut(_ORMModel):
    mess_id: str
    credits_granted: int
    activated_at: datetime
    expires_at: datetime
    expired_at: Optional[datetime] = None


class TrialEligibilityResponse(_ORMModel):
    eligible: bool
    reason: str
    trial_credits: int
    trial_duration_days: int
    record: Optional[TrialRecordOut] = None


class TrialActivationResponse(BaseModel):
    trial: Optional[TrialRecordOut] = None
    already_used: bool = False
    balance: int


# ---------------------------------------------------------------------------
# Slabs
# ---------------------------------------------------------------------------
class SlabIn(BaseModel):
    min_users: int = Field(ge=1)
    max_users: Optional[int] = Field(default=None, ge=1, description="null = sin límite superior")
    cycle_cost: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_range(self) -> "SlabIn":
        if self.max_users is not None and self.max_users < self.min_users:
            raise ValueError("max_users must be >= min_users")
        return self


class SlabUpdateRequest(BaseModel):
    min_users: Optional[int] = Field(default=None, ge=1)
    max_users: Optional[int] = Field(default=None, ge=1)
    clear_max_users: bool = False
    cycle_cost: Optional[int] = Field(default=None, ge=0)


class SlabReplaceRequest(BaseModel):
    slabs: list[SlabIn] = Field(min_length=1)


class SlabOut(_ORMModel):
    id: int
    min_users: int
    max_users: Optional[int] = None
    cycle_cost: int
    is_active: bool


class CostQuoteResponse(BaseModel):
    active_user_count: int
    cycle_cost: int
    marginal_cost: int


# ---------------------------------------------------------------------------
# Facturas
# ---------------------------------------------------------------------------
class BillOut(_ORMModel):
    id: int
    mess_id: str
    cycle_start: date
    cycle_end: date
    active_user_count: int
    slab_cost: int
    leave_adjustment_total: int
    net_amount: int
    status: BillStatus
    status_reason: Optional[str] = None
    due_date: date
    debit_transaction_id: Optional[int] = None
    paid_at: Optional[datetime] = None
    overdue_at: Optional[datetime] = None
    waived_at: Optional[datetime] = None
    waived_by: Optional[str] = None
    created_at: datetime


class BillPreviewResponse(_ORMModel):
    mess_id: str
    cycle_start: date
    cycle_end: date
    active_user_count: int
    slab_cost: int
    leave_adjustment_total: int
    net_amount: int
    balance: int
    auto_renewal: bool
    sufficient_balance: bool
    existing_bill_id: Optional[int] = None


class GenerateBillRequest(BaseModel):
    """Genera la factura del ciclo que contiene `cycle_date` (hoy por defecto)."""

    cycle_date: Optional[date] = None
    active_user_count: Optional[int] = Field(default=None, ge=0)


class WaiveBillRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=64)


# ---------------------------------------------------------------------------
# Permisos (leave)
# ---------------------------------------------------------------------------
class LeaveAdjustmentRequest(BaseModel):
    """
    Solicitud registrada por el módulo de membresías. El costo del ciclo,
    la ventana y el tope de días se calculan en el servidor.
    """

    leave_request_id: str = Field(min_length=1, max_length=64)


class LeaveCapRequest(BaseModel):
    max_leave_days_per_cycle: Optional[int] = Field(
        default=None,
        ge=0,
        description="Tope de días reembolsables por miembro y ciclo; null usa el valor por defecto.",
    )


class LeaveRevokeRequest(BaseModel):
    leave_status: LeaveRequestStatus

    @field_validator("leave_status")
    @classmethod
    def _not_approved(cls, value: LeaveRequestStatus) -> LeaveRequestStatus:
        if value == LeaveRequestStatus.APPROVED:
            raise ValueError("leave_status must be rejected, cancelled or pending")
        return value


class LeaveAdjustmentOut(_ORMModel):
    id: int
    leave_request_id: str
    membership_id: str
    mess_id: str
    leave_status: LeaveRequestStatus
    leave_start: date
    leave_end: date
    cycle_start: date
    cycle_end: date
    cycle_cost: int
    days_in_cycle: int
    leave_days_in_cycle: int
    credited_days: int
    daily_credit_value: int
    refund_amount: int
    applied: bool
    applied_at: Optional[datetime] = None
    transaction_id: Optional[int] = None
    bill_id: Optional[int] = None


class LeaveApplyResponse(BaseModel):
    adjustment: LeaveAdjustmentOut
    transaction: Optional[TransactionOut] = None
    already_applied: bool = False


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------
class CreditAdjustmentRequest(BaseModel):
    mess_id: str = Field(min_length=1, max_length=64)
    delta: int
    idempotency_key: str = Field(min_length=1, max_length=128)
    description: str = Field(min_length=1, max_length=500)

    @field_validator("delta")
    @classmethod
    def _nonzero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("delta cannot be zero")
        return value


class CreditAdjustmentResponse(BaseModel):
    transaction: TransactionOut
    balance: int
    created: bool


class BalanceAuditResponse(_ORMModel):
    mess_id: str
    cached: int
    folded: int
    consistent: bool


class BillingAnalyticsResponse(_ORMModel):
    accounts_by_status: dict[str, int]
    total_outstanding_credits: int
    by_reason: list[ReasonTotalOut]
    bills_by_status: dict[str, int]


# ---------------------------------------------------------------------------
# Jobs internos
# ---------------------------------------------------------------------------
class JobRunResponse(BaseModel):
    job_id: str
    result: dict[str, Any]


__all__ = [
    "AccountSummaryResponse",
    "AutoRenewalRequest",
    "LowBalanceThresholdRequest",
    "TransactionOut",
    "TransactionsPageResponse",
    "ReasonTotalOut",
    "UsageReportResponse",
    "LowBalanceResponse",
    "PlanOut",
    "PlanCreateRequest",
    "PlanUpdateRequest",
    "TrialRecordOut",
    "TrialEligibilityResponse",
    "TrialActivationResponse",
    "SlabIn",
    "SlabUpdateRequest",
    "SlabReplaceRequest",
    "SlabOut",
    "CostQuoteResponse",
    "BillOut",
    "BillPreviewResponse",
    "GenerateBillRequest",
    "WaiveBillRequest",
    "LeaveAdjustmentRequest",
    "LeaveCapRequest",
    "LeaveRevokeRequest",
    "LeaveAdjustmentOut",
    "LeaveApplyResponse",
    "CreditAdjustmentRequest",
    "CreditAdjustmentResponse",
    "BalanceAuditResponse",
    "BillingAnalyticsResponse",
    "JobRunResponse",
]

# Fin del archivo backend/app/modules/billing/schemas.py
