# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/errors.py

Taxonomía de errores del motor de facturación por créditos.

Cada error lleva un error_code estable (para la UI), un http_status que
usan los adaptadores HTTP y un dict `details` serializable. Los servicios
lanzan estos errores; solo la capa de rutas los traduce a respuestas.

Clasificación:
- Recuperables: InsufficientCredits (reintentar tras comprar créditos).
- Equivalentes a éxito: AlreadyUsed, AlreadyApplied (el adaptador responde
  200 con el registro existente).
- Fatales de seguridad: GatewaySignatureMismatch (sin efectos, auditado).
- Fatales de configuración/estado: NoSlabMatch, SlabConfigurationError,
  InvalidLeaveState, InvalidBillTransition.

Autor: MessCredit
Fecha: 2026-03-02
"""

from __future__ import annotations

from typing import Any, Optional


class BillingError(Exception):
    """Error base del dominio de facturación."""

    error_code: str = "billing_error"
    http_status: int = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"error_code": self.error_code, "message": self.message, **self.details}


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------
class InsufficientCredits(BillingError):
    error_code = "insufficient_credits"
    http_status = 402

    def __init__(self, mess_id: str, required: int, available: int):
        super().__init__(
            f"Insufficient credits: available={available}, required={required}",
            mess_id=mess_id,
            required=required,
            available=available,
        )
        self.mess_id = mess_id
        self.required = required
        self.available = available


class LedgerConflict(BillingError):
    """La actualización optimista del saldo no convergió tras N reintentos."""

    error_code = "ledger_conflict"
    http_status = 503


class AccountNotFound(BillingError):
    error_code = "account_not_found"
    http_status = 404


# ---------------------------------------------------------------------------
# Pricing / catálogo
# ---------------------------------------------------------------------------
class NoSlabMatch(BillingError):
    error_code = "no_slab_match"
    http_status = 422

    def __init__(self, active_user_count: int):
        super().__init__(
            f"No active credit slab covers {active_user_count} users",
            active_user_count=active_user_count,
        )
        self.active_user_count = active_user_count


class SlabConfigurationError(BillingError):
    error_code = "slab_configuration_error"
    http_status = 422


class SlabNotFound(BillingError):
    error_code = "slab_not_found"
    http_status = 404


class PlanNotFound(BillingError):
    error_code = "plan_not_found"
    http_status = 404

    def __init__(self, plan_id: Any):
        super().__init__(f"Purchase plan {plan_id} not found or inactive", plan_id=plan_id)
        self.plan_id = plan_id


# ---------------------------------------------------------------------------
# Prueba gratuita
# ---------------------------------------------------------------------------
class AlreadyUsed(BillingError):
    """La prueba gratuita ya fue activada para este comedor."""

    error_code = "trial_already_used"
    http_status = 200

    def __init__(self, mess_id: str, record: Optional[Any] = None):
        super().__init__(f"Free trial already used for mess {mess_id}", mess_id=mess_id)
        self.mess_id = mess_id
        self.record = record


class TrialUnavailable(BillingError):
    error_code = "trial_unavailable"
    http_status = 409


# ---------------------------------------------------------------------------
# Permisos (leave)
# ---------------------------------------------------------------------------
class InvalidLeaveState(BillingError):
    error_code = "invalid_leave_state"
    http_status = 409


class AlreadyApplied(BillingError):
    """El ajuste por permiso ya generó su reembolso (o lo consumió una factura)."""

    error_code = "leave_adjustment_already_applied"
    http_status = 200

    def __init__(self, adjustment: Any, transaction: Optional[Any] = None):
        super().__init__(
            f"Leave adjustment {getattr(adjustment, 'id', adjustment)} already applied",
            adjustment_id=getattr(adjustment, "id", None),
        )
        self.adjustment = adjustment
        self.transaction = transaction


class LeaveAdjustmentNotFound(BillingError):
    error_code = "leave_adjustment_not_found"
    http_status = 404


class LeaveRequestNotFound(BillingError):
    error_code = "leave_request_not_found"
    http_status = 404


# ---------------------------------------------------------------------------
# Facturas
# ---------------------------------------------------------------------------
class BillNotFound(BillingError):
    error_code = "bill_not_found"
    http_status = 404


class InvalidBillTransition(BillingError):
    error_code = "invalid_bill_transition"
    http_status = 409

    def __init__(self, bill_id: int, current: str, target: str):
        super().__init__(
            f"Bill {bill_id} cannot move from {current} to {target}",
            bill_id=bill_id,
            current_status=current,
            target_status=target,
        )


__all__ = [
    "BillingError",
    "InsufficientCredits",
    "LedgerConflict",
    "AccountNotFound",
    "NoSlabMatch",
    "SlabConfigurationError",
    "SlabNotFound",
    "PlanNotFound",
    "AlreadyUsed",
    "TrialUnavailable",
    "InvalidLeaveState",
    "AlreadyApplied",
    "LeaveAdjustmentNotFound",
    "LeaveRequestNotFound",
    "BillNotFound",
    "InvalidBillTransition",
]
# Fin del archivo backend/app/modules/billing/errors.py
