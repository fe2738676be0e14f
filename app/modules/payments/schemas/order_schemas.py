# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/order_schemas.py

Esquemas Pydantic para órdenes de pago y sus verificaciones.

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.modules.payments.enums import (
    PaymentOrderStatus,
    VerificationMethod,
    VerificationStatus,
)


class PaymentOrderCreateRequest(BaseModel):
    """
    Request para abrir una orden de compra de créditos.

    Se envía `plan_id` (recomendado: el backend resuelve precio y créditos
    desde el catálogo) o `credits` sueltos al precio unitario configurado,
    nunca ambos.
    """

    plan_id: Optional[int] = Field(default=None, gt=0)
    credits: Optional[int] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _plan_or_credits(self) -> "PaymentOrderCreateRequest":
        if (self.plan_id is None) == (self.credits is None):
            raise ValueError("Provide exactly one of 'plan_id' or 'credits'")
        return self


class PaymentOrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    mess_id: str
    plan_id: Optional[int] = None
    credits: int
    amount_cents: int
    currency: str
    gateway_order_ref: str
    status: PaymentOrderStatus
    failure_reason: Optional[str] = None
    expires_at: datetime
    verified_at: Optional[datetime] = None
    created_at: datetime


class ManualProofRequest(BaseModel):
    gateway_transaction_id: str = Field(min_length=1, max_length=128)
    proof_reference: str = Field(
        min_length=1,
        max_length=255,
        description="Llave opaca del comprobante en el blob store.",
    )


class RejectProofRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class PaymentVerificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    mess_id: str
    gateway_transaction_id: str
    method: VerificationMethod
    status: VerificationStatus
    proof_reference: Optional[str] = None
    submitted_by: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    credit_transaction_id: Optional[int] = None
    verified_at: Optional[datetime] = None
    created_at: datetime


__all__ = [
    "PaymentOrderCreateRequest",
    "PaymentOrderOut",
    "ManualProofRequest",
    "RejectProofRequest",
    "PaymentVerificationOut",
]

# Fin del archivo backend/app/modules/payments/schemas/order_schemas.py
