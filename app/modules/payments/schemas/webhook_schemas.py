# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/webhook_schemas.py

Payload del webhook de la pasarela y su acuse.

La pasarela envía camelCase:
    {"gatewayTransactionId": "...", "orderId": "<ref de la orden>",
     "status": "captured" | "failed", "signature": "<hex>"}

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.modules.payments.enums import GatewayPaymentStatus


class GatewayWebhookPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    gateway_transaction_id: str = Field(alias="gatewayTransactionId", min_length=1, max_length=128)
    order_ref: str = Field(alias="orderId", min_length=1, max_length=128)
    status: GatewayPaymentStatus
    signature: str = Field(min_length=1, max_length=256)
    failure_reason: Optional[str] = Field(default=None, alias="failureReason", max_length=500)


class WebhookAckResponse(BaseModel):
    received: bool = True
    status: str
    order_id: int
    verification_id: Optional[int] = None
    duplicate: bool = False


__all__ = ["GatewayWebhookPayload", "WebhookAckResponse"]
