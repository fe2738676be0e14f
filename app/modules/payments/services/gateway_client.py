# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/gateway_client.py

Cliente de la pasarela de pagos para crear órdenes.

- HttpPaymentGateway: API REST de la pasarela vía httpx (basic auth con
  key_id/key_secret, timeouts explícitos).
- LocalPaymentGateway: genera referencias locales `order_<hex>` cuando no
  hay pasarela configurada (desarrollo y tests).

build_payment_gateway(settings) elige la implementación.

Autor: MessCredit
Fecha: 2026-03-07
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from app.shared.config.settings_base import BaseAppSettings
from app.modules.payments.errors import GatewayError

logger = logging.getLogger(__name__)

# Códigos HTTP que se consideran transitorios (un reintento)
TRANSIENT_HTTP_ERRORS = frozenset({429, 502, 503, 504})


@dataclass(frozen=True)
class GatewayOrder:
    """Orden creada en la pasarela."""
    reference: str
    amount_cents: int
    currency: str


class PaymentGateway(Protocol):
    async def create_order(self, *, amount_cents: int, currency: str, receipt: str) -> GatewayOrder:
        ...

    async def aclose(self) -> None:
        ...


class LocalPaymentGateway:
    """Referencias locales sin llamada externa."""

    async def create_order(self, *, amount_cents: int, currency: str, receipt: str) -> GatewayOrder:
        return GatewayOrder(
            reference=f"order_{uuid.uuid4().hex[:20]}",
            amount_cents=amount_cents,
            currency=currency,
        )

    async def aclose(self) -> None:
        return None


class HttpPaymentGateway:
    """Cliente REST de la pasarela (POST /orders)."""

    def __init__(
        self,
        base_url: str,
        key_id: str,
        key_secret: str,
        *,
        timeout_sec: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            auth=(key_id, key_secret),
            timeout=httpx.Timeout(timeout_sec, connect=5.0),
        )

    async def create_order(self, *, amount_cents: int, currency: str, receipt: str) -> GatewayOrder:
        payload = {"amount": amount_cents, "currency": currency, "receipt": receipt}

        response = None
        for attempt in range(2):
            try:
                response = await self._client.post("/orders", json=payload)
            except httpx.HTTPError as e:
                logger.warning("Gateway create_order transport error attempt=%d: %s", attempt + 1, e)
                if attempt == 0:
                    continue
                raise GatewayError("Payment gateway unreachable", receipt=receipt) from e

            if response.status_code in TRANSIENT_HTTP_ERRORS and attempt == 0:
                logger.warning("Gateway create_order transient status=%d, retrying", response.status_code)
                continue
            break

        if response is None or response.status_code >= 400:
            status = response.status_code if response is not None else None
            logger.error("Gateway create_order failed status=%s receipt=%s", status, receipt)
            raise GatewayError("Payment gateway rejected the order", status_code=status, receipt=receipt)

        data = response.json()
        reference = data.get("id")
        if not reference:
            raise GatewayError("Payment gateway response without order id", receipt=receipt)

        return GatewayOrder(
            reference=str(reference),
            amount_cents=int(data.get("amount", amount_cents)),
            currency=str(data.get("currency", currency)),
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def build_payment_gateway(settings: BaseAppSettings) -> PaymentGateway:
    """HTTP si hay URL y credenciales configuradas; local en otro caso."""
    if settings.gateway_api_url and settings.gateway_key_id and settings.gateway_key_secret:
        logger.info("Payment gateway: HTTP client base_url=%s", settings.gateway_api_url)
        return HttpPaymentGateway(
            settings.gateway_api_url,
            settings.gateway_key_id,
            settings.gateway_key_secret.get_secret_value(),
            timeout_sec=settings.gateway_timeout_sec,
        )
    logger.info("Payment gateway: local order references")
    return LocalPaymentGateway()


__all__ = [
    "GatewayOrder",
    "PaymentGateway",
    "LocalPaymentGateway",
    "HttpPaymentGateway",
    "build_payment_gateway",
]
