# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/webhooks/__init__.py

Autor: MessCredit
Fecha: 2026-03-09
"""

from .handler import WebhookOutcome, handle_gateway_webhook

__all__ = ["WebhookOutcome", "handle_gateway_webhook"]
