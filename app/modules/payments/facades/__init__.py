# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/__init__.py

Fachadas de alto nivel del módulo Payments (orquestación para rutas HTTP).

Autor: MessCredit
Fecha: 2026-03-09
"""

from .webhooks import WebhookOutcome, handle_gateway_webhook

__all__ = ["WebhookOutcome", "handle_gateway_webhook"]
