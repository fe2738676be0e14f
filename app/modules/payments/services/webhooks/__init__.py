# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/webhooks/__init__.py
"""

from .signature_verification import (
    compute_gateway_signature,
    signed_message,
    verify_gateway_signature,
)

__all__ = ["compute_gateway_signature", "signed_message", "verify_gateway_signature"]
