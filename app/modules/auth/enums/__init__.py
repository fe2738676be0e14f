# -*- coding: utf-8 -*-
"""
backend/app/modules/auth/enums/__init__.py
"""

from .role_enum import UserRole

__all__ = ["UserRole"]
