# -*- coding: utf-8 -*-
"""
backend/app/modules/auth/__init__.py

Auth package public API (verificación de capacidad por JWT):

Expone:
- UserRole
- Principal y dependencias (get_current_principal, require_mess_owner, require_admin)
- create_access_token / decode_access_token
"""

from .enums import UserRole
from .dependencies import (
    Principal,
    get_current_principal,
    require_admin,
    require_mess_owner,
    validate_jwt_token,
)
from .security import TokenDecodeError, create_access_token, decode_access_token

__all__ = [
    "UserRole",
    "Principal",
    "get_current_principal",
    "require_admin",
    "require_mess_owner",
    "validate_jwt_token",
    "TokenDecodeError",
    "create_access_token",
    "decode_access_token",
]
