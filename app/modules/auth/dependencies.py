# -*- coding: utf-8 -*-
"""
backend/app/modules/auth/dependencies.py

Dependencias de autenticación JWT para FastAPI.

Provee:
- Principal: identidad extraída del token (sub, mess_id, role)
- validate_jwt_token: Core logic para validar token (única fuente de verdad)
- get_current_principal / require_mess_owner / require_admin

NOTA: La autenticación de servicio interno (InternalServiceAuth) está en
app.shared.internal_auth para mantener separación de responsabilidades.

Autor: MessCredit
Fecha: 2026-03-08
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from .enums import UserRole
from .security import TokenDecodeError, decode_access_token, oauth2_scheme

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: UserRole
    mess_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": "invalid_token", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def validate_jwt_token(request: Request, token: str) -> Principal:
    """
    Valida un JWT y construye el Principal.

    Raises:
        HTTPException 401: token inválido, expirado o sin rol reconocido.
    """
    try:
        payload = decode_access_token(request.app.state.settings, token)
    except TokenDecodeError as e:
        raise _unauthorized(str(e)) from e

    try:
        role = UserRole(payload.get("role", UserRole.mess_owner.value))
    except ValueError as e:
        raise _unauthorized("Token with unknown role") from e

    mess_id = payload.get("mess_id")
    return Principal(
        user_id=str(payload["sub"]),
        role=role,
        mess_id=str(mess_id) if mess_id else None,
    )


async def get_current_principal(
    request: Request,
    token: str = Depends(oauth2_scheme),
) -> Principal:
    return validate_jwt_token(request, token)


async def require_mess_owner(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """
    Dueño de comedor con mess_id en el token.

    Raises:
        HTTPException 403: el token no trae mess_id o el rol no aplica
    """
    if principal.role != UserRole.mess_owner or not principal.mess_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "forbidden", "message": "Mess owner access required"},
        )
    return principal


async def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """
    Raises:
        HTTPException 403: Usuario no es admin
    """
    if not principal.is_admin:
        logger.warning("admin_access_denied user=%s", principal.user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "forbidden", "message": "Admin access required"},
        )
    return principal


__all__ = [
    "Principal",
    "validate_jwt_token",
    "get_current_principal",
    "require_mess_owner",
    "require_admin",
]
