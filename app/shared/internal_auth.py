# -*- coding: utf-8 -*-
"""
backend/app/shared/internal_auth.py

Token de servicio para los endpoints /api/internal (cron externo y
operación manual de jobs).

El token se configura en APP_SERVICE_TOKEN y se envía como
`Authorization: Bearer <token>`. Es independiente de los JWT de usuario.

Autor: MessCredit
Fecha: 2026-03-08
"""

from __future__ import annotations

import logging
import secrets
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False, description="Token de servicio interno")


def _service_token(request: Request) -> Optional[str]:
    token = request.app.state.settings.internal_service_token
    return token.get_secret_value() if token is not None else None


async def require_internal_service_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> str:
    """
    Valida el token de servicio interno.

    Returns:
        Identificador del llamador para logs ("internal").

    Raises:
        HTTPException 503: el backend no tiene APP_SERVICE_TOKEN
        HTTPException 401: falta el header o no es Bearer
        HTTPException 403: token incorrecto
    """
    expected = _service_token(request)
    if not expected:
        logger.error("Internal endpoint called but APP_SERVICE_TOKEN is not configured path=%s", request.url.path)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "internal_auth_unconfigured", "message": "Internal endpoints are disabled"},
        )

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "missing_service_token", "message": "Bearer service token required"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not secrets.compare_digest(credentials.credentials.encode(), expected.encode()):
        logger.warning("Rejected internal call with invalid service token path=%s", request.url.path)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "invalid_service_token", "message": "Invalid service token"},
        )

    return "internal"


InternalServiceAuth = Annotated[str, Depends(require_internal_service_token)]


__all__ = ["require_internal_service_token", "InternalServiceAuth"]

# Fin del archivo backend/app/shared/internal_auth.py
