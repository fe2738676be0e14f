# -*- coding: utf-8 -*-
"""
backend/app/modules/auth/security.py

Módulo de seguridad para Auth en MessCredit:
- Esquema OAuth2 (Bearer)
- Creación / decodificación de JWT con la configuración explícita
  (secret, algoritmo y expiración vienen de BaseAppSettings)

La emisión de tokens pertenece al servicio de identidad; aquí solo se
valida la capacidad (sub, mess_id, role). create_access_token existe
para herramientas internas y tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt  # pip install "python-jose[cryptography]"

from app.shared.config.settings_base import BaseAppSettings

# -----------------------------------------------------------------------------
# Esquema OAuth2 para extraer el token de Authorization: Bearer <token>
# -----------------------------------------------------------------------------
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


# -----------------------------------------------------------------------------
# Manejo de JWT
# -----------------------------------------------------------------------------
class TokenDecodeError(Exception):
    """Error al decodificar/validar un token JWT."""


def create_access_token(
    settings: BaseAppSettings,
    subject: Union[str, int],
    expires_delta: Optional[timedelta] = None,
    **extra: Any,
) -> str:
    """
    Crea un JWT con claim 'sub' y metadatos opcionales en `extra`
    (p. ej. mess_id, role).
    """
    now = datetime.now(tz=timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode: Dict[str, Any] = {"sub": str(subject), "iat": int(now.timestamp()), "exp": int(expire.timestamp())}
    if extra:
        to_encode.update(extra)
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(settings: BaseAppSettings, token: str) -> Dict[str, Any]:
    """
    Decodifica y valida un JWT. Lanza TokenDecodeError si es inválido/expirado.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise TokenDecodeError("Token inválido o expirado") from e

    # Validación mínima del 'sub'
    sub = payload.get("sub")
    if sub is None or not str(sub).strip():
        raise TokenDecodeError("Token sin 'sub'")
    return payload
# Fin del archivo
