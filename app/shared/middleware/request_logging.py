# -*- coding: utf-8 -*-
"""
backend/app/shared/middleware/request_logging.py

Log de acceso por request: método, path, status, duración y request_id.

- El request_id se toma de X-Request-ID (o se genera) y se devuelve en la
  respuesta para correlacionar logs del cliente y del backend.
- 5xx se loguea como WARNING; /metrics y /health no se loguean.

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .exception_handler import get_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PREFIXES = ("/metrics", "/health")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Una línea de log al terminar cada request."""

    def __init__(self, app, quiet_prefixes: Iterable[str] = QUIET_PREFIXES):
        super().__init__(app)
        self.quiet_prefixes = tuple(quiet_prefixes)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = getattr(request.state, "request_id", None) or get_request_id(request)
        request.state.request_id = request_id

        path = request.url.path
        if path.startswith(self.quiet_prefixes):
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "request_completed request_id=%s method=%s path=%s status=%d duration_ms=%.2f",
            request_id, request.method, path, response.status_code, elapsed_ms,
        )
        return response


__all__ = ["RequestLoggingMiddleware", "REQUEST_ID_HEADER"]
