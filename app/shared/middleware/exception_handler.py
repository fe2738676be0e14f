# -*- coding: utf-8 -*-
"""
backend/app/shared/middleware/exception_handler.py

Manejo de errores HTTP.

- JSONExceptionMiddleware: excepciones no manejadas -> JSON 500 con
  error_code y request_id (nunca text/plain).
- billing_error_handler: BillingError -> {"detail": {error_code, message, ...}}
  con el http_status declarado por el error.

Autor: MessCredit
Fecha: 2026-03-09
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.modules.billing.errors import BillingError
from app.shared.utils.json_response import UTF8JSONResponse, json_response_utf8

logger = logging.getLogger(__name__)

# Header para request ID (proxy, nginx, etc.)
REQUEST_ID_HEADERS = ["x-request-id", "x-correlation-id"]


def get_request_id(request: Request) -> str:
    """Extrae request_id de headers o genera uno nuevo."""
    for header in REQUEST_ID_HEADERS:
        value = request.headers.get(header)
        if value:
            return value
    return uuid.uuid4().hex[:16]


class JSONExceptionMiddleware(BaseHTTPMiddleware):
    """
    Middleware que captura excepciones no manejadas y devuelve JSON.

    Garantiza:
    - Content-Type: application/json
    - error_code estable para UI
    - request_id para correlación de logs
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = getattr(request.state, "request_id", None) or get_request_id(request)
        request.state.request_id = request_id

        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                "unhandled_exception request_id=%s method=%s path=%s error=%r",
                request_id,
                request.method,
                request.url.path,
                e,
            )
            return json_response_utf8(
                status_code=500,
                content={
                    "detail": {
                        "error_code": "INTERNAL_SERVER_ERROR",
                        "message": "Internal server error",
                        "request_id": request_id,
                    }
                },
                headers={"X-Request-ID": request_id},
            )


async def billing_error_handler(request: Request, exc: BillingError) -> UTF8JSONResponse:
    if exc.http_status >= 500:
        logger.error("billing_error path=%s code=%s message=%s", request.url.path, exc.error_code, exc.message)
    else:
        logger.info("billing_error path=%s code=%s message=%s", request.url.path, exc.error_code, exc.message)
    return json_response_utf8({"detail": exc.to_dict()}, status_code=exc.http_status)


async def value_error_handler(request: Request, exc: ValueError) -> UTF8JSONResponse:
    return json_response_utf8(
        {"detail": {"error_code": "invalid_request", "message": str(exc)}},
        status_code=422,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BillingError, billing_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)


__all__ = [
    "JSONExceptionMiddleware",
    "get_request_id",
    "billing_error_handler",
    "register_exception_handlers",
]
