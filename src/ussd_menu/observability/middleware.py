"""Middleware HTTP: correlation_id e log de cada requisição do gateway."""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_HEADER = "x-correlation-id"

logger = logging.getLogger(__name__)

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id da requisição corrente (ou vazio)."""

    return _correlation_id.get()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Atribui correlation_id à requisição e registra sua conclusão.

    O id vem do header ``x-correlation-id`` quando o gateway o envia; caso
    contrário é gerado. É devolvido no mesmo header da resposta.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        token = _correlation_id.set(correlation_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            _log_request(request, response.status_code, started)
        finally:
            _correlation_id.reset(token)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


def _log_request(request: Request, status_code: int, started: float) -> None:
    logger.info(
        "http_request_completed",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
