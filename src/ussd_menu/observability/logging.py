"""Logging estruturado (JSON) do motor e da API."""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

from ussd_menu.observability.middleware import get_correlation_id

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(correlation_id)s %(service)s %(environment)s"


class CorrelationIdFilter(logging.Filter):
    """Insere correlation_id, service e environment em cada record.

    Importante: telefone e texto digitado pelo usuário nunca vão para os logs;
    session_id só truncado (ver ``mask_session_id``).
    """

    def __init__(self, service_name: str, environment: str = "development") -> None:
        super().__init__()
        self._service_name = service_name
        self._environment = environment

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id()
        record.service = self._service_name
        record.environment = self._environment
        return True


def configure_logging(level: str, service_name: str, environment: str = "development") -> None:
    """Substitui os handlers do root por um único handler JSON.

    Níveis desconhecidos caem para INFO.
    """
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(resolved)
    handler.setFormatter(
        JsonFormatter(LOG_FORMAT, rename_fields={"levelname": "level", "name": "logger"})
    )
    handler.addFilter(CorrelationIdFilter(service_name, environment))

    root = logging.getLogger()
    root.setLevel(resolved)
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def mask_session_id(session_id: str | None) -> str:
    """Trunca o session_id para logs."""

    if not session_id:
        return ""
    return session_id[:8] + "..."
