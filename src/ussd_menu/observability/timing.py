"""Instrumentação de latência por componente do motor."""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Generator
from typing import Any

from ussd_menu.observability.logging import get_logger

logger = get_logger(__name__)

# Gateways USSD derrubam a sessão se a resposta demora alguns segundos
SLOW_COMPONENT_MS = 1000.0


@contextlib.contextmanager
def timed(
    component: str,
    slow_ms: float = SLOW_COMPONENT_MS,
    **fields: Any,
) -> Generator[None, None, None]:
    """Mede o bloco e registra ``component_latency``.

    Em DEBUG no caso normal; em WARNING quando passa de ``slow_ms``.
    Campos extras (sem PII) vão junto no ``extra`` do log.

        with timed("route_resolution", provider="hubtel"):
            resolution = await resolver.resolve(route, menu)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        level = logging.WARNING if elapsed_ms > slow_ms else logging.DEBUG
        logger.log(
            level,
            "component_latency",
            extra={"component": component, "elapsed_ms": elapsed_ms, **fields},
        )
