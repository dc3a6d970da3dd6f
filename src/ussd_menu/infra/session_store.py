"""Fábrica de backends de sessão conforme configuração."""

from __future__ import annotations

import logging
from typing import Any

from ussd_menu.config.settings import Settings
from ussd_menu.domain.protocols import AsyncSessionBackend
from ussd_menu.infra.session_store_memory import InMemorySessionBackend
from ussd_menu.infra.session_store_redis import RedisSessionBackend
from ussd_menu.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


def _create_redis_client(redis_url: str) -> Any:
    """Cria cliente Redis assíncrono a partir da URL."""
    from redis import asyncio as redis_asyncio

    return redis_asyncio.from_url(redis_url, decode_responses=True)


def create_session_backend(
    settings: Settings,
    redis_client: Any | None = None,
) -> AsyncSessionBackend:
    """Seleciona o backend de sessão.

    Args:
        settings: configurações (session_backend, redis_url, ttl)
        redis_client: cliente já criado (testes/injeção)

    Raises:
        ValueError: backend desconhecido ou redis sem REDIS_URL
    """
    backend = settings.session_backend.lower()

    if backend == "memory":
        return InMemorySessionBackend(ttl_seconds=settings.session_ttl_seconds)

    if backend == "redis":
        if redis_client is None:
            if not settings.redis_url:
                raise ValueError("session_backend=redis requer REDIS_URL configurado")
            redis_client = _create_redis_client(settings.redis_url)
        logger.info("session_backend_selected", extra={"backend": "redis"})
        return RedisSessionBackend(
            redis_client,
            ttl_seconds=settings.session_ttl_seconds,
            key_prefix=settings.session_key_prefix,
        )

    raise ValueError(f"session_backend desconhecido: {backend}")
