"""Backend de sessão usando Redis (produção).

Cada sessão é um hash ``{prefix}:{session_id}``; valores são JSON.
O TTL é renovado a cada escrita.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ussd_menu.domain.protocols import AsyncSessionBackend
from ussd_menu.observability.logging import get_logger, mask_session_id

logger: logging.Logger = get_logger(__name__)


class RedisSessionBackend(AsyncSessionBackend):
    """Armazenamento em Redis via cliente ``redis.asyncio``."""

    def __init__(
        self,
        redis_client: Any,
        ttl_seconds: int = 180,
        key_prefix: str = "ussd:session",
    ) -> None:
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix

    def _key(self, session_id: str) -> str:
        return f"{self._key_prefix}:{session_id}"

    async def start(self, session_id: str) -> None:
        key = self._key(session_id)
        # hash vazio não existe no Redis; o marcador mantém a sessão viva
        await self._redis.hsetnx(key, "__started__", "1")
        await self._redis.expire(key, self._ttl_seconds)
        logger.debug(
            "Session started (Redis)",
            extra={"session_id": mask_session_id(session_id), "ttl_seconds": self._ttl_seconds},
        )

    async def get(self, session_id: str, key: str) -> Any:
        payload = await self._redis.hget(self._key(session_id), key)
        if payload is None:
            return None
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        return json.loads(payload)

    async def set(self, session_id: str, key: str, value: Any) -> None:  # noqa: A003
        redis_key = self._key(session_id)
        await self._redis.hset(redis_key, key, json.dumps(value))
        await self._redis.expire(redis_key, self._ttl_seconds)

    async def end(self, session_id: str) -> None:
        deleted = await self._redis.delete(self._key(session_id))
        if deleted:
            logger.debug(
                "Session ended (Redis)", extra={"session_id": mask_session_id(session_id)}
            )
