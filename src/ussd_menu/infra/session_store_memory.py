"""Backend de sessão em memória (apenas dev/testes)."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from ussd_menu.domain.protocols import AsyncSessionBackend
from ussd_menu.observability.logging import get_logger, mask_session_id

logger: logging.Logger = get_logger(__name__)


class InMemorySessionBackend(AsyncSessionBackend):
    """Armazenamento em memória (não usar em produção).

    - Não persiste entre restarts
    - Não é compartilhado entre processos
    """

    def __init__(self, ttl_seconds: int = 180) -> None:
        self._ttl_seconds = ttl_seconds
        self._sessions: dict[str, tuple[dict[str, Any], float]] = {}

    def _expire_at(self) -> float:
        return datetime.now(tz=UTC).timestamp() + self._ttl_seconds

    def _load(self, session_id: str) -> dict[str, Any] | None:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        data, expire_at = entry
        if datetime.now(tz=UTC).timestamp() > expire_at:
            del self._sessions[session_id]
            logger.debug(
                "Session expired (in-memory)",
                extra={"session_id": mask_session_id(session_id)},
            )
            return None
        return data

    async def start(self, session_id: str) -> None:
        if self._load(session_id) is None:
            self._sessions[session_id] = ({}, self._expire_at())
            logger.debug(
                "Session started (in-memory)",
                extra={"session_id": mask_session_id(session_id), "ttl_seconds": self._ttl_seconds},
            )

    async def get(self, session_id: str, key: str) -> Any:
        data = self._load(session_id)
        if data is None:
            return None
        return data.get(key)

    async def set(self, session_id: str, key: str, value: Any) -> None:  # noqa: A003
        data = self._load(session_id)
        if data is None:
            data = {}
        data[key] = value
        self._sessions[session_id] = (data, self._expire_at())

    async def end(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.debug(
                "Session ended (in-memory)",
                extra={"session_id": mask_session_id(session_id)},
            )

    def snapshot(self, session_id: str) -> dict[str, Any] | None:
        """Cópia do conteúdo da sessão (inspeção em testes)."""
        data = self._load(session_id)
        return dict(data) if data is not None else None
