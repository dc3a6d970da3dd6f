"""Contrato assíncrono canônico do backend de sessão.

Backends de callback ou síncronos são traduzidos para este contrato pelo
SessionAdapter no momento da configuração.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AsyncSessionBackend(ABC):
    """Armazenamento chave-valor escopado por session_id."""

    @abstractmethod
    async def start(self, session_id: str) -> None:
        """Garante que a sessão exista (idempotente)."""
        ...

    @abstractmethod
    async def get(self, session_id: str, key: str) -> Any:
        """Retorna o valor da chave, ou None se ausente."""
        ...

    @abstractmethod
    async def set(self, session_id: str, key: str, value: Any) -> None:  # noqa: A003
        """Grava o valor da chave na sessão."""
        ...

    @abstractmethod
    async def end(self, session_id: str) -> None:
        """Encerra a sessão e descarta seu conteúdo."""
        ...
