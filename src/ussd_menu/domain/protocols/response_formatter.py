"""Contrato de formatação das respostas continue/end."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ResponseFormatter(Protocol):
    """Converte o texto de um handler no valor entregue ao gateway."""

    def con(self, text: str) -> Any: ...

    def end(self, text: str) -> Any: ...
