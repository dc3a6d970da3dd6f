"""Contexto imutável de resolução, repassado passo a passo pela caminhada."""

from __future__ import annotations

from dataclasses import dataclass, replace

from ussd_menu.domain.state import StateDefinition


@dataclass(frozen=True, slots=True)
class ResolutionContext:
    """Posição do cursor na rota, estado candidato e último token consumido."""

    tokens: tuple[str, ...]
    state: StateDefinition
    cursor: int = 0
    val: str = ""

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.tokens)

    def next_token(self) -> str:
        return self.tokens[self.cursor]

    def advance(self, state: StateDefinition, val: str) -> ResolutionContext:
        """Consome um token e passa ao estado seguinte."""
        return replace(self, state=state, cursor=self.cursor + 1, val=val)


@dataclass(frozen=True, slots=True)
class Resolution:
    """Resultado da resolução: estado a executar e valor de entrada."""

    state: StateDefinition
    val: str = ""
