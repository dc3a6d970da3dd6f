"""Definições de estado do grafo de menus.

Um estado é criado uma vez por ``UssdMenu.state`` e não muda depois disso.
As regras de link são ordenadas: a ordem de declaração é a prioridade.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

START_STATE = "__start__"
"""Nome reservado do estado inicial."""


@dataclass(frozen=True, slots=True)
class Immediate:
    """Alvo de transição conhecido de forma síncrona."""

    name: str


@dataclass(frozen=True, slots=True)
class Deferred:
    """Alvo de transição entregue por um awaitable."""

    awaitable: Awaitable[Any]


TargetResolution: TypeAlias = Immediate | Deferred
Target: TypeAlias = str | Callable[..., Any]


@dataclass(frozen=True, slots=True)
class LinkRule:
    """Par (regra, alvo) declarado em ``next``."""

    rule: Any
    target: Target


@dataclass(frozen=True, slots=True)
class StateDefinition:
    """Estado registrado: handler, regras ordenadas e fallback."""

    name: str
    run: Callable[..., Any] | None = None
    links: tuple[LinkRule, ...] = ()
    default_next: str | None = None

    @property
    def fallback(self) -> str:
        """Estado usado quando nenhuma regra casa (o próprio, se omitido)."""
        return self.default_next or self.name

    @property
    def has_links(self) -> bool:
        return bool(self.links)

    def has_rule(self, rule: Any) -> bool:
        return any(link.rule == rule for link in self.links)


def build_links(
    next_: Mapping[Any, Target] | Iterable[tuple[Any, Target]] | None,
) -> tuple[LinkRule, ...]:
    """Normaliza ``next`` (dict ou pares) preservando a ordem."""
    if not next_:
        return ()
    items = next_.items() if isinstance(next_, Mapping) else next_
    return tuple(LinkRule(rule=rule, target=target) for rule, target in items)
