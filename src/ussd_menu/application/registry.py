"""Registro de estados do grafo de menus."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from ussd_menu.domain.errors import ResolutionError
from ussd_menu.domain.state import START_STATE, StateDefinition, build_links
from ussd_menu.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class StateRegistry(Mapping[str, StateDefinition]):
    """Mapeamento nome → StateDefinition.

    Estados são registrados antes de qualquer resolução e não são removidos.
    """

    def __init__(self) -> None:
        self._states: dict[str, StateDefinition] = {}

    def register(
        self,
        name: str,
        run: Callable[..., Any] | None = None,
        next: Mapping[Any, Any] | None = None,  # noqa: A002
        default_next: str | None = None,
    ) -> StateDefinition:
        if name in self._states:
            logger.debug("state_redeclared", extra={"state": name})
        state = StateDefinition(
            name=name,
            run=run,
            links=build_links(next),
            default_next=default_next,
        )
        self._states[name] = state
        return state

    def require(self, name: str) -> StateDefinition:
        """Retorna o estado ou falha com ResolutionError (referência pendente)."""
        state = self._states.get(name)
        if state is None:
            raise ResolutionError(f"Declared state does not exist: {name}")
        return state

    @property
    def start(self) -> StateDefinition:
        return self.require(START_STATE)

    def __getitem__(self, name: str) -> StateDefinition:
        return self._states[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._states)

    def __len__(self) -> int:
        return len(self._states)
