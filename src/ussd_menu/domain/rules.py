"""Matcher de regras de link.

Uma regra é um literal (igualdade com o token) ou, quando começa com ``*``,
uma expressão regular testada contra o token (busca, sem âncoras).
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

from ussd_menu.domain.errors import ResolutionError

REGEX_SENTINEL = "*"
ROUTE_DELIMITER = "*"


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ResolutionError(f"Invalid link rule pattern: {pattern!r}", exc) from exc


def is_pattern(rule: Any) -> bool:
    """True se a regra deve ser tratada como regex."""
    return isinstance(rule, str) and rule.startswith(REGEX_SENTINEL)


def matches(rule: Any, token: Any) -> bool:
    """Decide se ``token`` satisfaz ``rule``.

    Igualdade é coerciva: ``1``, ``1.0``, ``"1"`` e ``"01"`` se equivalem quando
    a regra é numérica.
    """
    if is_pattern(rule):
        return _compile(rule[len(REGEX_SENTINEL):]).search(str(token)) is not None
    if rule == token:
        return True
    if isinstance(rule, (int, float)) and not isinstance(rule, bool):
        try:
            return float(token) == rule
        except (TypeError, ValueError):
            return False
    return str(rule) == str(token)


def tokenize(route: str | None) -> list[str]:
    """Separa a rota em tokens; rota vazia gera lista vazia."""
    if not route:
        return []
    return route.split(ROUTE_DELIMITER)
