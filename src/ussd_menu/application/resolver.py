"""Resolver de rotas: caminha a rota tokenizada pelo grafo de estados.

Algoritmo:
1. Tokeniza a rota (rota vazia → nenhum token)
2. Estado inicial sem regras → vai direto ao fallback, sem consumir tokens
3. Estado inicial com regra ``""`` → insere token vazio no começo
4. Para cada token, a primeira regra que casa (em ordem de declaração)
   define o alvo; o alvo é resolvido uma única vez
5. Nenhuma regra casa → fallback do estado (ele mesmo, se omitido)
6. Tokens esgotados → estado corrente, com o último token como ``val``
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any

from ussd_menu.application.registry import StateRegistry
from ussd_menu.domain.context import Resolution, ResolutionContext
from ussd_menu.domain.errors import ResolutionError, UssdMenuError
from ussd_menu.domain.rules import matches, tokenize
from ussd_menu.domain.state import START_STATE, Deferred, Immediate, Target, TargetResolution
from ussd_menu.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


def _positional_arity(fn: Any) -> int:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return 1
    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return 2
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return count


async def _returned_or_callback(returned: Any, future: asyncio.Future[Any]) -> Any:
    name = await returned
    if name is None:
        return await future
    return name


def target_resolution(target: Target, subject: Any = None) -> TargetResolution:
    """Normaliza o alvo de uma regra no variant ``Immediate | Deferred``.

    Funções recebem ``subject`` (o menu); com dois parâmetros posicionais
    também recebem um callback ``callback(nome)`` ou ``callback(exc)``.

    Um nome retornado (direto ou via awaitable) tem precedência sobre o
    callback. Se a função com callback retorna um awaitable que resolve em
    None (ex.: ``async def alvo(menu, cb)``), o nome vem do callback.
    """
    if isinstance(target, str):
        return Immediate(target)
    if not callable(target):
        raise ResolutionError(f"Invalid link target: {target!r}")

    arity = _positional_arity(target)
    future: asyncio.Future[Any] | None = None
    if arity >= 2:
        future = asyncio.get_running_loop().create_future()

        def callback(result: Any = None) -> None:
            if future.done():
                return
            if isinstance(result, BaseException):
                future.set_exception(result)
            else:
                future.set_result(result)

        returned = target(subject, callback)
    elif arity == 1:
        returned = target(subject)
    else:
        returned = target()

    if isinstance(returned, (Immediate, Deferred)):
        return returned
    if isinstance(returned, str):
        return Immediate(returned)
    if inspect.isawaitable(returned):
        if future is not None:
            return Deferred(_returned_or_callback(returned, future))
        return Deferred(returned)
    if future is not None:
        return Deferred(future)
    raise ResolutionError(f"Link target returned no state name: {returned!r}")


async def resolve_target_name(target: Target, subject: Any = None) -> str:
    """Resolve o alvo até um nome de estado (um único ponto de suspensão)."""
    try:
        resolution = target_resolution(target, subject)
        if isinstance(resolution, Immediate):
            name = resolution.name
        else:
            name = await resolution.awaitable
    except UssdMenuError:
        raise
    except Exception as exc:
        raise ResolutionError(f"Link target failed: {exc}", exc) from exc

    if not isinstance(name, str):
        raise ResolutionError(f"Link target returned no state name: {name!r}")
    return name


class RouteResolver:
    """Caminha a rota pelo registro até o estado a executar."""

    def __init__(self, registry: StateRegistry, strict: bool = False) -> None:
        self._registry = registry
        self._strict = strict

    async def resolve(self, route: str | None, subject: Any = None) -> Resolution:
        if START_STATE not in self._registry:
            raise ResolutionError("Start state is not declared")

        start = self._registry.start
        if not start.has_links:
            return Resolution(state=self._registry.require(start.fallback))

        tokens = tokenize(route)
        if start.has_rule(""):
            tokens.insert(0, "")

        context = ResolutionContext(tokens=tuple(tokens), state=start)
        while not context.exhausted:
            context = await self._step(context, subject)

        logger.debug(
            "route_resolved",
            extra={"state": context.state.name, "tokens": len(context.tokens)},
        )
        return Resolution(state=context.state, val=context.val)

    async def _step(self, context: ResolutionContext, subject: Any) -> ResolutionContext:
        token = context.next_token()
        state = context.state

        for link in state.links:
            if not matches(link.rule, token):
                continue
            name = await resolve_target_name(link.target, subject)
            return context.advance(self._registry.require(name), token)

        if state.default_next is None and self._strict:
            raise ResolutionError(f"No link rule matches input on state: {state.name}")
        return context.advance(self._registry.require(state.fallback), token)
