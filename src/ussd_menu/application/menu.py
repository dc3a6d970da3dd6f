"""Motor de menus USSD — orquestra sessão, resolução de rota e execução.

Fluxo de ``run``:
    mapear args do provedor → iniciar sessão (se configurada) → obter rota
    (direta ou acumulada na sessão) → resolver → executar handler → entregar
    resposta (callback e/ou retorno) → encerrar sessão em ``end``.

Erros de resolução, sessão e handler nunca são lançados por ``run``: vão para
o canal de erros da instância e ``run`` retorna None.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ussd_menu.adapters import GatewayAdapter, GatewayRequest, create_gateway_adapter
from ussd_menu.application.error_channel import ErrorChannel, ErrorListener
from ussd_menu.application.registry import StateRegistry
from ussd_menu.application.resolver import RouteResolver
from ussd_menu.application.session_adapter import SessionAdapter, SessionFacade
from ussd_menu.config.settings import Settings
from ussd_menu.domain.context import Resolution
from ussd_menu.domain.enums import Provider, ResponseType
from ussd_menu.domain.errors import (
    ConfigurationError,
    HandlerMissingError,
    SessionBackendError,
    UssdMenuError,
)
from ussd_menu.domain.models import UssdArgs
from ussd_menu.domain.protocols import ResponseFormatter
from ussd_menu.domain.rules import ROUTE_DELIMITER
from ussd_menu.domain.state import START_STATE, StateDefinition
from ussd_menu.observability.logging import get_logger, mask_session_id
from ussd_menu.observability.timing import timed

logger: logging.Logger = get_logger(__name__)

ResultCallback = Callable[[Any], Any]


@dataclass(slots=True)
class _RunCycle:
    """Estado transitório de uma chamada a ``run``."""

    outcome: asyncio.Future[Any]
    on_result: ResultCallback | None = None
    args: UssdArgs | None = None
    session: SessionFacade | None = None
    val: str = ""
    teardown: asyncio.Task[None] | None = None
    pending: set[asyncio.Task[Any]] = field(default_factory=set)


class UssdState:
    """Estado em execução, entregue ao handler ``run(state)``.

    Expõe o valor de entrada (``val``), os args da requisição, a sessão e as
    primitivas de resposta/navegação ligadas à chamada corrente.
    """

    __slots__ = ("menu", "definition", "val", "_cycle")

    def __init__(
        self,
        menu: UssdMenu,
        definition: StateDefinition,
        val: str,
        cycle: _RunCycle,
    ) -> None:
        self.menu = menu
        self.definition = definition
        self.val = val
        self._cycle = cycle

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def args(self) -> UssdArgs | None:
        return self._cycle.args

    @property
    def session(self) -> SessionFacade | None:
        return self._cycle.session

    def con(self, text: str = "") -> None:
        self.menu._respond(self._cycle, ResponseType.CONTINUE, text)

    def end(self, text: str = "") -> None:
        self.menu._respond(self._cycle, ResponseType.END, text)

    def go(self, name: str) -> asyncio.Task[None]:
        return self.menu._navigate(self._cycle, name)

    def go_start(self) -> asyncio.Task[None]:
        return self.go(START_STATE)

    def __repr__(self) -> str:
        return f"UssdState(name={self.name!r}, val={self.val!r})"


class UssdMenu:
    """Motor de menus USSD.

    Uma instância atende uma requisição por vez; use uma instância por
    requisição ou serialize as chamadas a ``run``.
    """

    START_STATE = START_STATE

    def __init__(
        self,
        provider: str | Provider | None = None,
        *,
        formatter: ResponseFormatter | None = None,
        strict_routing: bool = False,
    ) -> None:
        self._gateway: GatewayAdapter = create_gateway_adapter(provider)
        self._formatter: ResponseFormatter = formatter or self._gateway.default_formatter()
        self.states = StateRegistry()
        self.errors = ErrorChannel()
        self._resolver = RouteResolver(self.states, strict=strict_routing)
        self._session_adapter: SessionAdapter | None = None
        self._cycle: _RunCycle | None = None

        self.session: SessionFacade | None = None
        self.args: UssdArgs | None = None
        self.val: str = ""
        self.result: Any = None
        self.on_result: ResultCallback | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        formatter: ResponseFormatter | None = None,
    ) -> UssdMenu:
        """Cria o menu a partir das configurações de ambiente."""
        if settings is None:
            from ussd_menu.config.settings import get_settings

            settings = get_settings()
        return cls(
            settings.ussd_provider,
            formatter=formatter,
            strict_routing=settings.ussd_strict_routing,
        )

    @property
    def provider(self) -> Provider:
        return self._gateway.provider

    # ------------------------------------------------------------------
    # Declaração
    # ------------------------------------------------------------------

    def state(
        self,
        name: str,
        run: Callable[..., Any] | None = None,
        next: Mapping[Any, Any] | None = None,  # noqa: A002
        default_next: str | None = None,
    ) -> UssdMenu:
        """Declara um estado do grafo.

        Args:
            name: nome único do estado
            run: handler chamado com o UssdState quando o estado é alcançado
            next: regras de link em ordem de prioridade (literal ou ``*regex``)
                mapeadas para nome de estado ou função que o produz
            default_next: estado usado quando nenhuma regra casa

        Returns:
            O próprio menu, para encadeamento
        """
        self.states.register(name, run=run, next=next, default_next=default_next)
        return self

    def start_state(
        self,
        run: Callable[..., Any] | None = None,
        next: Mapping[Any, Any] | None = None,  # noqa: A002
        default_next: str | None = None,
    ) -> UssdMenu:
        """Declara o estado inicial (nome reservado ``__start__``)."""
        return self.state(START_STATE, run=run, next=next, default_next=default_next)

    def session_config(self, config: Any) -> UssdMenu:
        """Configura o backend de sessão (start, get, set, end)."""
        self._session_adapter = SessionAdapter(config, self.errors)
        return self

    def on_error(self, listener: ErrorListener) -> Callable[[], None]:
        """Assina o canal de erros; retorna função de cancelamento."""
        return self.errors.subscribe(listener)

    # ------------------------------------------------------------------
    # Resolução e execução
    # ------------------------------------------------------------------

    async def resolve_route(self, route: str | None) -> Resolution:
        """Resolve a rota (ex.: ``"1*2*7"``) até o estado a executar."""
        return await self._resolver.resolve(route, self)

    async def run(self, args: Any = None, on_result: ResultCallback | None = None) -> Any:
        """Executa o menu para uma requisição do gateway.

        Args:
            args: args do provedor (dict, UssdArgs ou HubtelRequest); se
                omitido, reutiliza os args da chamada anterior
            on_result: chamado uma vez com a resposta formatada

        Returns:
            A resposta formatada, ou None se a chamada falhou (o erro é
            entregue ao canal de erros)
        """
        loop = asyncio.get_running_loop()
        cycle = _RunCycle(outcome=loop.create_future(), on_result=on_result)
        self._cycle = cycle

        try:
            resolution = await self._prepare_and_resolve(cycle, args)
        except Exception as exc:
            self._fail(cycle, exc)
        else:
            await self._execute(cycle, resolution.state, resolution.val)

        response = await cycle.outcome
        if cycle.teardown is not None:
            await cycle.teardown
        await self.errors.drain()
        return response

    async def _prepare_and_resolve(self, cycle: _RunCycle, args: Any) -> Resolution:
        request = self._map_request(args)
        cycle.args = request.args
        self.args = request.args

        if self._gateway.accumulates_route and self._session_adapter is None:
            raise ConfigurationError(
                f"Session config required for {self._gateway.display_name} provider"
            )

        route = request.args.text
        if self._session_adapter is not None:
            session_id = request.args.session_id
            if not session_id:
                raise ConfigurationError("sessionId is required when a session is configured")
            cycle.session = self._session_adapter.bind(session_id)
            self.session = cycle.session
            with timed("session_start", provider=self.provider.value):
                await self._session_adapter.start(session_id)
            if self._gateway.accumulates_route:
                route = await self._accumulate_route(session_id, request)

        with timed("route_resolution", provider=self.provider.value):
            return await self._resolver.resolve(route, self)

    def _map_request(self, args: Any) -> GatewayRequest:
        if args is None:
            if self.args is None:
                raise ConfigurationError("Request args are required")
            args = self.args
        try:
            return self._gateway.map_args(args)
        except UssdMenuError:
            raise
        except Exception as exc:
            raise UssdMenuError(f"Invalid request args: {exc}", exc) from exc

    async def _accumulate_route(self, session_id: str, request: GatewayRequest) -> str:
        """Acumula a rota na sessão para provedores de fragmento único."""
        assert self._session_adapter is not None
        key = self._gateway.route_session_key or "route"

        if request.initiation:
            route = ""
        else:
            previous = await self._session_adapter.get(session_id, key) or ""
            fragment = request.args.text
            route = f"{previous}{ROUTE_DELIMITER}{fragment}" if previous else fragment

        await self._session_adapter.set(session_id, key, route)
        logger.debug(
            "route_accumulated",
            extra={
                "session_id": mask_session_id(session_id),
                "initiation": request.initiation,
                "depth": len(route.split(ROUTE_DELIMITER)) if route else 0,
            },
        )
        return route

    async def _execute(self, cycle: _RunCycle, state: StateDefinition, val: str) -> None:
        cycle.val = val
        self.val = val
        try:
            if state.run is None:
                raise HandlerMissingError(f"State run function not defined: {state.name}")
            returned = state.run(UssdState(self, state, val, cycle))
            if inspect.isawaitable(returned):
                await returned
        except Exception as exc:
            self._fail(cycle, exc)

    def _navigate(self, cycle: _RunCycle, name: str) -> asyncio.Task[None]:
        async def enter() -> None:
            try:
                state = self.states.require(name)
            except UssdMenuError as exc:
                self._fail(cycle, exc)
                return
            await self._execute(cycle, state, cycle.val)

        task = asyncio.ensure_future(enter())
        cycle.pending.add(task)
        task.add_done_callback(cycle.pending.discard)
        return task

    # ------------------------------------------------------------------
    # Respostas e navegação manual
    # ------------------------------------------------------------------

    def con(self, text: str = "") -> None:
        """Responde pedindo mais entrada (sessão continua)."""
        self._respond(self._current_cycle(), ResponseType.CONTINUE, text)

    def end(self, text: str = "") -> None:
        """Responde encerrando a sessão."""
        self._respond(self._current_cycle(), ResponseType.END, text)

    def go(self, name: str) -> asyncio.Task[None]:
        """Executa o estado ``name`` mantendo o último valor de entrada."""
        return self._navigate(self._current_cycle(), name)

    def go_start(self) -> asyncio.Task[None]:
        return self.go(START_STATE)

    def _current_cycle(self) -> _RunCycle:
        if self._cycle is None:
            raise RuntimeError("UssdMenu.run() has not been called")
        return self._cycle

    def _respond(self, cycle: _RunCycle, kind: ResponseType, text: str) -> None:
        if cycle.outcome.done():
            logger.warning("response_already_sent", extra={"response_type": kind.value})
            return

        if kind is ResponseType.END:
            response = self._formatter.end(text)
            if cycle.session is not None:
                cycle.teardown = asyncio.ensure_future(self._teardown(cycle.session))
        else:
            response = self._formatter.con(text)

        self.result = response
        callback = cycle.on_result or self.on_result
        if callback is not None:
            try:
                callback(response)
            except Exception as exc:
                self.errors.emit(UssdMenuError(f"Result callback failed: {exc}", exc))
        cycle.outcome.set_result(response)

    async def _teardown(self, session: SessionFacade) -> None:
        assert self._session_adapter is not None
        try:
            await self._session_adapter.end(session.session_id)
        except SessionBackendError:
            # já entregue ao canal de erros pelo adapter
            return

    def _fail(self, cycle: _RunCycle, error: BaseException) -> None:
        self.errors.emit(error)
        if not cycle.outcome.done():
            cycle.outcome.set_result(None)
