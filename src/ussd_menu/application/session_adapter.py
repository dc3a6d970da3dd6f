"""Adapter de sessão: normaliza backends externos em operações assíncronas.

O backend pode expressar cada operação (start, get, set, end) como:
- coroutine function / objeto AsyncSessionBackend
- função com callback final error-first ``callback(err, value)``
- função que retorna um awaitable ou um valor simples

A convenção é detectada uma vez, em ``session_config``; cada chamada passa
por uma única operação assíncrona canônica. Falhas viram SessionBackendError
e são entregues ao canal de erros exatamente uma vez.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from ussd_menu.application.error_channel import ErrorChannel, schedule_listener_result
from ussd_menu.domain.errors import SessionBackendError
from ussd_menu.domain.protocols import AsyncSessionBackend
from ussd_menu.observability.logging import get_logger, mask_session_id

logger: logging.Logger = get_logger(__name__)

AsyncOperation = Callable[..., Awaitable[Any]]
ResultCallback = Callable[..., Any]

# Quantidade de argumentos de cada operação (sem o callback)
OPERATION_ARITY: dict[str, int] = {"start": 1, "get": 2, "set": 3, "end": 1}


def _positional_arity(fn: Callable[..., Any]) -> int:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return 0
    return sum(
        1
        for param in signature.parameters.values()
        if param.kind
        in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    )


def _as_exception(err: Any) -> BaseException:
    return err if isinstance(err, BaseException) else RuntimeError(str(err))


def _settle_from(source: asyncio.Future[Any], target: asyncio.Future[Any]) -> None:
    """Repassa o resultado de ``source`` a ``target`` se ele ainda estiver aberto."""
    if source.cancelled():
        if not target.done():
            target.cancel()
        return
    exc = source.exception()
    if target.done():
        return
    if exc is not None:
        target.set_exception(exc)
    else:
        target.set_result(source.result())


def _missing_operation(name: str) -> AsyncOperation:
    async def operation(*args: Any) -> Any:
        raise SessionBackendError(name, f"Session handler '{name}' is not configured")

    return operation


def _callback_operation(fn: Callable[..., Any]) -> AsyncOperation:
    async def operation(*args: Any) -> Any:
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

        def callback(err: Any = None, value: Any = None) -> None:
            # primeira conclusão observada vence
            if future.done():
                return
            if err is not None:
                future.set_exception(_as_exception(err))
            else:
                future.set_result(value)

        returned = fn(*args, callback)
        if inspect.isawaitable(returned):
            chained = asyncio.ensure_future(returned)
            chained.add_done_callback(lambda done: _settle_from(done, future))
        return await future

    return operation


def _direct_operation(fn: Callable[..., Any]) -> AsyncOperation:
    async def operation(*args: Any) -> Any:
        returned = fn(*args)
        if inspect.isawaitable(returned):
            return await returned
        return returned

    return operation


def compile_operation(name: str, fn: Callable[..., Any] | None) -> AsyncOperation:
    """Traduz a operação do backend para a forma assíncrona canônica."""
    if fn is None:
        return _missing_operation(name)
    if inspect.iscoroutinefunction(fn):
        return fn
    if _positional_arity(fn) > OPERATION_ARITY[name]:
        return _callback_operation(fn)
    return _direct_operation(fn)


class SessionAdapter:
    """Operações canônicas start/get/set/end sobre um backend externo."""

    def __init__(
        self,
        config: AsyncSessionBackend | Mapping[str, Any] | Any,
        errors: ErrorChannel,
    ) -> None:
        self._errors = errors
        self._operations: dict[str, AsyncOperation] = {}
        for name in OPERATION_ARITY:
            if isinstance(config, Mapping):
                fn = config.get(name)
            else:
                fn = getattr(config, name, None)
            self._operations[name] = compile_operation(name, fn)

    async def start(self, session_id: str) -> None:
        await self._invoke("start", session_id)

    async def get(self, session_id: str, key: str) -> Any:
        return await self._invoke("get", session_id, key)

    async def set(self, session_id: str, key: str, value: Any) -> None:  # noqa: A003
        await self._invoke("set", session_id, key, value)

    async def end(self, session_id: str) -> None:
        await self._invoke("end", session_id)

    def bind(self, session_id: str) -> SessionFacade:
        """Retorna a fachada de sessão escopada a um session_id."""
        return SessionFacade(self, session_id)

    async def _invoke(self, name: str, *args: Any) -> Any:
        try:
            return await self._operations[name](*args)
        except SessionBackendError as exc:
            self._errors.emit(exc)
            raise
        except Exception as exc:
            error = SessionBackendError(name, exc)
            logger.debug(
                "session_backend_failed",
                extra={"operation": name, "session_id": mask_session_id(args[0] if args else None)},
            )
            self._errors.emit(error)
            raise error from exc


class SessionFacade:
    """Sessão da requisição corrente, exposta aos handlers como ``menu.session``.

    Cada operação é agendada imediatamente e retorna uma Task awaitable;
    ``callback`` (error-first) é chamado ao final, se informado.
    """

    def __init__(self, adapter: SessionAdapter, session_id: str) -> None:
        self._adapter = adapter
        self.session_id = session_id
        self._pending: set[asyncio.Future[Any]] = set()

    def start(self, callback: ResultCallback | None = None) -> asyncio.Task[Any]:
        return self._schedule(self._adapter.start(self.session_id), callback)

    def get(self, key: str, callback: ResultCallback | None = None) -> asyncio.Task[Any]:
        return self._schedule(self._adapter.get(self.session_id, key), callback, with_value=True)

    def set(  # noqa: A003
        self, key: str, value: Any, callback: ResultCallback | None = None
    ) -> asyncio.Task[Any]:
        return self._schedule(self._adapter.set(self.session_id, key, value), callback)

    def end(self, callback: ResultCallback | None = None) -> asyncio.Task[Any]:
        return self._schedule(self._adapter.end(self.session_id), callback)

    def _schedule(
        self,
        coro: Awaitable[Any],
        callback: ResultCallback | None,
        with_value: bool = False,
    ) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)

        def deliver(done: asyncio.Task[Any]) -> None:
            if done.cancelled():
                return
            exc = done.exception()
            if callback is None:
                return
            try:
                if with_value:
                    result = callback(exc, None if exc else done.result())
                else:
                    result = callback(exc)
            except Exception:
                logger.exception("session_callback_failed")
                return
            schedule_listener_result(result, callback, self._pending, "session_callback_failed")

        task.add_done_callback(deliver)
        return task
