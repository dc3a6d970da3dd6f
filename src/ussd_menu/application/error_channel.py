"""Canal de erros escopado a uma instância de UssdMenu."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

from ussd_menu.domain.errors import UssdMenuError
from ussd_menu.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

ErrorListener = Callable[[UssdMenuError], object]


def _listener_name(listener: Any) -> str:
    return getattr(listener, "__name__", repr(listener))


def schedule_listener_result(
    result: Any,
    listener: Any,
    pending: set[asyncio.Future[Any]],
    event: str,
) -> None:
    """Agenda o awaitable devolvido por um listener/callback ``async def``.

    Falhas do awaitable são logadas em ``event``. Sem loop em execução o
    awaitable não pode rodar: é descartado e a falha é logada.
    """
    if not inspect.isawaitable(result):
        return
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError as exc:
        if inspect.iscoroutine(result):
            result.close()
        logger.error(event, extra={"listener": _listener_name(listener), "error": str(exc)})
        return
    future = asyncio.ensure_future(result, loop=loop)

    def done(task: asyncio.Future[Any]) -> None:
        pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                event,
                exc_info=exc,
                extra={"listener": _listener_name(listener), "error": str(exc)},
            )

    pending.add(future)
    future.add_done_callback(done)


class ErrorChannel:
    """Stream assinável de erros do motor.

    Cada erro é entregue no máximo uma vez; falhas de um listener são
    logadas e não impedem a entrega aos demais. Listeners ``async def`` são
    agendados no loop corrente.
    """

    def __init__(self) -> None:
        self._listeners: list[ErrorListener] = []
        self._pending: set[asyncio.Future[Any]] = set()

    def subscribe(self, listener: ErrorListener) -> Callable[[], None]:
        """Registra listener e retorna função para cancelar a inscrição."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def has_listeners(self) -> bool:
        return bool(self._listeners)

    async def drain(self) -> None:
        """Aguarda listeners assíncronos ainda em execução."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def emit(self, error: BaseException) -> UssdMenuError:
        """Entrega o erro aos listeners (embrulhando exceções externas)."""
        if not isinstance(error, UssdMenuError):
            error = UssdMenuError(str(error), error)
        if error.reported:
            return error
        error.reported = True

        logger.warning(
            "ussd_menu_error",
            extra={"error_type": type(error).__name__, "error": error.message},
        )
        if not self._listeners:
            logger.error(
                "ussd_menu_error_unhandled",
                extra={"error_type": type(error).__name__, "error": error.message},
            )
            return error

        for listener in list(self._listeners):
            try:
                result = listener(error)
            except Exception as exc:
                logger.exception(
                    "error_listener_failed",
                    extra={"listener": _listener_name(listener), "error": str(exc)},
                )
                continue
            schedule_listener_result(result, listener, self._pending, "error_listener_failed")
        return error
