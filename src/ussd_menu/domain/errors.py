"""Taxonomia de erros do motor de menus USSD.

- ResolutionError: referência pendente, regra inexistente, regex inválida
- HandlerMissingError: estado alcançado sem função ``run``
- SessionBackendError: falha em start/get/set/end do backend de sessão
- ConfigurationError: opção inválida na construção do menu
"""

from __future__ import annotations


class UssdMenuError(Exception):
    """Erro base do motor.

    ``reported`` indica que o erro já foi entregue ao canal de erros,
    evitando emissão duplicada quando ele atravessa outra camada.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.reported = False
        if cause is not None:
            self.__cause__ = cause


class ResolutionError(UssdMenuError):
    """Rota não pôde ser resolvida até um estado registrado."""


class HandlerMissingError(UssdMenuError):
    """Estado alcançado não declara função ``run``."""


class SessionBackendError(UssdMenuError):
    """Falha reportada pelo backend de sessão.

    A mensagem é a do erro original, preservada intacta.
    """

    def __init__(self, operation: str, cause: BaseException | str) -> None:
        if not isinstance(cause, BaseException):
            cause = RuntimeError(str(cause))
        super().__init__(str(cause), cause)
        self.operation = operation


class ConfigurationError(UssdMenuError):
    """Opção de configuração inválida."""
