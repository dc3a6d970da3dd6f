"""Contrato base dos adapters de provedor de gateway."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ussd_menu.domain.enums import Provider
from ussd_menu.domain.models import UssdArgs
from ussd_menu.domain.protocols import ResponseFormatter


@dataclass(frozen=True, slots=True)
class GatewayRequest:
    """Requisição já mapeada para o formato canônico."""

    args: UssdArgs
    initiation: bool = False


class GatewayAdapter(ABC):
    """Traduz argumentos do provedor e define a formatação das respostas.

    ``accumulates_route`` indica provedores que entregam apenas o último
    fragmento digitado; nesses casos a rota é acumulada na sessão.
    """

    provider: Provider
    display_name: str = ""
    accumulates_route: bool = False
    route_session_key: str | None = None

    @abstractmethod
    def map_args(self, raw: Any) -> GatewayRequest:
        """Converte o payload do provedor em GatewayRequest."""
        ...

    @abstractmethod
    def default_formatter(self) -> ResponseFormatter:
        """Formatter usado quando nenhum outro é injetado."""
        ...
