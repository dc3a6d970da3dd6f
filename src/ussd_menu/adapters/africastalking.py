"""Adapter do Africa's Talking (rota completa em ``text``)."""

from __future__ import annotations

from typing import Any

from ussd_menu.adapters.base import GatewayAdapter, GatewayRequest
from ussd_menu.domain.enums import Provider
from ussd_menu.domain.models import UssdArgs


class PrefixedTextFormatter:
    """Respostas em texto com prefixo ``CON``/``END``."""

    def con(self, text: str) -> str:
        return f"CON {text}"

    def end(self, text: str) -> str:
        return f"END {text}"


class AfricasTalkingAdapter(GatewayAdapter):
    provider = Provider.AFRICASTALKING
    display_name = "Africa's Talking"
    accumulates_route = False

    def map_args(self, raw: Any) -> GatewayRequest:
        if isinstance(raw, UssdArgs):
            return GatewayRequest(args=raw)
        return GatewayRequest(args=UssdArgs.model_validate(dict(raw)))

    def default_formatter(self) -> PrefixedTextFormatter:
        return PrefixedTextFormatter()
