"""Adapters de provedores de gateway USSD.

Exporta:
- GatewayAdapter / GatewayRequest: contrato comum
- create_gateway_adapter: fábrica por nome de provedor
"""

from __future__ import annotations

from ussd_menu.adapters.africastalking import AfricasTalkingAdapter, PrefixedTextFormatter
from ussd_menu.adapters.base import GatewayAdapter, GatewayRequest
from ussd_menu.adapters.hubtel import HubtelAdapter, HubtelResponseFormatter
from ussd_menu.domain.enums import Provider
from ussd_menu.domain.errors import ConfigurationError

_ADAPTERS: dict[Provider, type[GatewayAdapter]] = {
    Provider.AFRICASTALKING: AfricasTalkingAdapter,
    Provider.HUBTEL: HubtelAdapter,
}


def create_gateway_adapter(provider: str | Provider | None) -> GatewayAdapter:
    """Cria o adapter do provedor; nome desconhecido é erro de configuração."""
    if provider is None:
        provider = Provider.AFRICASTALKING
    try:
        key = Provider(provider)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid provider: {provider}", exc) from exc
    return _ADAPTERS[key]()


__all__ = [
    "AfricasTalkingAdapter",
    "GatewayAdapter",
    "GatewayRequest",
    "HubtelAdapter",
    "HubtelResponseFormatter",
    "PrefixedTextFormatter",
    "create_gateway_adapter",
]
