"""Adapter do Hubtel.

O Hubtel entrega apenas o último fragmento digitado em ``Message`` e sinaliza
o início da sessão com ``Type == "Initiation"``; a mensagem dessa chamada é
o próprio código de serviço e não deve ser resolvida no grafo.
"""

from __future__ import annotations

from typing import Any

from ussd_menu.adapters.base import GatewayAdapter, GatewayRequest
from ussd_menu.domain.enums import Provider
from ussd_menu.domain.models import HubtelRequest, UssdArgs

ROUTE_SESSION_KEY = "route"


class HubtelResponseFormatter:
    """Respostas estruturadas ``{"Message", "Type"}``."""

    def con(self, text: str) -> dict[str, str]:
        return {"Message": text, "Type": "Response"}

    def end(self, text: str) -> dict[str, str]:
        return {"Message": text, "Type": "Release"}


class HubtelAdapter(GatewayAdapter):
    provider = Provider.HUBTEL
    display_name = "Hubtel"
    accumulates_route = True
    route_session_key = ROUTE_SESSION_KEY

    def map_args(self, raw: Any) -> GatewayRequest:
        request = raw if isinstance(raw, HubtelRequest) else HubtelRequest.model_validate(dict(raw))
        text = "" if request.is_initiation else request.message
        args = UssdArgs(
            text=text,
            phone_number=f"+{request.mobile}",
            session_id=request.session_id,
            service_code=request.service_code,
        )
        return GatewayRequest(args=args, initiation=request.is_initiation)

    def default_formatter(self) -> HubtelResponseFormatter:
        return HubtelResponseFormatter()
