"""Rotas HTTP do gateway USSD."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ussd_menu.api.dependencies import get_menu, get_settings
from ussd_menu.application.menu import UssdMenu
from ussd_menu.config.settings import Settings
from ussd_menu.domain.errors import UssdMenuError
from ussd_menu.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Healthcheck simples."""
    return {"status": "ok", "service": settings.service_name, "version": settings.version}


async def _read_payload(request: Request) -> dict[str, Any]:
    """Lê o corpo como JSON (Hubtel) ou formulário (Africa's Talking)."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        payload = await request.json()
        if not isinstance(payload, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_payload")
        return payload
    form = await request.form()
    return dict(form)


@router.post("/ussd")
async def ussd(request: Request, menu: UssdMenu = Depends(get_menu)) -> Response:
    """Recebe a requisição do gateway e devolve a resposta do menu."""
    payload = await _read_payload(request)

    failures: list[UssdMenuError] = []
    menu.on_error(failures.append)
    result = await menu.run(payload)

    if result is None:
        logger.warning(
            "ussd_menu_failed",
            extra={
                "provider": menu.provider.value,
                "error_type": type(failures[0]).__name__ if failures else None,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="ussd_menu_failed",
        )

    if isinstance(result, str):
        return PlainTextResponse(result)
    return JSONResponse(result)
