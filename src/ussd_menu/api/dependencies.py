"""Dependências injetadas nas rotas."""

from __future__ import annotations

from fastapi import Depends, Request

from ussd_menu.application.menu import UssdMenu
from ussd_menu.config.settings import Settings
from ussd_menu.domain.protocols import AsyncSessionBackend


def get_settings(request: Request) -> Settings:
    """Retorna settings da aplicação."""

    return request.app.state.settings


def get_session_backend(request: Request) -> AsyncSessionBackend:
    """Retorna o backend de sessão compartilhado pelos menus."""

    return request.app.state.session_backend


def get_menu(
    request: Request,
    session_backend: AsyncSessionBackend = Depends(get_session_backend),
) -> UssdMenu:
    """Monta um UssdMenu novo por requisição; instâncias não são compartilhadas."""
    menu = request.app.state.menu_factory(session_backend)
    if not isinstance(menu, UssdMenu):
        raise TypeError(f"menu_factory must return UssdMenu, got {type(menu).__name__}")
    return menu
