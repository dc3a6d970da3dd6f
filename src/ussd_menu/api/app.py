"""Fábrica da aplicação FastAPI."""

from __future__ import annotations

from collections.abc import Callable

from fastapi import FastAPI

from ussd_menu.api.routes import router
from ussd_menu.application.menu import UssdMenu
from ussd_menu.config.settings import Settings, get_settings
from ussd_menu.domain.protocols import AsyncSessionBackend
from ussd_menu.infra.session_store import create_session_backend
from ussd_menu.observability.logging import configure_logging, get_logger
from ussd_menu.observability.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)

MenuFactory = Callable[[AsyncSessionBackend], UssdMenu]


def create_app(
    menu_factory: MenuFactory,
    settings: Settings | None = None,
    session_backend: AsyncSessionBackend | None = None,
) -> FastAPI:
    """Cria a aplicação FastAPI.

    Args:
        menu_factory: recebe o backend de sessão e retorna um UssdMenu
            configurado; chamado uma vez por requisição
        settings: configurações (padrão: get_settings())
        session_backend: backend já criado (padrão: conforme settings)
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name, settings.environment)

    validation_errors: list[str] = []
    validation_errors.extend(settings.validate_provider())
    if session_backend is None:
        validation_errors.extend(settings.validate_session_backend_config())

    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")

    app = FastAPI(title=settings.service_name, version=settings.version)
    app.add_middleware(CorrelationIdMiddleware)
    app.include_router(router)

    app.state.settings = settings
    app.state.session_backend = session_backend or create_session_backend(settings)
    app.state.menu_factory = menu_factory

    logger.info(
        "app_created",
        extra={"provider": settings.ussd_provider, "session_backend": settings.session_backend},
    )
    return app
