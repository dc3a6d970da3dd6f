"""ussd_menu — motor de menus para gateways USSD.

Exporta:
- UssdMenu / UssdState: motor e estado em execução
- Erros: ResolutionError, HandlerMissingError, SessionBackendError, ConfigurationError
- Immediate / Deferred: variantes de alvo de transição
"""

from ussd_menu.application.menu import UssdMenu, UssdState
from ussd_menu.domain.enums import Provider
from ussd_menu.domain.errors import (
    ConfigurationError,
    HandlerMissingError,
    ResolutionError,
    SessionBackendError,
    UssdMenuError,
)
from ussd_menu.domain.models import UssdArgs
from ussd_menu.domain.state import START_STATE, Deferred, Immediate

__all__ = [
    "START_STATE",
    "ConfigurationError",
    "Deferred",
    "HandlerMissingError",
    "Immediate",
    "Provider",
    "ResolutionError",
    "SessionBackendError",
    "UssdArgs",
    "UssdMenu",
    "UssdMenuError",
    "UssdState",
]
