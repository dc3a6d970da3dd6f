"""Configurações centralizadas do ussd_menu.

Uso típico:
    from ussd_menu.config import get_settings
"""

from ussd_menu.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
