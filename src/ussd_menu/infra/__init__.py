"""Infraestrutura: backends de sessão."""

from ussd_menu.infra.session_store import create_session_backend
from ussd_menu.infra.session_store_memory import InMemorySessionBackend
from ussd_menu.infra.session_store_redis import RedisSessionBackend

__all__ = [
    "InMemorySessionBackend",
    "RedisSessionBackend",
    "create_session_backend",
]
