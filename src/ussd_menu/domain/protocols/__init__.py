"""Re-exports dos Protocolos de domínio para uso por Application."""

from __future__ import annotations

from ussd_menu.domain.protocols.response_formatter import ResponseFormatter
from ussd_menu.domain.protocols.session_backend import AsyncSessionBackend

__all__ = [
    "AsyncSessionBackend",
    "ResponseFormatter",
]
