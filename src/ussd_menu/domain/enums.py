"""Enums de domínio: provedores de gateway e tipos de resposta."""

from __future__ import annotations

from enum import StrEnum


class Provider(StrEnum):
    """Provedores de gateway USSD suportados."""

    AFRICASTALKING = "africasTalking"
    HUBTEL = "hubtel"


class ResponseType(StrEnum):
    """Tipos de resposta que um handler pode emitir."""

    CONTINUE = "con"
    END = "end"
