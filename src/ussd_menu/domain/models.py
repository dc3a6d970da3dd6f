"""Modelos dos argumentos de requisição do gateway.

UssdArgs é o formato canônico consumido pelo motor; provedores com formato
próprio (Hubtel) são mapeados para ele pelos adapters.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class UssdArgs(BaseModel):
    """Argumentos canônicos de uma requisição USSD."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    text: str = ""
    phone_number: str | None = Field(default=None, alias="phoneNumber")
    session_id: str | None = Field(default=None, alias="sessionId")
    service_code: str | None = Field(default=None, alias="serviceCode")


class HubtelRequest(BaseModel):
    """Payload nativo do Hubtel (campos em PascalCase)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    mobile: str = Field(alias="Mobile")
    session_id: str = Field(alias="SessionId")
    service_code: str | None = Field(default=None, alias="ServiceCode")
    type: str = Field(default="Response", alias="Type")  # noqa: A003
    message: str = Field(default="", alias="Message")
    operator: str | None = Field(default=None, alias="Operator")
    sequence: int | None = Field(default=None, alias="Sequence")

    @property
    def is_initiation(self) -> bool:
        return self.type == "Initiation"
