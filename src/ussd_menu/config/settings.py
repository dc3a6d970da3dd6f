"""Configurações do ussd_menu via variáveis de ambiente.

Nunca hardcode credenciais (ex.: REDIS_URL com senha).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from ussd_menu.domain.enums import Provider

VALID_SESSION_BACKENDS: frozenset[str] = frozenset({"memory", "redis"})


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Aplicação
    service_name: str = "ussd_menu"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"

    # Motor de menus
    ussd_provider: str = Provider.AFRICASTALKING.value  # africasTalking | hubtel
    ussd_strict_routing: bool = False  # entrada sem regra e sem default_next → erro

    # Sessão
    session_backend: str = "memory"  # memory | redis
    redis_url: str | None = None  # Para session_backend=redis
    session_ttl_seconds: int = 180  # Sessões USSD são curtas
    session_key_prefix: str = "ussd:session"

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    def validate_provider(self) -> list[str]:
        """Valida o provedor de gateway configurado."""
        errors: list[str] = []
        valid = {p.value for p in Provider}
        if self.ussd_provider not in valid:
            errors.append(f"USSD_PROVIDER '{self.ussd_provider}' inválido. Valores válidos: {sorted(valid)}")
        return errors

    def validate_session_backend_config(self) -> list[str]:
        """Valida backend de sessão.

        Em produção, memory é proibido (várias instâncias não compartilham estado).
        Retorna lista de erros (vazia = tudo OK).
        """
        errors: list[str] = []
        backend = self.session_backend.lower()

        if backend not in VALID_SESSION_BACKENDS:
            errors.append(
                f"SESSION_BACKEND '{backend}' inválido. Valores válidos: {sorted(VALID_SESSION_BACKENDS)}"
            )

        if backend == "redis" and not self.redis_url:
            errors.append("SESSION_BACKEND=redis requer REDIS_URL configurado")

        if self.is_production and backend == "memory":
            errors.append("SESSION_BACKEND=memory é proibido em produção. Use 'redis'.")

        if self.session_ttl_seconds <= 0:
            errors.append("SESSION_TTL_SECONDS deve ser positivo")

        return errors


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna instância única (cacheada) de Settings."""
    return Settings()
