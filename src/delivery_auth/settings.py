"""
delivery_auth.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide the shared token secret from repr/logging.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_TTL = timedelta(days=7)


class Settings(BaseSettings):
    """
    Every service that verifies tokens must run with a byte-identical
    `shared_secret`. There is no rotation: a mismatch rejects every
    cross-service request with 401.
    """

    model_config = SettingsConfigDict(
        env_prefix="DELIVERY_AUTH_", case_sensitive=False, populate_by_name=True
    )

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "delivery-auth"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 4000

    # Auth
    jwt_alg: str = "HS256"
    shared_secret: str = Field(
        default="dev-secret-change-me",
        repr=False,
        validation_alias=AliasChoices("DELIVERY_AUTH_SHARED_SECRET", "SHARED_SECRET"),
    )
    token_ttl_customer: timedelta = _DEFAULT_TTL
    token_ttl_admin: timedelta = _DEFAULT_TTL
    token_ttl_restaurant_operator: timedelta = _DEFAULT_TTL
    token_ttl_delivery_personnel: timedelta = _DEFAULT_TTL

    # bcrypt cost factor; fixed per process, never per call.
    hash_cost: int = Field(default=12, ge=4, le=31)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./delivery_auth.db"

    def token_ttl(self, principal_type: str) -> timedelta:
        # principal_type is a PrincipalType value, e.g. "restaurant-operator".
        return getattr(self, f"token_ttl_{principal_type.replace('-', '_')}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Settings are read once at process start; nothing mutates them at runtime.
