"""
studio_authz.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven settings, safe defaults for local dev.

    The feature catalog and projection schemas are deliberately not here: they
    are code, reviewed like code, and never change at runtime.
    """

    model_config = SettingsConfigDict(env_prefix="STUDIO_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "studio-authz"
    log_level: str = "INFO"
    # Console rendering is easier to read locally; deployed envs keep JSON.
    log_json: bool = True

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "studio-authz"
    jwt_audience: str = "studio-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    session_ttl_minutes: int = Field(default=60 * 24, ge=1)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./studio.db"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Tests build `Settings(env="test", database_url=...)` directly and pass it to
# `create_app`; only the CLI and `python -m studio_authz.api` use the cache.
