"""
store_orders.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the client core and the services.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    One settings object shared by the portal client and the reference services.
    """

    model_config = SettingsConfigDict(env_prefix="STORE_ORDERS_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "store-orders"
    log_level: str = "INFO"
    log_json: bool = True

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Client core
    api_base_url: str = "http://localhost:8080"
    http_timeout_seconds: float = 10.0
    session_file: Path = Path(".store_orders/session.json")

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "store-orders"
    jwt_audience: str = "store-orders-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    access_token_ttl_minutes: int = 24 * 60
    refresh_token_ttl_days: int = 30

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./store_orders.db"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The client core only reads api_base_url/http_timeout_seconds/session_file; everything
# else configures the Identity/Order services in `store_orders.api`.
