"""
hoa_portal.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide env-driven settings for the API, auth, persistence and function layers.
- Hide secrets from repr/logging (JWT secret).
- Report missing backend credentials so functions can fail with a configuration error.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HOA_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "hoa-portal"
    log_level: str = "INFO"
    log_json: bool = True

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "hoa-portal"
    jwt_audience: str = "authenticated"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    access_token_ttl_seconds: int = 3600
    refresh_token_ttl_days: int = 30

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./hoa.db"
    seed_role_permissions: bool = True

    # Exchange-rate function
    tcmb_base_url: str = "https://www.tcmb.gov.tr"
    rate_lookback_days: int = 7
    rate_timeout_seconds: float = 10.0

    def missing_credentials(self) -> list[str]:
        # Functions refuse to run without these; see `api.deps.require_configured`.
        missing: list[str] = []
        if not self.jwt_secret:
            missing.append("jwt_secret")
        if not self.database_url:
            missing.append("database_url")
        return missing


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The client core does not read these settings; it is configured with a base URL
# and a storage backend by whoever builds the ClientContext.
