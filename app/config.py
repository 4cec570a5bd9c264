"""ClawCon configuration — loaded from environment / .env file."""

from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="CLAWCON_", extra="ignore")

    env: str = "development"
    database_url: str = "sqlite+aiosqlite:///./clawcon.db"
    cors_origins: list[str] = ["http://localhost:3000"]  # Next.js dev

    # Bot key encryption
    bot_key_enc_key: str = ""
    bot_key_enc_key_version: int = 1
    bot_key_previous_keys: dict[int, str] = {}  # retired master secrets by version

    # Rate limits
    reveal_rate_limit_max: int = 3
    reveal_rate_limit_window_seconds: int = 60 * 60
    ingest_rate_limit_max: int = 20
    ingest_rate_limit_window_seconds: int = 60 * 60

    # Link sanitizing on the ingestion webhook
    link_allowed_hosts: list[str] = []  # empty = any host
    link_policy: Literal["drop", "strict"] = "drop"
    link_required: bool = False

    # Identity provider (GoTrue-compatible)
    auth_url: str = "http://127.0.0.1:9999"
    auth_api_key: str = ""
    auth_timeout_seconds: float = 5.0

    @field_validator("bot_key_enc_key_version", mode="before")
    @classmethod
    def _positive_version(cls, v):
        try:
            parsed = int(v)
        except (TypeError, ValueError):
            return 1
        return parsed if parsed > 0 else 1


settings = Settings()
