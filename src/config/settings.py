"""
Configuration management for the relay service.
Loads settings from environment variables and the project .env file.

The Settings object is immutable: build it once at process start
(get_settings) and hand it to the components that need it.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# This file is at src/config/settings.py, so project root is 3 levels up
_project_root = Path(__file__).resolve().parent.parent.parent

PROJECT_ROOT = _project_root

_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(dotenv_path=_env_file)
    logger.debug(f"Loaded .env from: {_env_file}")
else:
    load_dotenv()


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_env_file),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Service identity
    service_name: str = Field(default="chat-relay")
    version: str = Field(default="1.0.0")

    # Session token signing
    conversation_secret: str = Field(default="")
    conversation_token_max_age_seconds: Optional[int] = Field(default=None)  # None = no expiry

    # Broadcast provider
    broadcast_backend: str = Field(default="pusher")  # Options: "pusher" | "memory"
    pusher_app_id: str = Field(default="")
    pusher_key: str = Field(default="")
    pusher_secret: str = Field(default="")
    pusher_cluster: str = Field(default="")
    pusher_use_tls: bool = Field(default=True)

    # Channels
    channel_prefix: str = Field(default="chat")
    publish_public_fallback: bool = Field(default=True)

    # Inbound relay webhook secret (empty = relay open to any caller)
    webhook_secret: str = Field(default="")

    # HTTP
    allowed_origin: str = Field(default="*")  # Comma separated list

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    # Client side (workflow webhook)
    api_base_url: str = Field(default="http://localhost:8000")
    n8n_webhook_url: str = Field(default="")
    n8n_webhook_token: str = Field(default="")

    @property
    def signing_configured(self) -> bool:
        return bool(self.conversation_secret)

    @property
    def pusher_configured(self) -> bool:
        return all(
            (self.pusher_app_id, self.pusher_key, self.pusher_secret, self.pusher_cluster)
        )

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origin.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build the process-wide settings once."""
    return Settings()
