"""Configuration management for convotree."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CONVOTREE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Telegram
    telegram_token: str | None = Field(default=None, description="Bot API token")
    telegram_allow_from: list[str] = Field(default_factory=list, description="Allowed user ids or usernames")

    # Conversations
    default_language: str = Field(default="en", description="Language for new sessions")
    restart_command: str = Field(default="/start", description="Text that cancels any conversation and greets")
    error_log_path: Path | None = Field(default=None, description="Where failed conversations are recorded")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_profile: Literal["default", "console"] = Field(default="default", description="Log output profile")


def load_settings(**overrides: object) -> Settings:
    """Load settings from the environment and `.env`, applying explicit overrides."""
    settings = Settings()
    updates = {key: value for key, value in overrides.items() if value is not None}
    if updates:
        settings = settings.model_copy(update=updates)
    return settings
