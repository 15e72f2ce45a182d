"""Pydantic Settings model for application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from gitplumbers_bridge.configuration.models import CloseRetentionPolicy
from gitplumbers_bridge.utils.constants import COMMAND_PREFIX, DEFAULT_GITHUB_API_URL, USER_AGENT


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False

    # GitHub API settings
    GITHUB_API_URL: str = DEFAULT_GITHUB_API_URL
    USER_AGENT: str = USER_AGENT

    # GitHub App settings
    GITHUB_APP_ID: str | None = None
    GITHUB_APP_PRIVATE_KEY: str | None = None
    GITHUB_APP_PRIVATE_KEY_PATH: Path | None = None
    GITHUB_WEBHOOK_SECRET: str | None = None

    # Slash command settings
    COMMAND_PREFIX: str = COMMAND_PREFIX

    # Tracked issue settings
    CLOSE_RETENTION_POLICY: CloseRetentionPolicy = CloseRetentionPolicy.DELETE
    STORE_PATH: Path = Path(".gitplumbers/store.json")


def get_settings() -> Settings:
    """Load settings from the environment and the optional .env file."""
    return Settings()
