"""
Application configuration using pydantic-settings.

This module centralizes all environment variables and settings for the receiver.
Settings are loaded from environment variables and .env files automatically.

Two backends are supported and selected with BACKEND:
- wekan: cards on a Wekan board, reached through its GraphQL endpoint
- store: documents in a SQLite-backed document store

Each backend has its own required variables. They are checked by
Settings.require_backend_settings(), which the entry point calls before
the server starts so a misconfigured process fails fast.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from evidence_hook.errors import ConfigError

REQUIRED_BY_BACKEND = {
    "wekan": ("graphql_url", "graphql_user", "graphql_pass", "board", "list"),
    "store": ("database_url", "collection"),
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 80
    backend: Literal["wekan", "store"] = "wekan"
    log_level: str = "INFO"

    graphql_url: str = ""
    graphql_user: str = ""
    graphql_pass: str = ""
    board: str = ""
    list: str = ""
    backend_timeout: float = 30.0

    database_url: str = ""
    collection: str = ""

    def require_backend_settings(self) -> None:
        """
        Check that every variable the selected backend needs is set.

        Raises:
            ConfigError: naming the missing environment variables
        """
        missing = [
            name.upper()
            for name in REQUIRED_BY_BACKEND[self.backend]
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(
                f"{', '.join(missing)} not set (required by the {self.backend} backend)"
            )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once per process.
    To reload settings (e.g., in tests), call get_settings.cache_clear().
    """
    return Settings()
