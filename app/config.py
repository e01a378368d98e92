"""
Application configuration using Pydantic Settings.

Centralizes all environment variables and app settings.
Everything is read once at startup; nothing here is mutated afterwards.
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (or .env).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars not defined here
    )

    # Application
    app_name: str = "Split It API"
    debug: bool = False
    environment: str = "development"
    port: int = 5000

    # Browser origin of the web client; any http://localhost:<port> is allowed too
    client_url: str = "http://localhost:3000"

    # MongoDB - required; the app refuses to start without it
    mongodb_uri: Optional[str] = None
    mongodb_database: str = "split-it"
    mongodb_connect_timeout_seconds: float = 30.0

    # Firebase - path to the service-account JSON downloaded from the Firebase Console.
    # Missing path disables authentication (protected routes answer 500).
    firebase_service_account_path: Optional[str] = None
    firebase_project_id: Optional[str] = None

    # Uniform timeout applied to every database call
    request_timeout_seconds: float = 10.0

    # Fixed-window rate limit for /api routes
    rate_limit_max: int = 100
    rate_limit_window_seconds: int = 15 * 60

    @field_validator(
        "mongodb_uri",
        "firebase_service_account_path",
        "firebase_project_id",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not isinstance(v, str):
            return v
        return v.strip() or None


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance.
    Using lru_cache avoids re-reading .env on every request.
    """
    return Settings()
