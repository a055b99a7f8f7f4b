"""
Configuration management for the Google login service.

Uses pydantic-settings for environment variable management.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # App
    APP_NAME: str = "GoogleAuth"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Google OAuth client
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REDIRECT_URL: str = "http://localhost:8000/auth/google/callback"
    GOOGLE_DISCOVERY_URL: str = "https://accounts.google.com/.well-known/openid-configuration"

    # Login policy
    GOOGLE_DOMAIN: Optional[str] = None
    GOOGLE_MAX_AUTH_AGE_SECONDS: Optional[int] = None
    GOOGLE_ENFORCE_VALIDITY: bool = True
    GOOGLE_PROMPT: Optional[str] = None

    # Outbound calls to Google
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Anti-forgery tokens (OAuth state parameter)
    ANTI_FORGERY_SECRET: str = "change-me-in-production-use-strong-secret"
    ANTI_FORGERY_RETIRED_SECRETS: str = ""  # comma-separated
    ANTI_FORGERY_ALGORITHM: str = "HS256"
    SESSION_ID_KEY_NAME: str = "googleauth-session-id"

    # Session cookie
    SESSION_SECRET_KEY: str = "change-me-in-production-session-secret"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 24 * 14

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    # Observability
    SENTRY_DSN: Optional[str] = None

    @property
    def retired_secrets(self) -> list[str]:
        return [s.strip() for s in self.ANTI_FORGERY_RETIRED_SECRETS.split(",") if s.strip()]


# Global settings instance
settings = Settings()
