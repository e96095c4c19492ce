"""Centralized application configuration via Pydantic Settings.

Loads all env vars into a typed Settings instance: Supabase access, CORS,
logging, and the upload / parsing / renewal limits used by the domains.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_ANON_KEY: str = Field(default="", description="Supabase anon/public key")

    # CORS
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Comma-separated allowed origins for CORS",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Python log level")
    ENVIRONMENT: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )

    # App
    APP_VERSION: str = Field(default="0.1.0", description="Application version")

    # Statement ingestion
    MAX_UPLOAD_BYTES: int = Field(default=10 * 1024 * 1024, description="Upload size cap")
    PDF_MAX_PAGES: int = Field(default=100, description="Largest PDF statement accepted")
    PARSE_TIMEOUT_SECONDS: float = Field(default=30, description="Ceiling on one statement parse")
    DEFAULT_CURRENCY: str = Field(default="EUR", description="Currency when a statement has none")

    # Subscriptions
    RENEWAL_WINDOW_DAYS: int = Field(default=30, description="Look-ahead for renewal alerts")

    @property
    def allowed_origins(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    model_config = {"env_file": ".env", "extra": "ignore"}


def get_settings() -> Settings:
    """Factory for Settings — allows test override."""
    return Settings()


settings = get_settings()
