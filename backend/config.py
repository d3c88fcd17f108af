"""Application configuration using pydantic-settings."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./alpha_points.db"

    # Storage keys for the persisted account blob and the last selection
    STORAGE_KEY: str = "binance_alpha_accounts"
    SELECTED_ACCOUNT_KEY: str = "lastSelectedAccount"

    # Dashboard frontend origins allowed by CORS
    CORS_ORIGINS: list[str] = ["http://localhost:4200"]

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    @field_validator("STORAGE_KEY", "SELECTED_ACCOUNT_KEY")
    @classmethod
    def validate_storage_key(cls, v: str) -> str:
        """Storage keys must be non-empty."""
        if not v.strip():
            raise ValueError("storage keys must not be empty")
        return v.strip()

    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"


settings = Settings()
