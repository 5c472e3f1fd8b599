"""Configuration management using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Spreadsheet configuration (SHEET_ID is written by `sheet-contacts setup`)
    spreadsheet_id: str | None = Field(default=None, alias="SHEET_ID")
    sheet_name: str = Field(default="Contacts", alias="SHEET_NAME")

    # Google OAuth configuration
    google_client_id: str = Field(alias="GOOGLE_CLIENT_ID")
    google_client_secret: str = Field(alias="GOOGLE_CLIENT_SECRET")
    google_refresh_token: str | None = Field(default=None, alias="GOOGLE_REFRESH_TOKEN")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
