from typing import Annotated, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "StaffHub"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "postgresql+asyncpg://staffhub:staffhub@db:5432/staffhub"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]
    app_url: str = "http://localhost:3000"

    # Email (Resend)
    resend_api_key: str = ""
    notification_from_email: str = "notifications@staffhub.app"
    notify_emails: Annotated[list[str], NoDecode] = []

    # Google Sheets service account
    google_service_account_email: str = ""
    google_private_key: str = ""
    google_sheet_id: str = ""

    # Blob storage for doctor notes
    storage_url: str = ""
    storage_service_key: str = ""
    storage_bucket: str = "sick-day-documents"

    channel_timeout_seconds: float = 10.0

    @field_validator("notify_emails", mode="before")
    @classmethod
    def _split_notify_emails(cls, value: object) -> object:
        if isinstance(value, str):
            return [e.strip() for e in value.split(",") if e.strip()]
        return value

    @field_validator("google_private_key", mode="after")
    @classmethod
    def _unescape_private_key(cls, value: str) -> str:
        return value.replace("\\n", "\n")


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
