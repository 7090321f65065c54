"""
Application configuration with environment-driven settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from surveycall.shared.exceptions import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "surveycall"
    app_env: Literal["dev", "qa", "uat", "prod"] = "dev"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = Field(
        description="Async SQLAlchemy URL of the participant store",
    )
    database_create_schema: bool = Field(
        default=True,
        description="Create missing tables at startup.",
    )

    # Telephony platform
    messagebird_api_key: str = Field(
        description="AccessKey used against the MessageBird Voice API",
    )
    messagebird_voice_base_url: str = Field(
        default="https://voice.messagebird.com",
        description="Base URL of the recording API",
    )
    recording_timeout_seconds: float = Field(
        default=30.0,
        ge=1,
        le=300,
        description="Timeout for upstream recording fetches.",
    )

    # Call flow
    questions_file: Path = Field(
        default=Path("questions.json"),
        description="JSON array of question prompts",
    )
    public_base_url: str = Field(
        default="",
        description="Public base URL the platform uses to reach /callStep",
    )

    @field_validator("database_url", "messagebird_api_key")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty credentials instead of proceeding with them."""
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("public_base_url", "messagebird_voice_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")


def load_settings(**overrides: object) -> Settings:
    """Build settings, converting validation failures into ConfigError."""
    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        fields = sorted(
            {".".join(str(loc) for loc in error["loc"]).upper() for error in exc.errors()}
        )
        raise ConfigError(
            f"Missing or invalid configuration: {', '.join(fields)}",
            {"fields": fields},
        ) from exc


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()
