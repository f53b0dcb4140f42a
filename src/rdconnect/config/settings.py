"""Configuration management using Pydantic Settings."""

from pathlib import Path
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="RDCONNECT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend
    api_base_url: str = Field("http://localhost:8000", description="Base URL of the R&D Connect API")
    request_timeout: float = Field(30.0, gt=0, description="Per-request timeout in seconds")

    # Local state (credential store lives here)
    state_dir: Path = Field(Path.home() / ".rdconnect")

    # Logging
    log_level: str = Field("INFO")
    log_format: str = Field("json", pattern="^(json|text)$")

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("state_dir")
    @classmethod
    def _expand_state_dir(cls, v: Path) -> Path:
        return v.expanduser()


# Instantiate global settings
settings = Settings()
