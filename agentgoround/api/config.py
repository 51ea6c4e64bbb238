"""Configuration management using pydantic-settings."""

import os
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_cors_origins() -> List[str]:
    """Build CORS defaults, honoring FRONTEND_PORT when set."""
    frontend_port = os.getenv("FRONTEND_PORT", "").strip()
    origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    if frontend_port:
        origins = [
            f"http://localhost:{frontend_port}",
            f"http://127.0.0.1:{frontend_port}",
            *origins,
        ]
    return origins


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8900
    cors_origins: List[str] = Field(default_factory=_default_cors_origins)

    # Storage Configuration
    data_dir: Path = Path("data")
    agents_config_path: Path = Path("data/agents.yaml")
    settings_path: Path = Path("data/settings.yaml")
    documents_path: Path = Path("data/documents.yaml")

    # Orchestration defaults
    default_max_rounds: int = 8
    default_max_turns: int = 8
    default_react_max: int = 2
    default_retry_delay_sec: float = 2.0
    default_retry_max: int = 2

    # Tool transport
    mcp_request_timeout_seconds: float = 15.0

    # Logging
    log_level: str = "INFO"
    logs_dir: Path = Path("logs")
    trace_preview_chars: int = 1600

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GOROUND_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return (value or "INFO").strip().upper()


# Global settings instance
settings = Settings()
