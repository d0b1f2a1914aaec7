"""Application configuration settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables prefixed with POLYACCESS_.
    For example, POLYACCESS_DATABASE_URL=postgresql+psycopg://user@host/db.
    """

    model_config = SettingsConfigDict(
        env_prefix="POLYACCESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="postgresql+psycopg://postgres@localhost:5432/polyaccess",
        description="Target store connection URL",
    )
    admin_schema: str = Field(
        default="shared",
        description="Schema holding the import log, issues and target database registry",
    )

    # Loading
    batch_size: int = Field(
        default=500,
        description="Rows per multi-row INSERT statement",
        ge=1,
        le=10000,
    )

    # Collaborators
    extractor_command: list[str] = Field(
        default_factory=lambda: [
            "powershell.exe",
            "-NoProfile",
            "-ExecutionPolicy",
            "Bypass",
            "-File",
        ],
        description="Command prefix used to run the extraction scripts",
    )
    extractor_scripts_dir: Path = Field(
        default_factory=lambda: Path.cwd() / "scripts" / "access",
        description="Directory containing export_table / export_query scripts",
    )
    extractor_timeout_seconds: int = Field(
        default=600,
        description="Timeout for a single extraction run",
        ge=1,
    )
    converter_command: list[str] | None = Field(
        default=None,
        description="Command that converts a query payload (JSON on stdin) to target statements",
    )

    # Output
    default_format: Literal["json", "table"] = Field(
        default="json",
        description="Default output format for CLI commands",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    def script_path(self, script_name: str) -> Path:
        """Resolve an extraction script inside the scripts directory."""
        return self.extractor_scripts_dir / script_name


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
