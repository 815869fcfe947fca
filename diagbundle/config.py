"""Configuration loading for the diagbundle orchestration system.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Diagnostic script configuration
    installation_home: str = Field(
        default="/opt/cluster",
        description="Installation home directory containing the diagnostic script",
    )
    diag_script_dir: str = Field(
        default="bin",
        description="Directory of the diagnostic script, relative to installation_home",
    )
    diag_script_name: str = Field(
        default="diag.sh",
        description="File name of the diagnostic script",
    )
    archive_suffix: str = Field(
        default=".zip",
        description="File name suffix of the bundle produced by the script",
    )
    diag_timeout_seconds: float = Field(
        default=0,
        description="Seconds before a diagnostic run is killed (0 = no limit)",
    )
    kill_grace_seconds: float = Field(
        default=5.0,
        description="Seconds between SIGTERM and SIGKILL when killing a run",
    )

    # Workspace configuration
    workspace_root: str = Field(
        default="",
        description="Directory for diagnosis workspaces (empty = <system temp dir>/diagbundle)",
    )
    workspace_retention_hours: float = Field(
        default=24.0,
        description="Age after which unreleased workspaces are swept",
    )
    janitor_interval_seconds: int = Field(
        default=600,
        description="Interval between workspace sweeps in seconds",
    )

    # Access control configuration
    access_backend: Literal["static", "rest"] = Field(
        default="static",
        description="Access-control backend type",
    )
    access_service_url: str = Field(
        default="http://localhost:7070",
        description="Permission service base URL",
    )
    access_api_key: str = Field(
        default="",
        description="Permission service bearer token",
    )
    allowed_projects: list[str] = Field(
        default_factory=list,
        description="Static allow-list entries of the form 'user:project' ('*' wildcards)",
    )

    # Job service configuration
    job_service_url: str = Field(
        default="http://localhost:7070",
        description="Job-metadata service base URL",
    )
    job_service_api_key: str = Field(
        default="",
        description="Job-metadata service bearer token",
    )

    # Bad-query store configuration
    bad_query_db_path: str = Field(
        default="./data/bad_queries.db",
        description="SQLite database file path for bad-query history",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Run mode
    run_mode: Literal["server", "cli"] = Field(
        default="server",
        description="Run mode",
    )
    cli_user: str = Field(
        default="ADMIN",
        description="Identity used for permission checks in CLI mode",
    )

    # HTTP server configuration
    server_host: str = Field(
        default="0.0.0.0",
        description="Host to listen on for the HTTP server",
    )
    server_port: int = Field(
        default=7070,
        description="Port to listen on for the HTTP server",
    )
    server_api_key: str = Field(
        default="",
        description="API key for HTTP authentication (required for production)",
    )
    server_require_auth: bool = Field(
        default=False,
        description="Require API key authentication for HTTP endpoints",
    )

    # Development
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    @field_validator("diag_timeout_seconds", "kill_grace_seconds")
    @classmethod
    def validate_non_negative_seconds(cls, v: float) -> float:
        """Ensure durations are non-negative."""
        if v < 0:
            raise ValueError("durations must be non-negative")
        return v

    @field_validator("workspace_retention_hours")
    @classmethod
    def validate_retention(cls, v: float) -> float:
        """Ensure retention window is positive."""
        if v <= 0:
            raise ValueError("workspace_retention_hours must be positive")
        return v

    @field_validator("janitor_interval_seconds")
    @classmethod
    def validate_janitor_interval(cls, v: int) -> int:
        """Ensure sweep interval is positive."""
        if v <= 0:
            raise ValueError("janitor_interval_seconds must be positive")
        return v

    @field_validator("archive_suffix")
    @classmethod
    def validate_archive_suffix(cls, v: str) -> str:
        """Ensure archive suffix is non-empty."""
        if not v:
            raise ValueError("archive_suffix must be non-empty")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_server_port(cls, v: int) -> int:
        """Ensure server port is in valid range."""
        if v <= 0 or v > 65535:
            raise ValueError("server_port must be between 1 and 65535")
        return v

    @property
    def diag_timeout(self) -> float | None:
        """Script timeout in seconds, or None when unbounded."""
        return self.diag_timeout_seconds or None


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
