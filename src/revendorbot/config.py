"""RevendorBot configuration using pydantic-settings.

This module defines the RevendorSettings class that reads configuration
from environment variables with the REVENDOR_ prefix. The GitHub token may
also be supplied through the conventional GITHUB_TOKEN variable.
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RevendorSettings(BaseSettings):
    """RevendorBot configuration from environment variables.

    All environment variables are prefixed with REVENDOR_ (e.g.,
    REVENDOR_TIMEOUT_SECONDS). The only required field is the GitHub token,
    read from REVENDOR_GITHUB_TOKEN or GITHUB_TOKEN.
    """

    model_config = SettingsConfigDict(
        env_prefix="REVENDOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # GitHub Configuration
    # -------------------------------------------------------------------------
    # API token used to read commits and pull requests and to manage comments
    github_token: str = Field(
        validation_alias=AliasChoices("REVENDOR_GITHUB_TOKEN", "GITHUB_TOKEN"),
    )

    # Base URL for GitHub API (supports GitHub Enterprise)
    github_base_url: str = "https://api.github.com"

    # Per-request HTTP timeout in seconds
    github_timeout_seconds: float = 30.0

    # -------------------------------------------------------------------------
    # Revendor Configuration
    # -------------------------------------------------------------------------
    # Wall-clock ceiling for a whole revendor run, clone through push
    revendor_timeout_seconds: int = Field(
        default=15,
        validation_alias=AliasChoices(
            "REVENDOR_TIMEOUT_SECONDS", "REVENDOR_REVENDOR_TIMEOUT_SECONDS"
        ),
    )

    # Comment text that triggers a revendor on a pull request
    trigger_command: str = "/revendor"

    # Parent directory for temporary workspaces; system temp dir when unset
    workspace_base_path: Optional[str] = None

    # Executables for the version-control and dependency tools
    git_path: str = "git"
    go_path: str = "go"

    # Whether commits are GPG-signed (git commit -S)
    sign_commits: bool = True

    # -------------------------------------------------------------------------
    # Logging / Server Configuration
    # -------------------------------------------------------------------------
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 8080

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("github_token")
    @classmethod
    def validate_github_token(cls, v: str) -> str:
        """Validate that GitHub token is not empty."""
        if not v or not v.strip():
            raise ValueError("github_token cannot be empty")
        return v

    @field_validator("github_base_url")
    @classmethod
    def validate_github_base_url(cls, v: str) -> str:
        """Validate that the GitHub base URL is an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("github_base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("revendor_timeout_seconds")
    @classmethod
    def validate_revendor_timeout(cls, v: int) -> int:
        """Validate that revendor timeout is positive."""
        if v < 1:
            raise ValueError("revendor_timeout_seconds must be at least 1")
        return v

    @field_validator("trigger_command")
    @classmethod
    def validate_trigger_command(cls, v: str) -> str:
        """Validate that the trigger command is not blank."""
        if not v.strip():
            raise ValueError("trigger_command cannot be empty")
        return v.strip()

    @field_validator("workspace_base_path")
    @classmethod
    def validate_workspace_path(cls, v: Optional[str]) -> Optional[str]:
        """Validate that workspace base path, when set, is absolute."""
        if v is not None and not Path(v).is_absolute():
            raise ValueError("workspace_base_path must be an absolute path")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the log level is a known logging level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate that port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError("port must be between 1 and 65535")
        return v


def get_settings() -> RevendorSettings:
    """Create and return RevendorSettings instance.

    Returns:
        RevendorSettings: Configured settings instance.

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    return RevendorSettings()


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the entry points."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
