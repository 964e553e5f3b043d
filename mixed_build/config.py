"""Configuration settings for mixed_build.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the MIXED_BUILD_ prefix.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="MIXED_BUILD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    tmp_dir: Path | None = Field(
        default=None,
        description="Parent directory for the scratch workspace "
        "(uses system default if not set)",
    )

    # Artifact naming
    target_files_pattern: str = Field(
        default="*-target_files-*.zip",
        description="Glob matching the target-files archive in a build directory",
    )
    image_archive_pattern: str = Field(
        default="*-img-*.zip",
        description="Glob matching the device image archive in a build directory",
    )
    security_patch_property: str = Field(
        default="ro.build.version.security_patch",
        description="Build property holding the security patch level",
    )

    # Operational
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    tool_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Timeout in seconds for each external tool (None = wait forever)",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
