"""
Sicario Loader Centralized Configuration

Provides validated, type-safe access to all environment variables using Pydantic Settings.
Settings are read once per run, when the run context is built; pipeline stages never
consult them directly.

Usage:
    from sicario_loader.core.config import get_settings

    settings = get_settings()
    if settings.game_path:
        ...

Environment Variables:
    SICARIO_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    SICARIO_DEBUG: Legacy debug flag (enables DEBUG level if set)
    SICARIO_LOG_JSON: Output logs as JSON
    SICARIO_GAME_PATH: Game install directory (skips Steam library detection)
    SICARIO_SLOT_CONFIG: Skin slot configuration file
    SICARIO_BUILD_NAME: Name of the composite mod
    SICARIO_PACK_RESULT: Pack the build into a single archive (default true)
    SICARIO_INSTALL_RETRY_ATTEMPTS: Attempts for locked-file operations during install
    SICARIO_STEAM_ROOTS: Extra Steam roots to search (JSON list)
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_BUILD_NAME


def _find_project_env_file() -> Path | None:
    """
    Find .env file by searching for project root markers.

    Searches upward from this file's location for pyproject.toml,
    then checks for .env in that directory.

    Returns:
        Path to .env if found, None otherwise
    """
    current = Path(__file__).resolve().parent

    for _ in range(10):  # Limit search depth
        if (current / "pyproject.toml").exists():
            env_file = current / ".env"
            if env_file.exists():
                return env_file
            return None
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


_ENV_FILE = _find_project_env_file()


class LoaderSettings(BaseSettings):
    """
    Loader configuration settings with validation.

    Environment variables are automatically loaded with the SICARIO_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="SICARIO_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Log level for loader components",
    )

    debug: bool = Field(
        default=False,
        description="Legacy debug flag (enables DEBUG level if set)",
    )

    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format for machine parsing",
    )

    # =========================================================================
    # Game Location
    # =========================================================================

    game_path: Optional[Path] = Field(
        default=None,
        description="Game install directory; bypasses Steam library detection",
    )

    steam_roots: list[Path] = Field(
        default_factory=list,
        description="Additional Steam installation roots searched before the defaults",
    )

    slot_config: Optional[Path] = Field(
        default=None,
        description="Skin slot configuration file (default: Presets/skin-slots.yaml)",
    )

    # =========================================================================
    # Build & Install
    # =========================================================================

    build_name: str = Field(
        default=DEFAULT_BUILD_NAME,
        min_length=1,
        description="Display name of the composite mod",
    )

    pack_result: bool = Field(
        default=True,
        description="Pack the build into a single archive instead of a loose directory",
    )

    install_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for filesystem operations blocked by a locked file",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("build_name")
    @classmethod
    def reject_path_separators(cls, v: str) -> str:
        """The build name becomes a file name inside the install target."""
        if "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"build name must be a plain file name: {v!r}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def effective_log_level(self) -> str:
        """
        Get effective log level, respecting legacy SICARIO_DEBUG.

        Priority:
        1. Explicit SICARIO_LOG_LEVEL
        2. SICARIO_DEBUG=1 → DEBUG
        3. Default: WARNING
        """
        if self.debug and self.log_level == "WARNING":
            return "DEBUG"
        return self.log_level

    @property
    def log_level_int(self) -> int:
        """Get effective log level as logging constant."""
        return getattr(logging, self.effective_log_level)


# =============================================================================
# Singleton Accessor
# =============================================================================


@lru_cache(maxsize=1)
def get_settings() -> LoaderSettings:
    """
    Get the singleton settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    The settings are validated at first access.
    """
    return LoaderSettings()


def reset_settings() -> None:
    """
    Reset the settings cache (for testing).

    After calling this, the next get_settings() call will
    reload settings from environment variables.
    """
    get_settings.cache_clear()

