"""
Sicario Loader Core

Shared infrastructure: configuration, logging, errors, retry and path checks.
"""

from .config import LoaderSettings, get_settings, reset_settings
from .constants import ExitCode
from .errors import (
    ArtifactConsumedError,
    BuildError,
    GameInstallMissingError,
    GameNotLocatedError,
    InstallError,
    LoaderError,
    PatchConflictError,
    SourceLoadError,
)
from .formatters import format_bytes, format_duration, get_utc_timestamp
from .logging import get_logger
from .path_security import PathValidationError, validate_archive_path

__all__ = [
    "ArtifactConsumedError",
    "BuildError",
    "ExitCode",
    "GameInstallMissingError",
    "GameNotLocatedError",
    "InstallError",
    "LoaderError",
    "LoaderSettings",
    "PatchConflictError",
    "PathValidationError",
    "SourceLoadError",
    "format_bytes",
    "format_duration",
    "get_logger",
    "get_settings",
    "get_utc_timestamp",
    "reset_settings",
    "validate_archive_path",
]
