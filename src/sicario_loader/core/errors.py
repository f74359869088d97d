"""
Sicario Loader Errors.

Domain-specific exceptions for the merge/build/install pipeline.
These errors are independent of the transport layer; the CLI maps each
class to its process exit code.
"""

from __future__ import annotations

from pathlib import Path

from .constants import ExitCode


class LoaderError(Exception):
    """Base exception for loader operations."""

    exit_code: ExitCode = ExitCode.ERROR
    error_type: str = "loader_error"

    def to_dict(self) -> dict[str, str]:
        """Structured payload for CLI error output."""
        return {"error": self.error_type, "message": str(self)}


# =============================================================================
# Environment
# =============================================================================


class GameNotLocatedError(LoaderError):
    """Raised when no game install directory could be resolved."""

    exit_code = ExitCode.GAME_NOT_LOCATED
    error_type = "game_not_located"

    def __init__(self, message: str = "Could not locate game install folder"):
        super().__init__(message)


class GameInstallMissingError(LoaderError):
    """Raised when the resolved game install directory does not exist."""

    exit_code = ExitCode.GAME_NOT_FOUND
    error_type = "game_not_found"

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"The game install directory doesn't exist: {path}")

    def to_dict(self) -> dict[str, str]:
        return {**super().to_dict(), "path": str(self.path)}


# =============================================================================
# Sources
# =============================================================================


class SourceLoadError(LoaderError):
    """
    Raised when a single preset file or installed mod cannot be loaded.

    Never terminal: callers convert it into a diagnostic and move on.
    """

    error_type = "source_error"

    def __init__(self, source: Path | str, reason: str):
        self.source = str(source)
        self.reason = reason
        super().__init__(f"{self.source}: {reason}")


# =============================================================================
# Build
# =============================================================================


class BuildError(LoaderError):
    """Raised when the build produced no artifact."""

    exit_code = ExitCode.BUILD_FAILED
    error_type = "build_failed"


class PatchConflictError(BuildError):
    """Raised when two mods write different content to the same target."""

    error_type = "patch_conflict"

    def __init__(self, target: str, first_mod: str, second_mod: str):
        self.target = target
        self.first_mod = first_mod
        self.second_mod = second_mod
        super().__init__(
            f"Mods '{first_mod}' and '{second_mod}' write different content to {target}"
        )

    def to_dict(self) -> dict[str, str]:
        return {
            **super().to_dict(),
            "target": self.target,
            "mods": f"{self.first_mod}, {self.second_mod}",
        }


class ArtifactConsumedError(LoaderError):
    """Raised when a build artifact is moved or discarded a second time."""

    error_type = "artifact_consumed"


# =============================================================================
# Install
# =============================================================================


class InstallError(LoaderError):
    """Raised when the install target could not be replaced."""

    exit_code = ExitCode.INSTALL_FAILED
    error_type = "install_failed"

    def __init__(self, message: str, path: Path | str, operation: str | None = None):
        self.path = str(path)
        self.operation = operation
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        payload = {**super().to_dict(), "path": self.path}
        if self.operation:
            payload["operation"] = self.operation
        return payload
