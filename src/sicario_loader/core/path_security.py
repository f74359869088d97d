"""
Sicario Loader Path Security

Centralized validation of paths that come from mod authors.

Patch targets and archive member names end up as file names under the build
staging directory, so they must stay inside it: relative, POSIX-style, without
traversal components or drive letters.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from .logging import get_logger

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Windows drive prefix such as "C:" or "c:/"
_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:")

# Characters Windows refuses in file names; targets must be portable
_FORBIDDEN_CHARS = frozenset('<>:"|?*')

MAX_PATH_LENGTH = 260


# =============================================================================
# Exceptions
# =============================================================================


class PathValidationError(ValueError):
    """
    Raised when path validation fails.

    Subclasses ValueError so pydantic validators report it as a field error.
    """

    def __init__(self, message: str, path: str | None = None, reason: str | None = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Path Validation Functions
# =============================================================================


def validate_path(path: str) -> tuple[bool, str | None]:
    """
    Validate that an archive path is safe to write under a staging root.

    Ensures:
    - Path is non-empty and not too long
    - Path is relative (not absolute, no drive letter)
    - Path uses forward slashes only
    - Path doesn't contain traversal or empty components
    - Path contains no characters Windows rejects

    Args:
        path: The archive-relative path to validate

    Returns:
        Tuple of (is_safe, error_message)
        If safe, error_message is None

    Examples:
        >>> validate_path("ProjectWingman/Content/Data/Aircraft.json")
        (True, None)
        >>> validate_path("../outside.json")
        (False, 'Path traversal not allowed: ../outside.json')
    """
    if not path:
        return False, "Empty path"

    if len(path) > MAX_PATH_LENGTH:
        return False, f"Path too long ({len(path)} characters, max {MAX_PATH_LENGTH}): {path}"

    if "\\" in path:
        return False, f"Backslashes not allowed (use '/'): {path}"

    if path.startswith("/") or _DRIVE_PATTERN.match(path):
        return False, f"Absolute paths not allowed: {path}"

    parts = path.split("/")
    if ".." in parts:
        return False, f"Path traversal not allowed: {path}"

    if any(part in ("", ".") for part in parts):
        return False, f"Empty path component not allowed: {path}"

    bad = sorted(_FORBIDDEN_CHARS.intersection(path))
    if bad:
        return False, f"Characters {''.join(bad)!r} not allowed: {path}"

    return True, None


def validate_archive_path(path: str) -> str:
    """
    Validate an archive path, raising on failure.

    Args:
        path: The archive-relative path to validate

    Returns:
        The path in canonical POSIX form

    Raises:
        PathValidationError: If the path is unsafe
    """
    is_safe, error = validate_path(path)
    if not is_safe:
        logger.debug("Rejected unsafe archive path: %s - %s", path, error)
        raise PathValidationError(error or "Invalid path", path=path, reason=error)
    return str(PurePosixPath(path))
