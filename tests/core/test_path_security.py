"""
Tests for archive path validation.
"""

from __future__ import annotations

import pytest

from sicario_loader.core.path_security import (
    PathValidationError,
    validate_archive_path,
    validate_path,
)


class TestValidatePath:
    """Test validate_path function."""

    @pytest.mark.parametrize(
        "path",
        [
            "ProjectWingman/Content/Data/Aircraft.json",
            "file.txt",
            "a/b.c/d-e_f.json",
            "ProjectWingman/Content/Sicario/Slots/F-14D/1.json",
        ],
    )
    def test_safe_paths(self, path):
        """Relative POSIX paths are accepted."""
        assert validate_path(path) == (True, None)

    @pytest.mark.parametrize(
        ("path", "fragment"),
        [
            ("", "Empty path"),
            ("/etc/passwd", "Absolute"),
            ("C:/Windows/win.ini", "Absolute"),
            ("c:relative", "Absolute"),
            ("../outside.json", "traversal"),
            ("a/../../b", "traversal"),
            ("a\\b.json", "Backslashes"),
            ("a//b", "Empty path component"),
            ("a/./b", "Empty path component"),
            ("a/", "Empty path component"),
            ("a/b?.json", "not allowed"),
            ("x" * 300, "too long"),
        ],
    )
    def test_unsafe_paths(self, path, fragment):
        """Unsafe paths are rejected with a reason."""
        is_safe, error = validate_path(path)

        assert is_safe is False
        assert fragment in error


class TestValidateArchivePath:
    """Test validate_archive_path function."""

    def test_returns_path(self):
        """A safe path is returned unchanged."""
        assert validate_archive_path("a/b/c.json") == "a/b/c.json"

    def test_raises_with_details(self):
        """Unsafe paths raise PathValidationError carrying the path."""
        with pytest.raises(PathValidationError) as exc_info:
            validate_archive_path("../escape")

        assert exc_info.value.path == "../escape"
        assert "traversal" in exc_info.value.reason

    def test_is_value_error(self):
        """PathValidationError is a ValueError for pydantic validators."""
        assert issubclass(PathValidationError, ValueError)
