"""
Tests for Sicario Loader Retry Logic.
"""

from __future__ import annotations

import warnings
from unittest.mock import MagicMock

import pytest

from sicario_loader.core.retry import (
    DEFAULT_MAX_ATTEMPTS,
    call_with_retry,
    fs_retry,
)


class TestFsRetry:
    """Test fs_retry decorator."""

    def test_default_attempts(self):
        """Default attempt budget is three."""
        assert DEFAULT_MAX_ATTEMPTS == 3

    def test_success_first_try(self):
        """A successful call runs once."""
        func = MagicMock(return_value="ok")

        assert fs_retry(max_attempts=3, min_wait=0, max_wait=0)(func)() == "ok"
        assert func.call_count == 1

    def test_retries_permission_error(self):
        """PermissionError is retried until the call succeeds."""
        func = MagicMock(side_effect=[PermissionError("locked"), PermissionError("locked"), "ok"])

        result = fs_retry(max_attempts=3, min_wait=0, max_wait=0)(func)()

        assert result == "ok"
        assert func.call_count == 3

    def test_reraises_after_last_attempt(self):
        """The final PermissionError propagates unchanged."""
        func = MagicMock(side_effect=PermissionError("locked"))

        with pytest.raises(PermissionError, match="locked"):
            fs_retry(max_attempts=2, min_wait=0, max_wait=0)(func)()
        assert func.call_count == 2

    def test_other_errors_not_retried(self):
        """Errors other than PermissionError fail on the first attempt."""
        func = MagicMock(side_effect=FileNotFoundError("gone"))

        with pytest.raises(FileNotFoundError):
            fs_retry(max_attempts=5, min_wait=0, max_wait=0)(func)()
        assert func.call_count == 1

    def test_single_attempt_returns_function(self):
        """With one attempt the function is not wrapped."""

        def func():
            return 1

        assert fs_retry(max_attempts=1)(func) is func

    def test_retry_emits_no_warnings(self):
        """Building the wait strategy uses only current tenacity arguments."""
        func = MagicMock(side_effect=[PermissionError("locked"), "ok"])

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = fs_retry(max_attempts=2, min_wait=0, max_wait=0)(func)()

        assert result == "ok"


class TestCallWithRetry:
    """Test call_with_retry helper."""

    def test_passes_arguments(self):
        """Positional and keyword arguments reach the function."""
        func = MagicMock(return_value=3)

        assert call_with_retry(func, 1, 2, max_attempts=1, flag=True) == 3
        func.assert_called_once_with(1, 2, flag=True)
