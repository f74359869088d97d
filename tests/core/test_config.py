"""
Tests for centralized configuration module.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from unittest import mock

import pytest
from pydantic import ValidationError

from sicario_loader.core.config import (
    LoaderSettings,
    get_settings,
    reset_settings,
)


class TestLoaderSettings:
    """Test LoaderSettings class."""

    def test_default_values(self):
        """Test that default values are correct."""
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = LoaderSettings()

            assert settings.log_level == "WARNING"
            assert settings.debug is False
            assert settings.log_json is False
            assert settings.game_path is None
            assert settings.slot_config is None
            assert settings.steam_roots == []
            assert settings.build_name == "SicarioMerge"
            assert settings.pack_result is True
            assert settings.install_retry_attempts == 3

    def test_log_level_case_insensitive(self):
        """Test log level is case-insensitive."""
        with mock.patch.dict(os.environ, {"SICARIO_LOG_LEVEL": "info"}, clear=True):
            settings = LoaderSettings()
            assert settings.log_level == "INFO"
            assert settings.log_level_int == logging.INFO

    def test_invalid_log_level_rejected(self):
        """Unknown level names fail validation."""
        with mock.patch.dict(os.environ, {"SICARIO_LOG_LEVEL": "LOUD"}, clear=True):
            with pytest.raises(ValidationError):
                LoaderSettings()

    def test_legacy_debug_flag(self):
        """SICARIO_DEBUG enables DEBUG when no level is set."""
        with mock.patch.dict(os.environ, {"SICARIO_DEBUG": "1"}, clear=True):
            settings = LoaderSettings()
            assert settings.effective_log_level == "DEBUG"

    def test_explicit_level_beats_debug_flag(self):
        """An explicit level wins over the legacy flag."""
        env = {"SICARIO_DEBUG": "1", "SICARIO_LOG_LEVEL": "ERROR"}
        with mock.patch.dict(os.environ, env, clear=True):
            assert LoaderSettings().effective_log_level == "ERROR"

    def test_paths_from_env(self, tmp_path: Path):
        """Path settings are parsed from the environment."""
        env = {
            "SICARIO_GAME_PATH": str(tmp_path / "game"),
            "SICARIO_SLOT_CONFIG": str(tmp_path / "slots.yaml"),
            "SICARIO_STEAM_ROOTS": f'["{(tmp_path / "steam").as_posix()}"]',
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = LoaderSettings()

            assert settings.game_path == tmp_path / "game"
            assert settings.slot_config == tmp_path / "slots.yaml"
            assert settings.steam_roots == [Path((tmp_path / "steam").as_posix())]

    @pytest.mark.parametrize("name", ["a/b", "a\\b", "..", ""])
    def test_build_name_must_be_file_name(self, name):
        """Build names that would escape the install directory are rejected."""
        with mock.patch.dict(os.environ, {"SICARIO_BUILD_NAME": name}, clear=True):
            with pytest.raises(ValidationError):
                LoaderSettings()

    @pytest.mark.parametrize("attempts", ["0", "11"])
    def test_retry_attempts_bounds(self, attempts):
        """Retry attempts must be between 1 and 10."""
        env = {"SICARIO_INSTALL_RETRY_ATTEMPTS": attempts}
        with mock.patch.dict(os.environ, env, clear=True):
            with pytest.raises(ValidationError):
                LoaderSettings()


class TestSingleton:
    """Test settings caching."""

    def test_get_settings_is_cached(self):
        """Repeated calls return the same instance."""
        assert get_settings() is get_settings()

    def test_reset_settings_reloads(self, monkeypatch):
        """reset_settings picks up environment changes."""
        first = get_settings()
        monkeypatch.setenv("SICARIO_BUILD_NAME", "Renamed")
        assert get_settings().build_name == first.build_name

        reset_settings()
        assert get_settings().build_name == "Renamed"

