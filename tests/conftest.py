"""
Sicario Loader Test Suite - Shared Fixtures and Configuration

Provides a throwaway game install layout and factories for preset files and
pak containers.
"""

from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import Any, Callable

import pytest

from sicario_loader.core.config import reset_settings
from sicario_loader.core.constants import METADATA_MEMBER
from sicario_loader.core.logging import reset_logging


# =============================================================================
# Singleton Reset
# =============================================================================


@pytest.fixture(autouse=True)
def reset_all_singletons(monkeypatch):
    """
    Reset settings and logging between tests.

    SICARIO_* variables from the developer's shell are removed so every test
    starts from defaults.
    """
    import os

    for key in list(os.environ):
        if key.startswith("SICARIO_"):
            monkeypatch.delenv(key, raising=False)

    reset_settings()
    reset_logging()
    yield
    reset_settings()
    reset_logging()


# =============================================================================
# Document Helpers
# =============================================================================


def make_mod(
    mod_id: str | None = None,
    patches: dict[str, str] | None = None,
    parameters: dict[str, str] | None = None,
    name: str | None = None,
) -> dict[str, Any]:
    """Build a mod document as it appears in preset files."""
    document: dict[str, Any] = {
        "name": name or mod_id or "",
        "patches": [{"target": t, "content": c} for t, c in (patches or {}).items()],
    }
    if mod_id:
        document["id"] = mod_id
    if parameters:
        document["parameters"] = parameters
    return document


def make_preset(
    name: str = "",
    parameters: dict[str, str] | None = None,
    mods: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a preset document."""
    return {"name": name, "modParameters": parameters or {}, "mods": mods or []}


def make_metadata(
    name: str = "SicarioMerge",
    template_inputs: dict[str, str] | None = None,
    mods: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build installed composite metadata."""
    return {
        "format": 1,
        "name": name,
        "userName": "loader:test",
        "createdAt": "2026-01-15T12:30:00Z",
        "templateInputs": template_inputs or {},
        "mods": mods or [],
    }


# =============================================================================
# Game Layout Fixtures
# =============================================================================


@pytest.fixture
def game_dir(tmp_path: Path) -> Path:
    """A game install with empty Paks, ~mods and Presets directories."""
    game = tmp_path / "Project Wingman"
    (game / "ProjectWingman" / "Content" / "Paks" / "~mods").mkdir(parents=True)
    (game / "ProjectWingman" / "Content" / "Presets").mkdir(parents=True)
    return game


@pytest.fixture
def paks_dir(game_dir: Path) -> Path:
    return game_dir / "ProjectWingman" / "Content" / "Paks"


@pytest.fixture
def install_dir(paks_dir: Path) -> Path:
    return paks_dir / "~sicario"


@pytest.fixture
def presets_dir(game_dir: Path) -> Path:
    return game_dir / "ProjectWingman" / "Content" / "Presets"


@pytest.fixture
def write_preset() -> Callable[..., Path]:
    """
    Factory writing a preset document to disk.

    Usage:
        path = write_preset(tmp_path / "a.dtp", make_preset(parameters={"k": "v"}))
    """

    def _write(path: Path, document: dict[str, Any] | str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        text = document if isinstance(document, str) else json.dumps(document)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_pak() -> Callable[..., Path]:
    """
    Factory writing a pak container.

    Usage:
        write_pak(dir / "a.pak", metadata=make_metadata(), presets={"x.dtp": make_preset()})
    """

    def _write(
        path: Path,
        metadata: dict[str, Any] | str | None = None,
        presets: dict[str, dict[str, Any] | str] | None = None,
        files: dict[str, str] | None = None,
    ) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as archive:
            if metadata is not None:
                text = metadata if isinstance(metadata, str) else json.dumps(metadata)
                archive.writestr(METADATA_MEMBER, text)
            for member, document in (presets or {}).items():
                text = document if isinstance(document, str) else json.dumps(document)
                archive.writestr(member, text)
            for member, content in (files or {}).items():
                archive.writestr(member, content)
        return path

    return _write


def snapshot_tree(root: Path) -> dict[str, bytes]:
    """Relative path to content for every file under root."""
    if not root.exists():
        return {}
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }
