"""
Preset file loading.

Preset files (``*.dtp``) are JSON documents, and YAML is accepted too:

    {
        "name": "Night Ops",
        "modParameters": {"hud_color": "green"},
        "mods": [
            {"id": "night-hud", "patches": [{"target": "...", "content": "..."}]}
        ]
    }

A malformed file only drops that file: the failure is recorded in the
loader's ``diagnostics`` and logged, and loading continues with the next one.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..core.constants import PRESET_EXTENSION
from ..core.errors import SourceLoadError
from ..core.logging import get_logger
from ..models.mods import Preset, SourceDiagnostic, SourceKind

logger = get_logger(__name__)


# =============================================================================
# Parsing
# =============================================================================


def _load_document(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # Not JSON; YAML also covers hand-written presets
        return yaml.safe_load(text)


def _describe_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "document"
    extra = error.error_count() - 1
    suffix = f" (+{extra} more)" if extra else ""
    return f"{location}: {first['msg']}{suffix}"


def parse_preset(text: str, source: str, kind: SourceKind = SourceKind.LOOSE) -> Preset:
    """
    Parse preset file content.

    Args:
        text: Document text (JSON or YAML)
        source: Identity recorded on the preset and in errors
        kind: Provenance of the document

    Returns:
        Validated Preset

    Raises:
        SourceLoadError: If the text is not a valid preset document
    """
    try:
        document = _load_document(text)
    except yaml.YAMLError as e:
        raise SourceLoadError(source, f"invalid JSON/YAML: {e}") from e

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise SourceLoadError(source, "preset must be a JSON object")

    try:
        return Preset.model_validate({**document, "source": source, "kind": kind})
    except ValidationError as e:
        raise SourceLoadError(source, _describe_validation_error(e)) from e


# =============================================================================
# Loader
# =============================================================================


class PresetFileLoader:
    """
    Loads loose preset files from a set of search directories.

    Usage:
        loader = PresetFileLoader()
        files = loader.iter_preset_files(context.preset_search_paths)
        presets = list(loader.load_from_files(files))
        for diagnostic in loader.diagnostics:
            ...
    """

    def __init__(self, extension: str = PRESET_EXTENSION) -> None:
        self.extension = extension.lower()
        self.diagnostics: list[SourceDiagnostic] = []

    def iter_preset_files(self, directories: Iterable[Path]) -> Iterator[Path]:
        """
        Enumerate preset files under each directory in order.

        Missing directories are skipped. Within a directory, files are ordered
        by relative path. A file reachable from two directories is yielded once.
        """
        seen: set[Path] = set()
        for directory in directories:
            if not directory.is_dir():
                logger.debug("Preset directory not found, skipping: %s", directory)
                continue

            found = []
            for root, _dirs, files in os.walk(directory):
                for name in files:
                    if name.lower().endswith(self.extension):
                        path = Path(root) / name
                        found.append((path.relative_to(directory).as_posix(), path))

            for _relative, path in sorted(found):
                resolved = path.resolve()
                if resolved in seen:
                    continue
                seen.add(resolved)
                yield path

    def load_file(self, path: Path) -> Preset:
        """
        Load a single preset file.

        Raises:
            SourceLoadError: If the file cannot be read or parsed
        """
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceLoadError(path, f"unreadable: {e}") from e
        return parse_preset(text, str(path), SourceKind.LOOSE)

    def load_from_files(self, paths: Iterable[Path]) -> Iterator[Preset]:
        """
        Lazily load presets, skipping malformed files.

        Each skipped file adds a SourceDiagnostic to ``diagnostics``.
        """
        for path in paths:
            try:
                preset = self.load_file(path)
            except SourceLoadError as e:
                logger.warning("Skipping preset %s", e, extra={"source": e.source})
                self.diagnostics.append(
                    SourceDiagnostic(source=e.source, message=e.reason, kind=SourceKind.LOOSE)
                )
                continue
            logger.debug("Loaded preset '%s' from %s", preset.name, path)
            yield preset
