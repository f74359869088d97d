"""
Installed mod discovery.

Scans the mod directories for ``.pak`` containers and surfaces two results:
composites previously built by this loader (recognised by their
``sicario/merge.json`` metadata) and preset files embedded in any pak.
No merging happens here.

Paks in ``~mods`` are mostly ordinary Unreal archives, which are not readable
containers; those are skipped quietly. Inside the loader-managed directory
every pak should be readable, so a bad one is reported.
"""

from __future__ import annotations

import json
import zipfile
from collections.abc import Sequence
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..core.constants import (
    METADATA_FORMAT_VERSION,
    METADATA_MEMBER,
    PAK_EXTENSION,
    PRESET_EXTENSION,
)
from ..core.errors import SourceLoadError
from ..core.logging import get_logger
from ..models.mods import InstalledMod, Preset, SourceDiagnostic, SourceKind
from .presets import parse_preset

logger = get_logger(__name__)


def _member_source(pak: Path, member: str) -> str:
    return f"{pak}!{member}"


class MergeLoader:
    """
    Discovers installed composites and embedded presets.

    Args:
        mod_dirs: Directories to scan, in discovery order
        managed_dir: The loader's own install directory, where unreadable
            paks are reported instead of skipped silently

    Usage:
        loader = MergeLoader(context.mod_dirs, context.install_target)
        installed = loader.get_installed_mods()
        embedded = loader.load_embedded_presets()
    """

    def __init__(self, mod_dirs: Sequence[Path], managed_dir: Optional[Path] = None) -> None:
        self.mod_dirs = tuple(mod_dirs)
        self.managed_dir = managed_dir
        self.diagnostics: list[SourceDiagnostic] = []
        self._installed: list[InstalledMod] = []
        self._embedded: list[Preset] = []
        self._scanned = False

    # =========================================================================
    # Public API
    # =========================================================================

    def get_installed_mods(self) -> list[InstalledMod]:
        """Installed composites in discovery order."""
        self._ensure_scanned()
        return list(self._installed)

    def load_embedded_presets(self) -> list[Preset]:
        """Embedded presets ordered by pak, then member name."""
        self._ensure_scanned()
        return list(self._embedded)

    def iter_paks(self) -> list[Path]:
        """All ``.pak`` files in the mod directories, each directory sorted."""
        paks: list[Path] = []
        for directory in self.mod_dirs:
            if not directory.is_dir():
                logger.debug("Mod directory not found, skipping: %s", directory)
                continue
            paks.extend(
                sorted(
                    p
                    for p in directory.iterdir()
                    if p.is_file() and p.suffix.lower() == PAK_EXTENSION
                )
            )
        return paks

    # =========================================================================
    # Scanning
    # =========================================================================

    def _ensure_scanned(self) -> None:
        if self._scanned:
            return
        self._scanned = True
        for pak in self.iter_paks():
            self._scan_pak(pak)

    def _is_managed(self, pak: Path) -> bool:
        return self.managed_dir is not None and pak.parent == self.managed_dir

    def _report(self, error: SourceLoadError, kind: SourceKind) -> None:
        logger.warning("Skipping %s", error, extra={"source": error.source})
        self.diagnostics.append(
            SourceDiagnostic(source=error.source, message=error.reason, kind=kind)
        )

    def _scan_pak(self, pak: Path) -> None:
        try:
            archive = zipfile.ZipFile(pak)
        except (zipfile.BadZipFile, OSError) as e:
            if self._is_managed(pak):
                error = SourceLoadError(pak, f"unreadable container: {e}")
                self._report(error, SourceKind.INSTALLED)
            else:
                logger.debug("Not a loader container, skipping: %s", pak)
            return

        with archive:
            names = archive.namelist()
            if METADATA_MEMBER in names:
                try:
                    installed = self._read_metadata(archive, pak)
                except SourceLoadError as e:
                    self._report(e, SourceKind.INSTALLED)
                else:
                    logger.debug("Found installed composite '%s' in %s", installed.name, pak)
                    self._installed.append(installed)

            for member in sorted(n for n in names if n.lower().endswith(PRESET_EXTENSION)):
                try:
                    self._embedded.append(self._read_preset(archive, pak, member))
                except SourceLoadError as e:
                    self._report(e, SourceKind.EMBEDDED)

    def _read_metadata(self, archive: zipfile.ZipFile, pak: Path) -> InstalledMod:
        source = _member_source(pak, METADATA_MEMBER)
        try:
            document = json.loads(archive.read(METADATA_MEMBER).decode("utf-8"))
        except (OSError, zipfile.BadZipFile, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SourceLoadError(source, f"corrupt metadata: {e}") from e

        if not isinstance(document, dict):
            raise SourceLoadError(source, "metadata must be a JSON object")

        version = document.get("format", METADATA_FORMAT_VERSION)
        if isinstance(version, int) and version > METADATA_FORMAT_VERSION:
            raise SourceLoadError(source, f"unsupported metadata format {version}")

        try:
            return InstalledMod.model_validate({**document, "source": str(pak)})
        except ValidationError as e:
            raise SourceLoadError(source, f"invalid metadata: {e.error_count()} error(s)") from e

    def _read_preset(self, archive: zipfile.ZipFile, pak: Path, member: str) -> Preset:
        source = _member_source(pak, member)
        try:
            text = archive.read(member).decode("utf-8-sig")
        except (OSError, zipfile.BadZipFile, UnicodeDecodeError) as e:
            raise SourceLoadError(source, f"unreadable: {e}") from e
        return parse_preset(text, source, SourceKind.EMBEDDED)
