"""
Run context.

Every path and option a pipeline run needs, resolved once before any stage
starts and passed explicitly to each stage. Nothing in the pipeline reads
settings or environment variables after the context exists.
"""

from __future__ import annotations

import platform
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..core.config import LoaderSettings, get_settings
from ..core.constants import (
    BACKUP_DIR_NAME,
    INSTALL_DIR_NAME,
    MODS_DIR_NAME,
    PAKS_DIR,
    PRESETS_DIR,
    SLOT_CONFIG_FILE,
)
from ..core.errors import GameInstallMissingError, GameNotLocatedError
from ..integration.game_finder import GameFinder
from ..models.mods import SourceKind

# =============================================================================
# Ordering
# =============================================================================

# Parameter mappings are merged in this order, lowest precedence first. Loose
# preset files on disk override anything shipped inside installed paks.
PARAMETER_PRECEDENCE: tuple[SourceKind, ...] = (
    SourceKind.INSTALLED,
    SourceKind.EMBEDDED,
    SourceKind.LOOSE,
)

# Mods are queued in this order; the compiled slot mod always comes last.
MOD_ORDER: tuple[SourceKind, ...] = (*PARAMETER_PRECEDENCE, SourceKind.SLOTS)


def default_user_name() -> str:
    """Identity recorded in the build metadata."""
    return f"loader:{platform.node() or 'unknown'}"


@dataclass(frozen=True)
class RunContext:
    """Resolved inputs for a single pipeline run."""

    game_path: Path
    preset_search_paths: tuple[Path, ...]
    slot_config: Path
    build_name: str
    user_name: str
    pack_result: bool = True
    skip_clean: bool = False
    dry_run: bool = False
    install_retry_attempts: int = 3

    @property
    def paks_root(self) -> Path:
        return self.game_path.joinpath(*PAKS_DIR)

    @property
    def install_target(self) -> Path:
        """Loader-managed directory; read by discovery, replaced by install."""
        return self.paks_root / INSTALL_DIR_NAME

    @property
    def mods_dir(self) -> Path:
        return self.paks_root / MODS_DIR_NAME

    @property
    def backup_root(self) -> Path:
        """Where the installer parks displaced entries during an install."""
        return self.game_path / BACKUP_DIR_NAME

    @property
    def mod_dirs(self) -> tuple[Path, ...]:
        """Directories scanned for installed paks, in discovery order."""
        return (self.install_target, self.mods_dir)

    @classmethod
    def create(
        cls,
        install_path: Optional[Path] = None,
        preset_paths: Sequence[Path] = (),
        skip_clean: bool = False,
        dry_run: bool = False,
        settings: Optional[LoaderSettings] = None,
        finder: Optional[GameFinder] = None,
    ) -> RunContext:
        """
        Resolve the game install and build the context.

        Args:
            install_path: Explicit game directory; overrides settings and detection
            preset_paths: Extra preset directories, searched first
            skip_clean: Keep existing files in the install target
            dry_run: Build but do not install
            settings: Loader settings (defaults to the global settings)
            finder: Game locator used when no path is given

        Raises:
            GameNotLocatedError: If no game directory could be resolved
            GameInstallMissingError: If the resolved directory does not exist
        """
        settings = settings or get_settings()

        game_path = install_path
        if game_path is None:
            game_path = (finder or GameFinder(settings)).get_game_path()
        if game_path is None:
            raise GameNotLocatedError()

        game_path = Path(game_path).expanduser()
        if not game_path.is_dir():
            raise GameInstallMissingError(game_path)
        game_path = game_path.resolve()

        extra = tuple(Path(p).expanduser() for p in preset_paths)
        presets_dir = game_path.joinpath(*PRESETS_DIR)
        paks_root = game_path.joinpath(*PAKS_DIR)

        return cls(
            game_path=game_path,
            preset_search_paths=(*extra, presets_dir, paks_root / MODS_DIR_NAME),
            slot_config=settings.slot_config or presets_dir / SLOT_CONFIG_FILE,
            build_name=settings.build_name,
            user_name=default_user_name(),
            pack_result=settings.pack_result,
            skip_clean=skip_clean,
            dry_run=dry_run,
            install_retry_attempts=settings.install_retry_attempts,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "game_path": str(self.game_path),
            "install_target": str(self.install_target),
            "preset_search_paths": [str(p) for p in self.preset_search_paths],
            "slot_config": str(self.slot_config),
            "build_name": self.build_name,
            "user_name": self.user_name,
            "pack_result": self.pack_result,
            "skip_clean": self.skip_clean,
            "dry_run": self.dry_run,
        }
