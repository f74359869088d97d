"""
Game install location.

Finds the game through an explicit setting or by scanning Steam libraries.
Steam records every library folder in ``steamapps/libraryfolders.vdf``; the
game lives under ``steamapps/common/Project Wingman`` in one of them.
"""

from __future__ import annotations

import re
import sys
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Optional

from ..core.config import LoaderSettings, get_settings
from ..core.constants import STEAM_APP_DIR
from ..core.logging import get_logger

logger = get_logger(__name__)

# "path"		"D:\\SteamLibrary"
_LIBRARY_PATH_PATTERN = re.compile(r'"path"\s+"((?:[^"\\]|\\.)*)"')


def default_steam_roots() -> list[Path]:
    """Conventional Steam install locations for the current platform."""
    home = Path.home()
    if sys.platform == "win32":
        return [Path("C:/Program Files (x86)/Steam"), Path("C:/Program Files/Steam")]
    if sys.platform == "darwin":
        return [home / "Library" / "Application Support" / "Steam"]
    return [
        home / ".steam" / "steam",
        home / ".local" / "share" / "Steam",
        home / ".var" / "app" / "com.valvesoftware.Steam" / ".local" / "share" / "Steam",
    ]


def parse_library_folders(text: str) -> list[Path]:
    """Extract library paths from the contents of a libraryfolders.vdf file."""
    return [
        Path(match.replace("\\\\", "\\")) for match in _LIBRARY_PATH_PATTERN.findall(text)
    ]


class GameFinder:
    """
    Locates the game install directory.

    Args:
        settings: Loader settings (defaults to the global settings)
        steam_roots: Steam roots to scan; defaults to the configured extra
            roots followed by the platform defaults
    """

    def __init__(
        self,
        settings: Optional[LoaderSettings] = None,
        steam_roots: Optional[Sequence[Path]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        if steam_roots is None:
            steam_roots = [*self.settings.steam_roots, *default_steam_roots()]
        self.steam_roots = list(steam_roots)

    def iter_library_dirs(self) -> Iterator[Path]:
        """Yield every Steam library directory, each once."""
        seen: set[Path] = set()
        for root in self.steam_roots:
            candidates = [root]
            vdf = root / "steamapps" / "libraryfolders.vdf"
            if vdf.is_file():
                try:
                    candidates.extend(parse_library_folders(vdf.read_text(encoding="utf-8")))
                except (OSError, UnicodeDecodeError) as e:
                    logger.debug("Could not read %s: %s", vdf, e)
            for library in candidates:
                if library not in seen:
                    seen.add(library)
                    yield library

    def get_game_path(self) -> Optional[Path]:
        """
        Resolve the game install directory.

        Returns:
            The configured ``game_path`` when set (existing or not, so a bad
            setting is reported rather than silently replaced), otherwise the
            first Steam library holding the game, otherwise None
        """
        if self.settings.game_path is not None:
            return self.settings.game_path

        for library in self.iter_library_dirs():
            candidate = library / "steamapps" / "common" / STEAM_APP_DIR
            if candidate.is_dir():
                logger.debug("Found game in Steam library %s", library)
                return candidate

        logger.debug("Game not found in %d Steam root(s)", len(self.steam_roots))
        return None
