"""
Sicario Loader Integration

Collaborators outside the merge pipeline: locating the game install.
"""

from .game_finder import GameFinder, default_steam_roots, parse_library_folders

__all__ = ["GameFinder", "default_steam_roots", "parse_library_folders"]
