"""
Sicario Loader Constants

Game layout, file naming and process exit codes shared across the loader.
"""

from enum import IntEnum

# =============================================================================
# Game Layout
#
# All paths are relative to the game install root.
# =============================================================================

GAME_CONTENT_DIR = ("ProjectWingman", "Content")
PAKS_DIR = (*GAME_CONTENT_DIR, "Paks")
PRESETS_DIR = (*GAME_CONTENT_DIR, "Presets")

# Loader-managed composite mods live here; the same directory is read during
# discovery and replaced during install.
INSTALL_DIR_NAME = "~sicario"

# Third-party mods, which may embed presets or loose preset files
MODS_DIR_NAME = "~mods"

# Install backups, directly under the game root and outside the pak tree
BACKUP_DIR_NAME = ".sicario-backup"

SLOT_CONFIG_FILE = "skin-slots.yaml"

STEAM_APP_DIR = "Project Wingman"

# =============================================================================
# File Naming
# =============================================================================

PRESET_EXTENSION = ".dtp"
PAK_EXTENSION = ".pak"

# Unreal loads patch paks after the base archive only with this suffix
PATCH_PAK_SUFFIX = "_P"

DEFAULT_BUILD_NAME = "SicarioMerge"

# Composite metadata written into every packed build
METADATA_MEMBER = "sicario/merge.json"
METADATA_FORMAT_VERSION = 1

# =============================================================================
# Slot Compiler
# =============================================================================

SLOT_MOD_ID = "sicario-skin-slots"
SLOT_MOD_NAME = "Skin Slot Merge"
SLOT_TARGET_ROOT = "ProjectWingman/Content/Sicario/Slots"
DEFAULT_SKIN_VALUES = frozenset({"", "default"})


# =============================================================================
# Process Exit Codes
# =============================================================================


class ExitCode(IntEnum):
    """Terminal statuses, distinct per failure class for automation."""

    SUCCESS = 0
    ERROR = 1
    GAME_NOT_LOCATED = 2
    GAME_NOT_FOUND = 3
    BUILD_FAILED = 4
    INSTALL_FAILED = 5
    INTERRUPTED = 130
