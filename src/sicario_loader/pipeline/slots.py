"""
Skin slot compiler.

The slot file assigns skins to numbered aircraft slots:

    slots:
      F-14D:
        0: default
        1: Mobius
      MiG-29A:
        2: Yellow 13

Compilation produces exactly one synthetic mod with one patch per slot that
does not keep the game's default skin. Compilation cannot fail: a missing or
malformed slot file compiles to a mod with no patches.
"""

from __future__ import annotations

import hashlib
import json
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..core.constants import SLOT_MOD_ID, SLOT_MOD_NAME, SLOT_TARGET_ROOT
from ..core.logging import get_logger
from ..models.mods import Mod, Patch, SlotAssignment, SlotConfiguration

logger = get_logger(__name__)

_UNSAFE_SEGMENT_CHARS = re.compile(r'[<>:"|?*\\/]')

# Longer aircraft names are cut and suffixed with a digest of the full name
MAX_SEGMENT_LENGTH = 64
_DIGEST_LENGTH = 8


def _path_segment(name: str) -> str:
    segment = _UNSAFE_SEGMENT_CHARS.sub("_", name).strip()
    if segment in ("", ".", ".."):
        return "_"
    if len(segment) > MAX_SEGMENT_LENGTH:
        digest = hashlib.sha256(name.encode("utf-8")).hexdigest()[:_DIGEST_LENGTH]
        segment = f"{segment[: MAX_SEGMENT_LENGTH - _DIGEST_LENGTH - 1]}-{digest}"
    return segment


def slot_target(assignment: SlotAssignment) -> str:
    """Archive path of the override for one slot."""
    return f"{SLOT_TARGET_ROOT}/{_path_segment(assignment.aircraft)}/{assignment.slot}.json"


def compile_slot_mod(config: SlotConfiguration) -> Mod:
    """
    Compile a slot configuration into the synthetic slot mod.

    Patches are ordered by aircraft name, then slot number. When the same
    slot is assigned twice, the later assignment wins. An assignment that
    still yields an invalid patch is skipped with a warning.
    """
    latest: dict[tuple[str, int], SlotAssignment] = {}
    for assignment in config.assignments:
        latest[(assignment.aircraft, assignment.slot)] = assignment

    patches = []
    for key in sorted(latest):
        assignment = latest[key]
        if assignment.is_default:
            continue
        content = json.dumps(
            {"aircraft": assignment.aircraft, "slot": assignment.slot, "skin": assignment.skin},
            sort_keys=True,
        )
        target = slot_target(assignment)
        try:
            patch = Patch(
                target=target,
                content=content,
                description=f"{assignment.aircraft} slot {assignment.slot}: {assignment.skin}",
            )
        except ValidationError as e:
            logger.warning(
                "Skipping skin slot %s %s: %s",
                assignment.aircraft,
                assignment.slot,
                e.errors()[0]["msg"],
                extra={"target": target},
            )
            continue
        patches.append(patch)

    return Mod(id=SLOT_MOD_ID, name=SLOT_MOD_NAME, author="sicario-loader", patches=tuple(patches))


class SkinSlotLoader:
    """
    Reads the slot file and compiles it.

    Usage:
        slots = SkinSlotLoader(context.slot_config)
        mod = slots.get_slot_mod()
        print(slots.patch_count)
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._mod: Mod | None = None

    def load_configuration(self) -> SlotConfiguration:
        """Read the slot file; missing or malformed files give an empty configuration."""
        if not self.config_path.is_file():
            logger.debug("No slot configuration at %s", self.config_path)
            return SlotConfiguration()

        try:
            with open(self.config_path, encoding="utf-8") as f:
                document = yaml.safe_load(f)
            return SlotConfiguration.from_document(document)
        except (OSError, UnicodeDecodeError, yaml.YAMLError, ValidationError, ValueError) as e:
            logger.warning(
                "Ignoring slot configuration %s: %s",
                self.config_path,
                e,
                extra={"source": str(self.config_path)},
            )
            return SlotConfiguration()

    def get_slot_mod(self) -> Mod:
        """Compile the slot mod, reading the file on first use."""
        if self._mod is None:
            self._mod = compile_slot_mod(self.load_configuration())
        return self._mod

    @property
    def patch_count(self) -> int:
        return len(self.get_slot_mod().patches)

    def get_patch_count(self) -> int:
        return self.patch_count
