"""
Pydantic models for mod sources.

These models describe everything the loader reads from disk: patches, mods,
preset files, the metadata of installed composites and the skin slot
configuration. All of them are immutable once loaded.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from ..core.constants import DEFAULT_SKIN_VALUES, METADATA_FORMAT_VERSION
from ..core.path_security import validate_archive_path

# =============================================================================
# Parameter Mappings
# =============================================================================


def coerce_parameters(value: Any) -> dict[str, str]:
    """
    Normalize a parameter mapping read from a source file.

    Scalars are converted to strings (booleans as ``true``/``false``, null as
    the empty string). Nested lists and objects are rejected.

    Raises:
        ValueError: If the value is not a mapping or holds a nested structure
    """
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"parameters must be a mapping, got {type(value).__name__}")

    result: dict[str, str] = {}
    for key, item in value.items():
        if isinstance(item, (dict, list, tuple, set)):
            raise ValueError(f"parameter '{key}' must be a scalar value")
        if item is None:
            result[str(key)] = ""
        elif isinstance(item, bool):
            result[str(key)] = "true" if item else "false"
        else:
            result[str(key)] = str(item)
    return result


ParameterMapping = Annotated[dict[str, str], BeforeValidator(coerce_parameters)]
"""String to string template inputs; scalar values are coerced on load."""


# =============================================================================
# Enums
# =============================================================================


class SourceKind(str, Enum):
    """Where a mod or parameter mapping came from."""

    INSTALLED = "installed"
    EMBEDDED = "embedded"
    LOOSE = "loose"
    SLOTS = "slots"


# =============================================================================
# Base Model
# =============================================================================


class LoaderModel(BaseModel):
    """
    Base model for loader data.

    Configuration:
    - frozen: Loaded sources are never mutated
    - extra="ignore": Files written by other tools may carry extra keys
    - populate_by_name: camelCase file keys and snake_case names both validate
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


# =============================================================================
# Mod Models
# =============================================================================


class Patch(LoaderModel):
    """A single content override written to one path inside the game archive."""

    target: str = Field(description="Archive-relative POSIX path of the patched file")
    content: str = Field(default="", description="File content; may hold {{ name }} placeholders")
    description: Optional[str] = Field(default=None, description="Author note")

    @field_validator("target")
    @classmethod
    def check_target(cls, v: str) -> str:
        return validate_archive_path(v)


class Mod(LoaderModel):
    """
    A named bundle of patches plus author-supplied template inputs.

    Mods are identified by ``key``: the explicit id when present, otherwise a
    digest of the mod's content, so the same anonymous mod shipped by two
    sources is still recognised as one.
    """

    id: Optional[str] = Field(default=None, description="Stable mod identifier")
    name: str = Field(default="", description="Display name")
    author: Optional[str] = Field(default=None)
    version: Optional[str] = Field(default=None)
    parameters: ParameterMapping = Field(default_factory=dict)
    patches: tuple[Patch, ...] = Field(default=())

    @property
    def key(self) -> str:
        """Identity used for de-duplication across sources."""
        if self.id:
            return self.id
        canonical = json.dumps(
            self.model_dump(mode="json", exclude_none=True),
            sort_keys=True,
            separators=(",", ":"),
        )
        return "sha256:" + hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    @property
    def label(self) -> str:
        """Human-readable name for messages."""
        return self.name or self.id or self.key[:19]


# =============================================================================
# Source Models
# =============================================================================


class Preset(LoaderModel):
    """
    A parameter/mod bundle loaded from a preset file.

    ``source`` and ``kind`` record provenance: a loose file on disk or a member
    embedded in an installed pak.
    """

    name: str = Field(default="")
    mods: tuple[Mod, ...] = Field(default=())
    mod_parameters: ParameterMapping = Field(default_factory=dict, alias="modParameters")
    source: str = Field(default="", description="File path, or pak path and member")
    kind: SourceKind = Field(default=SourceKind.LOOSE)


class CompositeMetadata(LoaderModel):
    """
    Metadata stored inside every packed composite.

    Written by the builder and read back by discovery, which is how an
    installed composite's mods and original template inputs survive between
    runs.
    """

    format: int = Field(default=METADATA_FORMAT_VERSION, ge=1)
    name: str = Field(default="")
    user_name: Optional[str] = Field(default=None, alias="userName")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    template_inputs: ParameterMapping = Field(default_factory=dict, alias="templateInputs")
    mods: tuple[Mod, ...] = Field(default=())

    def to_document(self) -> dict[str, Any]:
        """Serialize with the on-disk camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class InstalledMod(CompositeMetadata):
    """An already-installed composite discovered in the install target."""

    source: str = Field(default="", description="Path of the pak it was read from")


class SourceDiagnostic(LoaderModel):
    """A source that was skipped, and why."""

    source: str
    message: str
    kind: SourceKind

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "kind": self.kind.value, "message": self.message}


# =============================================================================
# Skin Slots
# =============================================================================


class SlotAssignment(LoaderModel):
    """One aircraft slot bound to a skin."""

    aircraft: str = Field(min_length=1)
    slot: int = Field(ge=0)
    skin: Optional[str] = Field(default=None)

    @field_validator("skin", mode="before")
    @classmethod
    def coerce_skin(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (dict, list)):
            raise ValueError("skin must be a scalar value")
        return str(v)

    @property
    def is_default(self) -> bool:
        """Default slots keep the game's own skin and produce no patch."""
        return self.skin is None or self.skin.strip().lower() in DEFAULT_SKIN_VALUES


class SlotConfiguration(LoaderModel):
    """The ordered assignments read from the slot file."""

    assignments: tuple[SlotAssignment, ...] = Field(default=())

    @classmethod
    def from_document(cls, document: Any) -> SlotConfiguration:
        """
        Build a configuration from a parsed ``{"slots": {aircraft: {slot: skin}}}``
        document. An empty or null document is an empty configuration.

        Raises:
            ValueError: If the document does not have that shape
        """
        if document is None:
            return cls()
        if not isinstance(document, Mapping):
            raise ValueError("slot configuration must be a mapping")

        slots = document.get("slots") or {}
        if not isinstance(slots, Mapping):
            raise ValueError("'slots' must map aircraft to slot assignments")

        assignments = []
        for aircraft, entries in slots.items():
            if entries is None:
                continue
            if not isinstance(entries, Mapping):
                raise ValueError(f"slots for '{aircraft}' must map slot numbers to skins")
            for slot, skin in entries.items():
                try:
                    slot_number = int(slot)
                except (TypeError, ValueError) as e:
                    raise ValueError(f"slot '{slot}' of '{aircraft}' is not a number") from e
                assignments.append(
                    SlotAssignment(aircraft=str(aircraft), slot=slot_number, skin=skin)
                )
        return cls(assignments=tuple(assignments))
