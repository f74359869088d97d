"""
Sicario Loader Models

Data structures for mod sources.
"""

from sicario_loader.models.mods import (
    CompositeMetadata,
    InstalledMod,
    LoaderModel,
    Mod,
    ParameterMapping,
    Patch,
    Preset,
    SlotAssignment,
    SlotConfiguration,
    SourceDiagnostic,
    SourceKind,
    coerce_parameters,
)

__all__ = [
    "CompositeMetadata",
    "InstalledMod",
    "LoaderModel",
    "Mod",
    "ParameterMapping",
    "Patch",
    "Preset",
    "SlotAssignment",
    "SlotConfiguration",
    "SourceDiagnostic",
    "SourceKind",
    "coerce_parameters",
]
