"""
Sicario Loader Pipeline

Discovery, preset loading, slot compilation, parameter merging, build
dispatch and installation.
"""

from .build import (
    BuildArtifact,
    BuildDispatcher,
    BuildRequest,
    PakBuilder,
    TimedDispatcher,
    render_template,
)
from .context import MOD_ORDER, PARAMETER_PRECEDENCE, RunContext
from .discovery import MergeLoader
from .install import InstallReport, install_artifact
from .merge import merge_parameters
from .presets import PresetFileLoader, parse_preset
from .runner import (
    BuildReport,
    SourceSet,
    build_request,
    collect_sources,
    drop_overridden,
    queue_mods,
    run_build,
)
from .slots import SkinSlotLoader, compile_slot_mod

__all__ = [
    "MOD_ORDER",
    "PARAMETER_PRECEDENCE",
    "BuildArtifact",
    "BuildDispatcher",
    "BuildReport",
    "BuildRequest",
    "InstallReport",
    "MergeLoader",
    "PakBuilder",
    "PresetFileLoader",
    "RunContext",
    "SkinSlotLoader",
    "SourceSet",
    "TimedDispatcher",
    "build_request",
    "collect_sources",
    "compile_slot_mod",
    "drop_overridden",
    "install_artifact",
    "merge_parameters",
    "parse_preset",
    "queue_mods",
    "render_template",
    "run_build",
]
