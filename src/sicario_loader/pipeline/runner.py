"""
Pipeline orchestration.

One run, in order:
1. Discover installed composites and their embedded presets
2. Load loose preset files
3. Compile the skin slot mod
4. Merge parameters by PARAMETER_PRECEDENCE and queue mods by MOD_ORDER
5. Dispatch the build
6. Install the artifact (skipped for dry runs)

Stages 1-3 isolate failures per file. A build or install failure ends the
run; the install target is only touched after a successful build.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from itertools import chain
from typing import Any, Optional

from ..core.logging import get_logger
from ..models.mods import InstalledMod, Mod, Preset, SourceDiagnostic, SourceKind
from .build import BuildDispatcher, BuildRequest, PakBuilder, TimedDispatcher
from .context import MOD_ORDER, PARAMETER_PRECEDENCE, RunContext
from .discovery import MergeLoader
from .install import InstallReport, install_artifact
from .merge import merge_parameters
from .presets import PresetFileLoader
from .slots import SkinSlotLoader

logger = get_logger(__name__)

ProgressCallback = Callable[[str], None]


def _log_progress(message: str) -> None:
    logger.info(message)


# =============================================================================
# Source Collection
# =============================================================================


def queue_mods(mods: Iterable[Mod]) -> tuple[Mod, ...]:
    """
    Order mods for the build request, each key once.

    A mod whose key was already queued replaces the earlier entry and moves
    to the later position.
    """
    queued: dict[str, Mod] = {}
    for mod in mods:
        queued.pop(mod.key, None)
        queued[mod.key] = mod
    return tuple(queued.values())


def drop_overridden(mods: Iterable[Mod], later_mods: Iterable[Mod]) -> list[Mod]:
    """
    Remove mods that a later source writes over.

    A mod carried by an installed composite is the previous build of some
    source. When a later mod patches any of the same targets, the later mod
    is its replacement, even if its key changed because the mod was edited.
    """
    later_targets = {patch.target for mod in later_mods for patch in mod.patches}
    kept = []
    for mod in mods:
        if any(patch.target in later_targets for patch in mod.patches):
            logger.debug("Installed mod %s replaced by a newer source", mod.label)
            continue
        kept.append(mod)
    return kept


@dataclass
class SourceSet:
    """Everything discovered for one run, before merging."""

    installed: list[InstalledMod] = field(default_factory=list)
    embedded: list[Preset] = field(default_factory=list)
    loose: list[Preset] = field(default_factory=list)
    slot_mod: Optional[Mod] = None
    diagnostics: list[SourceDiagnostic] = field(default_factory=list)

    def parameter_layers(self) -> dict[SourceKind, list[Mapping[str, str]]]:
        """
        Parameter mappings per source kind, each list lowest precedence first.

        Installed composites are reversed: among them the first discovered
        keeps precedence over later ones.
        """
        return {
            SourceKind.INSTALLED: [m.template_inputs for m in reversed(self.installed)],
            SourceKind.EMBEDDED: [p.mod_parameters for p in self.embedded],
            SourceKind.LOOSE: [p.mod_parameters for p in self.loose],
        }

    def mod_layers(self) -> dict[SourceKind, list[Mod]]:
        return {
            SourceKind.INSTALLED: [mod for m in self.installed for mod in m.mods],
            SourceKind.EMBEDDED: [mod for p in self.embedded for mod in p.mods],
            SourceKind.LOOSE: [mod for p in self.loose for mod in p.mods],
            SourceKind.SLOTS: [self.slot_mod] if self.slot_mod is not None else [],
        }

    def merged_parameters(self) -> dict[str, str]:
        layers = self.parameter_layers()
        return merge_parameters(chain.from_iterable(layers[k] for k in PARAMETER_PRECEDENCE))

    def ordered_mods(self) -> tuple[Mod, ...]:
        layers = self.mod_layers()
        later = [mod for k in MOD_ORDER if k is not SourceKind.INSTALLED for mod in layers[k]]
        layers[SourceKind.INSTALLED] = drop_overridden(layers[SourceKind.INSTALLED], later)
        return queue_mods(chain.from_iterable(layers[k] for k in MOD_ORDER))

    @property
    def slot_patch_count(self) -> int:
        return len(self.slot_mod.patches) if self.slot_mod is not None else 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "installed": [m.source for m in self.installed],
            "embedded_presets": [p.source for p in self.embedded],
            "loose_presets": [p.source for p in self.loose],
            "slot_patches": self.slot_patch_count,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


def collect_sources(
    context: RunContext,
    progress: Optional[ProgressCallback] = None,
    merge_loader: Optional[MergeLoader] = None,
    preset_loader: Optional[PresetFileLoader] = None,
    slot_loader: Optional[SkinSlotLoader] = None,
) -> SourceSet:
    """Run discovery, preset loading and slot compilation."""
    progress = progress or _log_progress
    merge_loader = merge_loader or MergeLoader(context.mod_dirs, context.install_target)
    preset_loader = preset_loader or PresetFileLoader()
    slot_loader = slot_loader or SkinSlotLoader(context.slot_config)

    sources = SourceSet()

    sources.installed = merge_loader.get_installed_mods()
    progress(f"Loaded {len(sources.installed)} installed merges")

    sources.embedded = merge_loader.load_embedded_presets()
    progress(f"Loaded {len(sources.embedded)} embedded presets")

    files = preset_loader.iter_preset_files(context.preset_search_paths)
    sources.loose = list(preset_loader.load_from_files(files))
    progress(f"Loaded {len(sources.loose)} presets from files")

    sources.slot_mod = slot_loader.get_slot_mod()
    progress(f"Loaded {slot_loader.patch_count} skin slot patches")

    sources.diagnostics = [*merge_loader.diagnostics, *preset_loader.diagnostics]
    if sources.diagnostics:
        progress(f"Skipped {len(sources.diagnostics)} unreadable source(s)")
    return sources


def build_request(context: RunContext, sources: SourceSet) -> BuildRequest:
    """Assemble the single build request for a run."""
    return BuildRequest(
        mods=sources.ordered_mods(),
        template_inputs=sources.merged_parameters(),
        name=context.build_name,
        user_name=context.user_name,
        pack_result=context.pack_result,
    )


# =============================================================================
# Full Run
# =============================================================================


@dataclass(frozen=True)
class BuildReport:
    """Result of a completed run."""

    context: RunContext
    sources: SourceSet
    request: BuildRequest
    artifact: dict[str, Any]
    install: Optional[InstallReport] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "context": self.context.to_dict(),
            "sources": self.sources.to_dict(),
            "request": self.request.to_dict(),
            "artifact": self.artifact,
            "install": self.install.to_dict() if self.install else None,
        }


def run_build(
    context: RunContext,
    dispatcher: Optional[BuildDispatcher] = None,
    progress: Optional[ProgressCallback] = None,
    sources: Optional[SourceSet] = None,
) -> BuildReport:
    """
    Run the whole pipeline for one context.

    Raises:
        BuildError: If the build failed; nothing was installed
        InstallError: If the install failed; the target was restored
    """
    progress = progress or _log_progress
    dispatcher = dispatcher or TimedDispatcher(PakBuilder())

    if sources is None:
        sources = collect_sources(context, progress)
    request = build_request(context, sources)
    progress(f"Merged {len(request.template_inputs)} parameters")
    progress(f"Queued {len(request.mods)} mods for build")

    artifact = dispatcher.build(request)
    progress(f"Successfully built merged mod {artifact.name}")

    if context.dry_run:
        details = artifact.to_dict()
        artifact.discard()
        progress("Dry run: build discarded, nothing installed")
        return BuildReport(context, sources, request, details)

    try:
        install = install_artifact(
            artifact,
            context.install_target,
            skip_clean=context.skip_clean,
            max_attempts=context.install_retry_attempts,
            backup_root=context.backup_root,
        )
    finally:
        if not artifact.consumed:
            try:
                artifact.discard()
            except OSError as e:
                logger.warning("Could not remove build staging for %s: %s", artifact.name, e)

    progress(f"Installed merged mod to {install.installed_path}")
    return BuildReport(context, sources, request, artifact.to_dict(), install)
