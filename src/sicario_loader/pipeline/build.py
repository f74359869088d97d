"""
Build dispatch.

A build turns one BuildRequest into one BuildArtifact. The pipeline only
depends on the BuildDispatcher protocol; PakBuilder is the default handler
and TimedDispatcher wraps any handler with duration/outcome logging.

PakBuilder output:
- pack_result=True: a zip container ``<name>_P.pak`` holding every rendered
  patch at its target path, plus composite metadata at ``sicario/merge.json``
- pack_result=False: a directory ``<name>/`` with the same content

Builds are all-or-nothing. A failure removes the staging directory and raises
BuildError; no artifact is ever returned for a failed build.
"""

from __future__ import annotations

import hashlib
import json
import re
import shutil
import tempfile
import time
import zipfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

from ..core.constants import (
    DEFAULT_BUILD_NAME,
    METADATA_MEMBER,
    PAK_EXTENSION,
    PATCH_PAK_SUFFIX,
)
from ..core.errors import ArtifactConsumedError, BuildError, PatchConflictError
from ..core.formatters import format_bytes, format_duration, get_utc_timestamp
from ..core.logging import get_logger
from ..models.mods import CompositeMetadata, Mod

logger = get_logger(__name__)

# {{ name }} with optional inner whitespace
_PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z0-9_.\-]+)\s*\}\}")


# =============================================================================
# Request & Artifact
# =============================================================================


@dataclass(frozen=True)
class BuildRequest:
    """Everything a build needs; the mod list is owned by the request."""

    mods: tuple[Mod, ...]
    template_inputs: Mapping[str, str] = field(default_factory=dict)
    name: str = DEFAULT_BUILD_NAME
    user_name: str = ""
    pack_result: bool = True

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "user_name": self.user_name,
            "pack_result": self.pack_result,
            "mods": [mod.label for mod in self.mods],
            "template_inputs": dict(self.template_inputs),
        }


class BuildArtifact:
    """
    Output of a successful build, relocatable exactly once.

    The artifact starts in a private staging directory. ``move_to`` places it
    in its final directory and removes the staging directory; ``discard``
    deletes it instead. Either consumes the handle.
    """

    def __init__(
        self,
        name: str,
        path: Path,
        packed: bool,
        file_count: int,
        checksum: Optional[str] = None,
        staging_dir: Optional[Path] = None,
    ) -> None:
        self.name = name
        self.path = path
        self.packed = packed
        self.file_count = file_count
        self.checksum = checksum
        self.staging_dir = staging_dir
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def size(self) -> int:
        """Size on disk in bytes."""
        if self.path.is_file():
            return self.path.stat().st_size
        return sum(p.stat().st_size for p in self.path.rglob("*") if p.is_file())

    def _check_available(self) -> None:
        if self._consumed:
            raise ArtifactConsumedError(f"Build artifact '{self.name}' was already moved")

    def move_to(self, directory: Path) -> Path:
        """
        Move the artifact into ``directory``.

        Returns:
            The artifact's new path

        Raises:
            ArtifactConsumedError: If the artifact was already moved or discarded
            OSError: If the move fails; the artifact stays usable
        """
        self._check_available()
        destination = directory / self.path.name
        shutil.move(str(self.path), str(destination))
        self._consumed = True
        self.path = destination
        self._remove_staging()
        return destination

    def discard(self) -> None:
        """Delete an artifact that will not be installed."""
        self._check_available()
        if self.path.is_dir():
            shutil.rmtree(self.path)
        elif self.path.exists():
            self.path.unlink()
        self._consumed = True
        self._remove_staging()

    def _remove_staging(self) -> None:
        if self.staging_dir is not None:
            shutil.rmtree(self.staging_dir, ignore_errors=True)
            self.staging_dir = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "path": str(self.path),
            "packed": self.packed,
            "file_count": self.file_count,
            "checksum": self.checksum,
        }

    def __repr__(self) -> str:
        return f"BuildArtifact(name={self.name!r}, path={str(self.path)!r}, packed={self.packed})"


# =============================================================================
# Dispatcher Protocol
# =============================================================================


class BuildDispatcher(Protocol):
    """Anything that can turn a BuildRequest into a BuildArtifact."""

    def build(self, request: BuildRequest) -> BuildArtifact:
        """
        Run the build to completion.

        Raises:
            BuildError: If no artifact could be produced
        """
        ...


# =============================================================================
# Template Rendering
# =============================================================================


def render_template(
    content: str,
    inputs: Mapping[str, str],
    missing: Optional[set[str]] = None,
) -> str:
    """
    Substitute ``{{ name }}`` placeholders.

    Unknown placeholders are left verbatim and their names added to ``missing``.

    Examples:
        >>> render_template("color={{ hud_color }}", {"hud_color": "green"})
        'color=green'
        >>> render_template("{{ unknown }}", {})
        '{{ unknown }}'
    """

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in inputs:
            return inputs[key]
        if missing is not None:
            missing.add(key)
        return match.group(0)

    return _PLACEHOLDER_PATTERN.sub(replace, content)


# =============================================================================
# Default Handler
# =============================================================================


class PakBuilder:
    """
    Default build handler writing a zip container or a loose directory.

    Args:
        staging_root: Parent for staging directories (default: system temp)
    """

    def __init__(self, staging_root: Optional[Path] = None) -> None:
        self.staging_root = staging_root

    def build(self, request: BuildRequest) -> BuildArtifact:
        staging = Path(tempfile.mkdtemp(prefix="sicario-build-", dir=self.staging_root))
        try:
            files = self.compose(request)
            metadata = self._metadata(request)
            if request.pack_result:
                path = staging / f"{request.name}{PATCH_PAK_SUFFIX}{PAK_EXTENSION}"
                self._write_pak(path, files, metadata)
                checksum = _sha256_file(path)
            else:
                path = staging / request.name
                self._write_directory(path, files, metadata)
                checksum = None
        except Exception as e:
            shutil.rmtree(staging, ignore_errors=True)
            if isinstance(e, BuildError):
                raise
            raise BuildError(f"Build '{request.name}' failed: {e}") from e

        return BuildArtifact(
            name=request.name,
            path=path,
            packed=request.pack_result,
            file_count=len(files),
            checksum=checksum,
            staging_dir=staging,
        )

    def compose(self, request: BuildRequest) -> dict[str, str]:
        """
        Render every patch and resolve targets.

        Returns:
            Rendered content by target path, in first-write order

        Raises:
            PatchConflictError: If two mods write different content to one target
            BuildError: If a patch targets the metadata member
        """
        files: dict[str, str] = {}
        owners: dict[str, Mod] = {}
        missing: set[str] = set()

        for mod in request.mods:
            inputs = {**mod.parameters, **request.template_inputs}
            for patch in mod.patches:
                if patch.target == METADATA_MEMBER:
                    raise BuildError(
                        f"Mod '{mod.label}' writes to reserved path {METADATA_MEMBER}"
                    )

                rendered = render_template(patch.content, inputs, missing)
                owner = owners.get(patch.target)
                if (
                    owner is not None
                    and owner.key != mod.key
                    and files[patch.target] != rendered
                ):
                    raise PatchConflictError(patch.target, owner.label, mod.label)

                files[patch.target] = rendered
                owners[patch.target] = mod

        if missing:
            logger.warning(
                "Unresolved template parameter(s) left as-is: %s", ", ".join(sorted(missing))
            )
        return files

    def _metadata(self, request: BuildRequest) -> str:
        metadata = CompositeMetadata(
            name=request.name,
            user_name=request.user_name or None,
            created_at=get_utc_timestamp(),
            template_inputs=dict(request.template_inputs),
            mods=request.mods,
        )
        return json.dumps(metadata.to_document(), indent=2, sort_keys=True)

    def _write_pak(self, path: Path, files: Mapping[str, str], metadata: str) -> None:
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for target, content in files.items():
                archive.writestr(target, content.encode("utf-8"))
            archive.writestr(METADATA_MEMBER, metadata.encode("utf-8"))

    def _write_directory(self, root: Path, files: Mapping[str, str], metadata: str) -> None:
        root.mkdir()
        for target, content in {**files, METADATA_MEMBER: metadata}.items():
            destination = root.joinpath(*target.split("/"))
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(content.encode("utf-8"))


def _sha256_file(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1 << 16), b""):
            digest.update(chunk)
    return digest.hexdigest()


# =============================================================================
# Composition
# =============================================================================


class TimedDispatcher:
    """
    Wraps a dispatcher and logs how long each build took and how it ended.

    Usage:
        dispatcher = TimedDispatcher(PakBuilder())
        artifact = dispatcher.build(request)
    """

    def __init__(self, inner: BuildDispatcher) -> None:
        self.inner = inner

    def build(self, request: BuildRequest) -> BuildArtifact:
        logger.debug("Dispatching build '%s' with %d mod(s)", request.name, len(request.mods))
        start = time.perf_counter()
        try:
            artifact = self.inner.build(request)
        except BuildError as e:
            elapsed = time.perf_counter() - start
            logger.error(
                "Build '%s' failed after %s: %s",
                request.name,
                format_duration(elapsed),
                e,
                extra={"duration_ms": round(elapsed * 1000)},
            )
            raise

        elapsed = time.perf_counter() - start
        logger.info(
            "Build '%s' finished in %s: %d file(s), %s",
            request.name,
            format_duration(elapsed),
            artifact.file_count,
            format_bytes(artifact.size),
            extra={"duration_ms": round(elapsed * 1000)},
        )
        return artifact
