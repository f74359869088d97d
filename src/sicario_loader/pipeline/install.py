"""
Artifact installation.

Replaces the contents of the install target with a freshly built artifact.

Old entries are never deleted up front. They are first moved into a backup
directory outside the game's pak tree; the artifact is moved in; only then is
the backup removed. If any step fails the backup is moved back, so the target
ends up either fully old or fully new, never mixed.

Every filesystem call is retried on PermissionError, which is what Windows
raises while the running game still holds a pak open.
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from ..core.errors import InstallError
from ..core.logging import get_logger
from ..core.retry import DEFAULT_MAX_ATTEMPTS, call_with_retry
from .build import BuildArtifact

logger = get_logger(__name__)


@dataclass(frozen=True)
class InstallReport:
    """Outcome of a successful install."""

    target_dir: Path
    installed_path: Path
    removed: tuple[str, ...]
    kept: tuple[str, ...]
    skip_clean: bool

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "target_dir": str(self.target_dir),
            "installed_path": str(self.installed_path),
            "removed": list(self.removed),
            "kept": list(self.kept),
            "skip_clean": self.skip_clean,
        }


# =============================================================================
# Filesystem Helpers
# =============================================================================


def _remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def _move(source: Path, destination: Path) -> None:
    shutil.move(str(source), str(destination))


def _place_artifact(artifact: BuildArtifact, target_dir: Path) -> Path:
    # A failed earlier attempt may have left a partial copy behind
    _remove_path(target_dir / artifact.path.name)
    return artifact.move_to(target_dir)


def _restore_backup(backup: Path, target_dir: Path, attempts: int) -> None:
    for entry in sorted(backup.iterdir()):
        destination = target_dir / entry.name
        call_with_retry(_remove_path, destination, max_attempts=attempts)
        call_with_retry(_move, entry, destination, max_attempts=attempts)
    backup.rmdir()


def _rollback(backup: Path | None, target_dir: Path, attempts: int) -> None:
    if backup is None:
        return
    try:
        _restore_backup(backup, target_dir, attempts)
    except OSError as e:
        raise InstallError(
            f"Install failed and previous files could not be restored; they remain in {backup}",
            backup,
            operation="restore",
        ) from e
    logger.info("Restored previous contents of %s", target_dir)


# =============================================================================
# Installer
# =============================================================================


def install_artifact(
    artifact: BuildArtifact,
    target_dir: Path,
    skip_clean: bool = False,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    backup_root: Path | None = None,
) -> InstallReport:
    """
    Move a build artifact into the install target.

    Args:
        artifact: Unconsumed build artifact; consumed on success
        target_dir: Install directory, created if missing
        skip_clean: Keep existing entries; only a same-named entry is replaced
        max_attempts: Attempts per filesystem operation on PermissionError
        backup_root: Directory that holds the backup of displaced entries;
            defaults to the target's parent. Keep it on the same volume and
            outside any directory the game mounts paks from.

    Returns:
        InstallReport describing what was removed and kept

    Raises:
        InstallError: If the target could not be replaced; previous contents
            are restored before raising
    """
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise InstallError(
            f"Could not create install directory {target_dir}: {e}", target_dir, "create"
        ) from e

    entries = sorted(target_dir.iterdir())
    if skip_clean:
        displaced: Sequence[Path] = [p for p in entries if p.name == artifact.path.name]
    else:
        displaced = entries
    kept = tuple(p.name for p in entries if p not in displaced)

    backup: Path | None = None
    if displaced:
        backup_parent = backup_root if backup_root is not None else target_dir.parent
        try:
            backup_parent.mkdir(parents=True, exist_ok=True)
            backup = Path(
                tempfile.mkdtemp(prefix=f".{target_dir.name}-backup-", dir=backup_parent)
            )
        except OSError as e:
            raise InstallError(
                f"Could not create backup directory in {backup_parent}: {e}",
                backup_parent,
                "backup",
            ) from e

        for entry in displaced:
            try:
                call_with_retry(_move, entry, backup / entry.name, max_attempts=max_attempts)
            except OSError as e:
                _rollback(backup, target_dir, max_attempts)
                raise InstallError(f"Could not remove {entry}: {e}", entry, "clean") from e
            logger.debug("Moved %s out of the install target", entry.name)

    try:
        installed_path = call_with_retry(
            _place_artifact, artifact, target_dir, max_attempts=max_attempts
        )
    except OSError as e:
        partial = target_dir / artifact.path.name
        try:
            _remove_path(partial)
        except OSError:
            logger.error("Could not remove partially installed %s", partial, exc_info=True)
        _rollback(backup, target_dir, max_attempts)
        raise InstallError(
            f"Could not move {artifact.name} into {target_dir}: {e}", target_dir, "move"
        ) from e

    if backup is not None:
        try:
            call_with_retry(shutil.rmtree, backup, max_attempts=max_attempts)
        except OSError as e:
            logger.warning(
                "Installed, but could not delete old files in %s: %s",
                backup,
                e,
                extra={"path": str(backup), "operation": "clean"},
            )

    removed = tuple(p.name for p in displaced)
    logger.info(
        "Installed %s into %s (%d removed, %d kept)",
        installed_path.name,
        target_dir,
        len(removed),
        len(kept),
    )
    return InstallReport(
        target_dir=target_dir,
        installed_path=installed_path,
        removed=removed,
        kept=kept,
        skip_clean=skip_clean,
    )
