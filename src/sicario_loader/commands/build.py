"""
Sicario Loader Build Commands

Commands that run the merge pipeline against a game install.
"""

import argparse
from pathlib import Path
from typing import Any

from ..core import get_utc_timestamp
from ..core.formatters import format_bytes
from ..pipeline import RunContext, build_request, collect_sources, run_build

# =============================================================================
# Helpers
# =============================================================================


def _context_from_args(args: argparse.Namespace, dry_run: bool = False) -> RunContext:
    install_path = getattr(args, "install_path", None)
    return RunContext.create(
        install_path=Path(install_path) if install_path else None,
        preset_paths=[Path(p) for p in getattr(args, "preset_paths", None) or []],
        skip_clean=getattr(args, "no_clean", False),
        dry_run=dry_run,
    )


def _print_diagnostics(diagnostics: list) -> None:
    if not diagnostics:
        return
    print(f"\nSkipped sources ({len(diagnostics)}):")
    for diagnostic in diagnostics:
        print(f"  - {diagnostic.source}: {diagnostic.message}")


# =============================================================================
# Command: build
# =============================================================================


def cmd_build(args: argparse.Namespace) -> dict[str, Any]:
    """
    Build and install the merged mod.

    Discovers installed merges and presets, merges them, builds one
    composite and replaces the contents of the ~sicario directory with it.
    """
    query_ts = get_utc_timestamp()
    dry_run = getattr(args, "dry_run", False)
    context = _context_from_args(args, dry_run=dry_run)

    print(f"Game directory: {context.game_path}")
    report = run_build(context, progress=print)
    _print_diagnostics(report.sources.diagnostics)

    return {
        "command": "build",
        "status": "dry_run" if dry_run else "installed",
        **report.to_dict(),
        "query_timestamp": query_ts,
    }


# =============================================================================
# Command: status
# =============================================================================


def cmd_status(args: argparse.Namespace) -> dict[str, Any]:
    """
    Show what a build would contain, without building.
    """
    query_ts = get_utc_timestamp()
    context = _context_from_args(args)

    sources = collect_sources(context, progress=print)
    request = build_request(context, sources)

    print("=" * 60)
    print(f"MERGE STATUS: {context.build_name}")
    print("=" * 60)
    print(f"Install target: {context.install_target}")

    installed = sorted(p for p in context.install_target.glob("*") if p.is_file())
    if installed:
        print("\nCurrently installed:")
        for path in installed:
            print(f"  - {path.name} ({format_bytes(path.stat().st_size)})")

    print(f"\nMods ({len(request.mods)}):")
    for mod in request.mods:
        print(f"  - {mod.label} ({len(mod.patches)} patches)")

    print(f"\nParameters ({len(request.template_inputs)}):")
    for key in sorted(request.template_inputs):
        print(f"  {key} = {request.template_inputs[key]}")

    _print_diagnostics(sources.diagnostics)

    return {
        "command": "status",
        "context": context.to_dict(),
        "sources": sources.to_dict(),
        "request": request.to_dict(),
        "installed": [p.name for p in installed],
        "query_timestamp": query_ts,
    }


# =============================================================================
# Parser Registration
# =============================================================================


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "preset_paths",
        nargs="*",
        help="Extra directories to search for preset (.dtp) files",
    )
    parser.add_argument(
        "--install-path",
        "-i",
        dest="install_path",
        help="Game install directory (default: SICARIO_GAME_PATH or Steam detection)",
    )


def register_parsers(subparsers: argparse._SubParsersAction) -> None:
    """Register build command parsers."""

    # build command
    build_parser = subparsers.add_parser(
        "build", help="Merge presets and installed mods, then install the result"
    )
    _add_common_arguments(build_parser)
    build_parser.add_argument(
        "--no-clean",
        action="store_true",
        dest="no_clean",
        help="Keep existing files in the install directory",
    )
    build_parser.add_argument(
        "--dry-run",
        action="store_true",
        dest="dry_run",
        help="Build the merged mod but do not install it",
    )
    build_parser.set_defaults(func=cmd_build)

    # status command
    status_parser = subparsers.add_parser(
        "status", help="Show what a build would contain without building"
    )
    _add_common_arguments(status_parser)
    status_parser.set_defaults(func=cmd_status)
