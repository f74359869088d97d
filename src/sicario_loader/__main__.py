"""
Sicario Loader CLI Entry Point

Provides command-line interface for building and installing merged mods.
Run with: python -m sicario_loader <command> [args]
"""

import argparse
import json
import logging
import sys

from .core import get_utc_timestamp
from .core.constants import ExitCode
from .core.errors import LoaderError
from .core.logging import get_logger, set_log_level

logger = get_logger(__name__)


def output_json(data: dict, indent: int = 2) -> None:
    """Print JSON output to stdout."""
    print(json.dumps(data, indent=indent, default=str))


def output_error(message: str, exit_code: int = ExitCode.ERROR, **kwargs) -> int:
    """Print error JSON and return the exit code."""
    error_data = {
        "error": kwargs.pop("error_type", "error"),
        "message": message,
        "query_timestamp": get_utc_timestamp(),
    }
    error_data.update(kwargs)
    output_json(error_data)
    return int(exit_code)


# =============================================================================
# System Commands
# =============================================================================


def cmd_help(args: argparse.Namespace) -> dict:
    """Show help message."""
    help_text = """
═══════════════════════════════════════════════════════════════════
Sicario Loader
───────────────────────────────────────────────────────────────────

Merge Commands:
  build [dirs...] [opts]     Merge installed mods and presets, build, install
                             --install-path <dir>, --no-clean, --dry-run
  status [dirs...] [opts]    Show what a build would contain
                             --install-path <dir>

System Commands:
  help                       Show this help message

Global Options:
  -v, --verbose              More log output (repeat for debug)

Environment:
  SICARIO_GAME_PATH          Game install directory
  SICARIO_SLOT_CONFIG        Skin slot file (default: Presets/skin-slots.yaml)
  SICARIO_BUILD_NAME         Merged mod name (default: SicarioMerge)
  SICARIO_LOG_LEVEL          DEBUG, INFO, WARNING, ERROR

Exit Codes:
  0  success                 3  game directory does not exist
  1  error                   4  build failed
  2  game not located        5  install failed

Examples:
  sicario-loader build
  sicario-loader build ~/presets --install-path "D:/Games/Project Wingman"
  sicario-loader build --dry-run
  sicario-loader status

═══════════════════════════════════════════════════════════════════
"""
    print(help_text)
    return {}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="sicario-loader",
        description="Sicario Loader - merge and install Project Wingman mods",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log output (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    help_parser = subparsers.add_parser("help", help="Show help message")
    help_parser.set_defaults(func=cmd_help)

    from .commands import build

    build.register_parsers(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_log_level(logging.DEBUG if args.verbose > 1 else logging.INFO)

    if not args.command:
        cmd_help(args)
        return ExitCode.SUCCESS

    try:
        result = args.func(args)

        if isinstance(result, dict) and result:
            output_json(result)

            if "error" in result:
                return ExitCode.ERROR

        return ExitCode.SUCCESS

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return ExitCode.INTERRUPTED
    except LoaderError as e:
        logger.error("%s failed: %s", args.command, e)
        payload = e.to_dict()
        error_type = payload.pop("error")
        message = payload.pop("message")
        return output_error(
            message, e.exit_code, error_type=error_type, command=args.command, **payload
        )
    except Exception as e:
        logger.exception("Unexpected error in %s", args.command)
        return output_error(str(e), error_type="command_error", command=args.command)


if __name__ == "__main__":
    sys.exit(main())
