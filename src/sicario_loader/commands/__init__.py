"""
Sicario Loader Commands

Each module exposes register_parsers(subparsers) for the CLI.
"""
