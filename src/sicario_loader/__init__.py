"""
Sicario Loader - Project Wingman merged mod loader

Merges installed merges, embedded presets, loose preset files and skin slot
assignments into one composite mod, builds it and installs it into the
game's ~sicario pak directory.

Usage as library:
    from sicario_loader import RunContext, run_build

    context = RunContext.create(install_path=Path("D:/Games/Project Wingman"))
    report = run_build(context)

Usage as CLI:
    sicario-loader build
    sicario-loader build ~/presets --no-clean
    sicario-loader status

Package structure:
    sicario_loader/
    ├── core/           # Config, logging, errors, retry, path checks
    ├── models/         # Mod, Preset and slot models
    ├── pipeline/       # Discovery, presets, slots, merge, build, install
    ├── integration/    # Game install detection
    └── commands/       # CLI command implementations
"""

__version__ = "1.0.0"

from .core import LoaderError, get_settings
from .pipeline import RunContext, merge_parameters, run_build

__all__ = [
    "__version__",
    "LoaderError",
    "RunContext",
    "get_settings",
    "merge_parameters",
    "run_build",
]
