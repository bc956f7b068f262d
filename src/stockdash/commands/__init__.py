"""CLI command implementations for the stock dashboard.

Each command module provides:
- Configuration loading and validation
- Command execution logic
- Integration with core library functions
"""

from stockdash.commands.scan import (load_engine_config, load_scan_config,
                                     run_scan)

__all__ = [
    "load_engine_config",
    "load_scan_config",
    "run_scan",
]
