"""Shared modules for ocdeploy.

Host paths and logging setup used by the CLI and the deploy pipeline.
"""

from .logging import configure_logging, get_logger, level_for_verbosity
from .paths import (
    INSTALL_DIR,
    LOCK_FILE,
    SETTINGS_FILE,
    get_config_dir,
    get_manifest_path,
)

__all__ = [
    # Paths
    "INSTALL_DIR",
    "LOCK_FILE",
    "SETTINGS_FILE",
    "get_config_dir",
    "get_manifest_path",
    # Logging
    "configure_logging",
    "get_logger",
    "level_for_verbosity",
]
