"""Path management for ocdeploy.

Everything the installer owns on the host lives under /opt/opencloud/.
"""

from pathlib import Path

# Base directory for the deployed instance
INSTALL_DIR = Path("/opt/opencloud")

# Settings file read before prompting
SETTINGS_FILE = Path("/etc/ocdeploy/config.yaml")

# Held for the duration of a run
LOCK_FILE = Path("/run/lock/ocdeploy.lock")

MANIFEST_NAME = "docker-compose.yml"
CONFIG_DIR_NAME = "config"


def get_manifest_path(install_dir: Path = INSTALL_DIR) -> Path:
    """Get path to the compose manifest.

    Args:
        install_dir: Base install directory

    Returns:
        Path to docker-compose.yml
    """
    return install_dir / MANIFEST_NAME


def get_config_dir(install_dir: Path = INSTALL_DIR) -> Path:
    """Get path to the OpenCloud config directory (mounted at /etc/opencloud).

    Args:
        install_dir: Base install directory

    Returns:
        Path to the config directory
    """
    return install_dir / CONFIG_DIR_NAME
