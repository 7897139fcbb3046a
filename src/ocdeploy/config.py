"""Installer settings.

Tunables for the installer itself (where it writes, how long it waits).
The deployment values collected from the operator live in
ocdeploy.deploy.collect.DeploymentConfig, not here.

Precedence (highest to lowest):
1. Environment variables (OCDEPLOY_*)
2. Settings file (/etc/ocdeploy/config.yaml or --config)
3. Defaults
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import SettingsError
from .shared.paths import INSTALL_DIR, LOCK_FILE, SETTINGS_FILE, get_config_dir, get_manifest_path

# Default values
DEFAULT_INIT_TIMEOUT = 60
DEFAULT_HEALTH_TIMEOUT = 120
DEFAULT_POLL_INTERVAL = 3.0

# Environment variable mappings
ENV_VARS = {
    "install_dir": "OCDEPLOY_INSTALL_DIR",
    "lock_file": "OCDEPLOY_LOCK_FILE",
    "init_timeout": "OCDEPLOY_INIT_TIMEOUT",
    "health_timeout": "OCDEPLOY_HEALTH_TIMEOUT",
    "poll_interval": "OCDEPLOY_POLL_INTERVAL",
}

_CONVERTERS = {
    "install_dir": Path,
    "lock_file": Path,
    "init_timeout": int,
    "health_timeout": int,
    "poll_interval": float,
}


@dataclass
class InstallerSettings:
    """Installer settings."""

    install_dir: Path = INSTALL_DIR
    lock_file: Path = LOCK_FILE
    init_timeout: int = DEFAULT_INIT_TIMEOUT
    health_timeout: int = DEFAULT_HEALTH_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    @property
    def manifest_path(self) -> Path:
        return get_manifest_path(self.install_dir)

    @property
    def config_dir(self) -> Path:
        return get_config_dir(self.install_dir)

    def get_source(self, key: str) -> str:
        """Get the source of a settings value."""
        return self._sources.get(key, "default")


def _convert(key: str, value: Any, source: str) -> Any:
    try:
        converted = _CONVERTERS[key](value)
    except (TypeError, ValueError) as e:
        raise SettingsError(f"Invalid {key} from {source}: {value!r}", field=key) from e
    if isinstance(converted, (int, float)) and converted <= 0:
        raise SettingsError(f"{key} from {source} must be positive, got {value!r}", field=key)
    return converted


def _read_settings_file(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise SettingsError(f"Cannot read settings file {path}: {e}") from e

    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping")

    unknown = sorted(set(data) - set(ENV_VARS))
    if unknown:
        raise SettingsError(f"Unknown settings in {path}: {', '.join(unknown)}")
    return data


def load_settings(
    settings_path: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> InstallerSettings:
    """Load installer settings.

    Args:
        settings_path: Explicit settings file. It must exist when given;
            the default location is optional.
        environ: Environment mapping (default: os.environ)

    Returns:
        InstallerSettings with values and sources

    Raises:
        SettingsError: if a file or variable holds an unusable value.
    """
    environ = os.environ if environ is None else environ
    settings = InstallerSettings()
    sources: dict[str, str] = {key: "default" for key in ENV_VARS}

    if settings_path is not None:
        path = Path(settings_path)
        if not path.exists():
            raise SettingsError(f"Settings file not found: {path}")
    else:
        path = SETTINGS_FILE

    if path.exists():
        for key, value in _read_settings_file(path).items():
            setattr(settings, key, _convert(key, value, "settings file"))
            sources[key] = "settings file"

    for key, var in ENV_VARS.items():
        if environ.get(var):
            setattr(settings, key, _convert(key, environ[var], var))
            sources[key] = "environment"

    settings._sources = sources
    return settings
