"""Docker Compose manifest generation.

The manifest is rendered from a DeploymentConfig alone, so the same config
always produces the same bytes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .collect import DeploymentConfig
from .constants import CONFIG_MOUNT, CONTAINER_NAME, DATA_MOUNT, INTERNAL_PORT, SERVICE_NAME

HEADER = "# Generated by ocdeploy. Rewritten on every install; edits are lost.\n"


class ManifestRenderer:
    """Render and write docker-compose.yml for the OpenCloud service."""

    def __init__(self, config_dir: Path):
        """Initialize renderer.

        Args:
            config_dir: Host directory mounted at /etc/opencloud.
        """
        self.config_dir = config_dir

    def build(self, config: DeploymentConfig) -> dict[str, Any]:
        """Build the compose structure."""
        service: dict[str, Any] = {
            "image": config.image_reference,
            "container_name": CONTAINER_NAME,
            "restart": "unless-stopped",
            "ports": [f"{config.bind_address}:{config.port}:{INTERNAL_PORT}"],
            "volumes": [
                f"{config.storage_path}:{DATA_MOUNT}",
                f"{self.config_dir}:{CONFIG_MOUNT}",
            ],
            "environment": {
                "OPENCLOUD_URL": config.public_url,
                "OPENCLOUD_INSECURE": "false",
                "OCIS_INSECURE": "false",
                # TLS is terminated by tailscale serve
                "PROXY_TLS": "false",
            },
        }
        return {"services": {SERVICE_NAME: service}}

    def render(self, config: DeploymentConfig) -> str:
        """Render manifest text."""
        body = yaml.safe_dump(self.build(config), default_flow_style=False, sort_keys=False)
        return HEADER + body

    def write(self, config: DeploymentConfig, manifest_path: Path) -> Path:
        """Write the manifest, replacing any previous one.

        Returns:
            Path to the written manifest.
        """
        manifest_path.parent.mkdir(parents=True, exist_ok=True)
        manifest_path.write_text(self.render(config))
        return manifest_path
