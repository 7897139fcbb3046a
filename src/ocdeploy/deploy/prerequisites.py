"""Prerequisite detection for the install command.

Checks privilege, required tools, the Docker packaging variant, the compose
plugin and the Docker daemon, in that order. Each check is a fact about the
host: the first failure ends the run and nothing is retried.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass

from ..errors import EnvironmentCheckError
from ..shared.logging import get_logger
from .constants import REQUIRED_TOOLS, SNAP_PREFIX, SNAP_REMEDIATION
from .runtime import DockerClient

logger = get_logger(__name__)


@dataclass
class PreflightResult:
    """Preflight check result."""

    passed: bool
    docker_path: str | None = None
    compose_version: str | None = None
    error: EnvironmentCheckError | None = None


class PreflightChecker:
    """Verify the host can run the deployment."""

    def __init__(
        self,
        docker: DockerClient | None = None,
        is_root=None,
        which=None,
    ):
        """Initialize preflight checker.

        Args:
            docker: Docker adapter used for the compose and daemon checks.
            is_root: Callable returning True for an administrative caller.
            which: Callable resolving an executable on PATH.
        """
        self.docker = docker or DockerClient()
        self._is_root = is_root or (lambda: os.geteuid() == 0)
        self._which = which or shutil.which

    def check(self) -> PreflightResult:
        """Run all checks, stopping at the first failure."""
        if not self._is_root():
            return self._fail("Please run as root")

        paths: dict[str, str] = {}
        for tool in REQUIRED_TOOLS:
            path = self._which(tool)
            if not path:
                return self._fail(f"'{tool}' is not installed or not in PATH")
            paths[tool] = path

        docker_path = paths["docker"]
        if docker_path.startswith(SNAP_PREFIX):
            return self._fail(
                "Docker installed via snap is not supported due to strict path confinement.",
                hint=f"Please run: {SNAP_REMEDIATION}",
                docker_path=docker_path,
            )

        compose = self.docker.compose_version()
        if not compose.ok:
            return self._fail(
                f"Docker Compose plugin not available: {compose.error_text}",
                hint="Install the docker-compose-plugin package",
                docker_path=docker_path,
            )

        info = self.docker.info()
        if not info.ok:
            return self._fail(
                "Docker daemon is not running",
                hint="Start it with: systemctl start docker",
                docker_path=docker_path,
            )

        logger.info("preflight.passed", docker=docker_path, compose=compose.stdout.strip())
        return PreflightResult(
            passed=True,
            docker_path=docker_path,
            compose_version=compose.stdout.strip() or None,
        )

    def _fail(self, message: str, hint: str | None = None, docker_path: str | None = None) -> PreflightResult:
        logger.info("preflight.failed", reason=message)
        return PreflightResult(
            passed=False,
            docker_path=docker_path,
            error=EnvironmentCheckError(message, hint=hint),
        )
