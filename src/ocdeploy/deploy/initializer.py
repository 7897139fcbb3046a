"""One-shot initialization of the OpenCloud config directory.

`opencloud init` generates secrets and the admin password on first run and
refuses to run again once a config exists. The container is started
detached and watched rather than run attached, because an entrypoint that
leaves a background process alive would otherwise hang `docker run`.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..shared.logging import get_logger
from .collect import DeploymentConfig
from .constants import CONFIG_MOUNT, INIT_CONTAINER_NAME
from .runtime import DockerClient

logger = get_logger(__name__)

ALREADY_INITIALIZED_MARKERS = ("already initialized", "already initialised", "already exists")


class InitStatus(Enum):
    """Classified outcome of the init run."""

    COMPLETED = "completed"
    ALREADY_INITIALIZED = "already_initialized"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass
class InitResult:
    """Result of the init run. Never fatal to the deployment."""

    status: InitStatus
    exit_code: int | None = None
    output: str = ""
    elapsed_seconds: float = 0.0


def looks_already_initialized(output: str) -> bool:
    lowered = output.lower()
    return any(marker in lowered for marker in ALREADY_INITIALIZED_MARKERS)


class Initializer:
    """Run `opencloud init` in a throwaway container."""

    def __init__(
        self,
        docker: DockerClient,
        config_dir: Path,
        timeout_seconds: float = 60,
        check_interval: float = 1.0,
        clock=None,
        sleep=None,
    ):
        self.docker = docker
        self.config_dir = config_dir
        self.timeout_seconds = timeout_seconds
        self.check_interval = check_interval
        self._clock = clock or time.monotonic
        self._sleep = sleep or time.sleep

    def run(self, config: DeploymentConfig) -> InitResult:
        # Leftover from an interrupted run would block the fixed name
        self.docker.remove(INIT_CONTAINER_NAME)

        start = self._clock()
        started = self.docker.run_detached(
            INIT_CONTAINER_NAME,
            config.image_reference,
            command=["init"],
            volumes=[f"{self.config_dir}:{CONFIG_MOUNT}"],
            env={"OPENCLOUD_URL": config.public_url},
        )
        if not started.ok:
            logger.info("init.start_failed", returncode=started.returncode)
            return InitResult(
                status=InitStatus.FAILED,
                exit_code=started.returncode,
                output=started.output,
            )

        timed_out = False
        while self.docker.is_running(INIT_CONTAINER_NAME):
            if self._clock() - start >= self.timeout_seconds:
                logger.info("init.timeout", timeout=self.timeout_seconds)
                self.docker.stop(INIT_CONTAINER_NAME)
                timed_out = True
                break
            self._sleep(self.check_interval)

        output = self.docker.logs(INIT_CONTAINER_NAME)
        exit_code = self.docker.exit_code(INIT_CONTAINER_NAME)
        self.docker.remove(INIT_CONTAINER_NAME)
        elapsed = self._clock() - start

        if timed_out:
            status = InitStatus.TIMED_OUT
        elif exit_code == 0:
            status = InitStatus.COMPLETED
        elif looks_already_initialized(output):
            status = InitStatus.ALREADY_INITIALIZED
        else:
            status = InitStatus.FAILED

        logger.info("init.done", status=status.value, exit_code=exit_code)
        return InitResult(
            status=status,
            exit_code=1 if exit_code is None else exit_code,
            output=output,
            elapsed_seconds=elapsed,
        )
