"""Health polling for the deployed container.

Polls the container runtime's own health report on a fixed interval until
a terminal state or the deadline.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum

from ..shared.logging import get_logger
from .runtime import ContainerHealth, DockerClient, RunState

logger = get_logger(__name__)


class HealthState(Enum):
    """Poller states. Everything except STARTING is terminal."""

    STARTING = "starting"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    RUNNING_NO_HEALTHCHECK = "running_no_healthcheck"
    TIMEOUT = "timeout"

    @property
    def terminal(self) -> bool:
        return self is not HealthState.STARTING

    @property
    def success(self) -> bool:
        return self in (HealthState.HEALTHY, HealthState.RUNNING_NO_HEALTHCHECK)


@dataclass
class HealthCheckResult:
    """Result of health polling."""

    state: HealthState
    attempts: int = 0
    elapsed_seconds: float = 0.0
    last_status: str | None = None

    @property
    def healthy(self) -> bool:
        return self.state.success


class HealthPoller:
    """Poll container health state."""

    def __init__(
        self,
        docker: DockerClient,
        timeout_seconds: float = 120.0,
        interval_seconds: float = 3.0,
        clock=None,
        sleep=None,
    ):
        """Initialize health poller.

        Args:
            docker: Adapter answering query_health/query_run_state.
            timeout_seconds: Deadline measured from the first poll.
            interval_seconds: Sleep between polls.
            clock: Monotonic clock, default time.monotonic.
            sleep: Sleep function, default time.sleep.
        """
        self.docker = docker
        self.timeout_seconds = timeout_seconds
        self.interval_seconds = interval_seconds
        self._clock = clock or time.monotonic
        self._sleep = sleep or time.sleep

    def check_once(self, container: str) -> tuple[HealthState, str]:
        """Classify the container's current state.

        Returns:
            Tuple of (state, raw status used for the decision).
        """
        health = self.docker.query_health(container)
        if health is ContainerHealth.NONE:
            run_state = self.docker.query_run_state(container)
            if run_state is RunState.RUNNING:
                return HealthState.RUNNING_NO_HEALTHCHECK, run_state.value
            return HealthState.STARTING, run_state.value
        if health is ContainerHealth.HEALTHY:
            return HealthState.HEALTHY, health.value
        if health is ContainerHealth.UNHEALTHY:
            return HealthState.UNHEALTHY, health.value
        return HealthState.STARTING, health.value

    def wait(self, container: str, on_attempt=None) -> HealthCheckResult:
        """Poll until terminal state or deadline.

        Args:
            container: Container name to inspect.
            on_attempt: Optional callback(attempt, state, elapsed) per poll.

        Returns:
            HealthCheckResult with the terminal state.
        """
        start = self._clock()
        attempt = 0

        while True:
            attempt += 1
            state, status = self.check_once(container)
            elapsed = self._clock() - start
            logger.debug("health.poll", attempt=attempt, state=state.value, status=status, elapsed=elapsed)

            if on_attempt:
                on_attempt(attempt, state, elapsed)

            if state.terminal:
                return HealthCheckResult(state, attempt, elapsed, status)

            if elapsed >= self.timeout_seconds:
                return HealthCheckResult(HealthState.TIMEOUT, attempt, elapsed, status)

            self._sleep(self.interval_seconds)
