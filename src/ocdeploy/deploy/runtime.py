"""Adapters over the docker and tailscale command-line tools.

The rest of the deploy package talks to containers only through these
classes, so stages can be exercised against fakes with the same methods.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from enum import Enum

from ..shared.logging import get_logger

logger = get_logger(__name__)

# Guarded so containers without a HEALTHCHECK report an empty string
HEALTH_FORMAT = "{{if .State.Health}}{{.State.Health.Status}}{{end}}"
STATUS_FORMAT = "{{.State.Status}}"
RUNNING_FORMAT = "{{.State.Running}}"
EXIT_CODE_FORMAT = "{{.State.ExitCode}}"


@dataclass
class CommandResult:
    """Outcome of one external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return "".join(part for part in (self.stdout, self.stderr) if part)

    @property
    def error_text(self) -> str:
        return (self.stderr or self.stdout).strip() or f"exit code {self.returncode}"


class CommandRunner:
    """Run external commands and capture their output."""

    def run(
        self,
        args: list[str],
        timeout: float | None = None,
        merge_stderr: bool = False,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            args: Command and arguments.
            timeout: Seconds before the process is killed.
            merge_stderr: Capture stderr interleaved into stdout.

        Returns:
            CommandResult. A missing executable is reported as exit code 127.
        """
        logger.debug("command.run", args=args, timeout=timeout)
        try:
            result = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError:
            logger.debug("command.not_found", executable=args[0])
            return CommandResult(127, stderr=f"{args[0]}: command not found")
        except subprocess.TimeoutExpired as e:
            logger.debug("command.timeout", args=args, timeout=timeout)
            return CommandResult(-1, stdout=_decode(e.stdout), stderr=_decode(e.stderr), timed_out=True)

        logger.debug("command.done", executable=args[0], returncode=result.returncode)
        return CommandResult(result.returncode, result.stdout or "", result.stderr or "")

    def stream(self, args: list[str]) -> int:
        """Run a command attached to the terminal and return its exit code."""
        logger.debug("command.stream", args=args)
        try:
            return subprocess.run(args).returncode
        except FileNotFoundError:
            return 127


def _decode(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode(errors="replace")
    return value


class ContainerHealth(Enum):
    """Health status reported by the container's built-in probe."""

    NONE = "none"  # Image defines no HEALTHCHECK
    STARTING = "starting"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"  # Inspect failed, e.g. container not created yet


class RunState(Enum):
    """Container run status as reported by docker inspect."""

    CREATED = "created"
    RUNNING = "running"
    PAUSED = "paused"
    RESTARTING = "restarting"
    REMOVING = "removing"
    EXITED = "exited"
    DEAD = "dead"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> RunState:
        try:
            return cls(value.strip())
        except ValueError:
            return cls.UNKNOWN


class DockerClient:
    """Narrow adapter over the docker CLI."""

    def __init__(self, runner: CommandRunner | None = None, executable: str = "docker"):
        self.runner = runner or CommandRunner()
        self.executable = executable

    def _docker(self, *args: str, timeout: float | None = None, merge_stderr: bool = False) -> CommandResult:
        return self.runner.run([self.executable, *args], timeout=timeout, merge_stderr=merge_stderr)

    def info(self) -> CommandResult:
        return self._docker("info", timeout=30)

    def compose_version(self) -> CommandResult:
        return self._docker("compose", "version", "--short", timeout=10)

    def pull(self, image: str) -> CommandResult:
        return self._docker("pull", image)

    def run_detached(
        self,
        name: str,
        image: str,
        command: list[str] | None = None,
        volumes: list[str] | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Start a named container in the background."""
        args = ["run", "-d", "--name", name]
        for volume in volumes or []:
            args.extend(["-v", volume])
        for key, value in (env or {}).items():
            args.extend(["-e", f"{key}={value}"])
        args.append(image)
        args.extend(command or [])
        return self._docker(*args)

    def _inspect(self, name: str, fmt: str) -> CommandResult:
        return self._docker("inspect", "-f", fmt, name, timeout=10)

    def query_health(self, name: str) -> ContainerHealth:
        result = self._inspect(name, HEALTH_FORMAT)
        if not result.ok:
            return ContainerHealth.UNKNOWN
        status = result.stdout.strip()
        if not status:
            return ContainerHealth.NONE
        try:
            return ContainerHealth(status)
        except ValueError:
            return ContainerHealth.UNKNOWN

    def query_run_state(self, name: str) -> RunState:
        result = self._inspect(name, STATUS_FORMAT)
        if not result.ok:
            return RunState.UNKNOWN
        return RunState.parse(result.stdout)

    def is_running(self, name: str) -> bool:
        result = self._inspect(name, RUNNING_FORMAT)
        return result.ok and result.stdout.strip() == "true"

    def exit_code(self, name: str) -> int | None:
        result = self._inspect(name, EXIT_CODE_FORMAT)
        if not result.ok:
            return None
        try:
            return int(result.stdout.strip())
        except ValueError:
            return None

    def logs(self, name: str) -> str:
        """Combined stdout/stderr of a container, in emission order."""
        return self._docker("logs", name, merge_stderr=True).stdout

    def stop(self, name: str) -> CommandResult:
        return self._docker("stop", name, timeout=30)

    def remove(self, name: str) -> CommandResult:
        return self._docker("rm", "-f", name, timeout=30)


class TailscaleClient:
    """Adapter over the tailscale CLI."""

    def __init__(self, runner: CommandRunner | None = None, executable: str = "tailscale"):
        self.runner = runner or CommandRunner()
        self.executable = executable

    def ipv4(self) -> str | None:
        """Return this node's Tailscale IPv4 address, or None if unavailable."""
        result = self.runner.run([self.executable, "ip", "-4"], timeout=10)
        if not result.ok:
            logger.info("tailscale.ip_unavailable", error=result.error_text)
            return None
        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        return lines[0] if lines else None
