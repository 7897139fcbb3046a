"""Compose stack lifecycle for the deployed manifest.

Wraps `docker compose -f <manifest>` for start, teardown and logs.
"""

from __future__ import annotations

from pathlib import Path

from ..shared.logging import get_logger
from .runtime import CommandResult, CommandRunner

logger = get_logger(__name__)


class ComposeStack:
    """Manage the compose project declared by one manifest."""

    def __init__(self, manifest_path: Path, runner: CommandRunner | None = None):
        """Initialize stack manager.

        Args:
            manifest_path: Path to docker-compose.yml.
            runner: Command runner (default: real subprocesses).
        """
        self.manifest_path = manifest_path
        self.runner = runner or CommandRunner()

    def _compose(self, *args: str) -> list[str]:
        return ["docker", "compose", "-f", str(self.manifest_path), *args]

    @property
    def logs_command(self) -> str:
        """Command line the operator can run to inspect the stack."""
        return f"docker compose -f {self.manifest_path} logs"

    @property
    def ps_command(self) -> str:
        return f"docker compose -f {self.manifest_path} ps"

    def up(self, pull: bool = False) -> tuple[bool, str]:
        """Start the stack detached.

        Args:
            pull: Pull the image as part of starting (`--pull always`).

        Returns:
            Tuple of (success, message).
        """
        if not self.manifest_path.exists():
            return False, f"No manifest found at {self.manifest_path}"

        args = self._compose("up", "-d")
        if pull:
            args.extend(["--pull", "always"])

        result = self.runner.run(args)
        if not result.ok:
            return False, f"Failed to start stack: {result.error_text}"

        logger.info("stack.up", manifest=str(self.manifest_path))
        return True, "Stack started"

    def down(self, remove_orphans: bool = True) -> tuple[bool, str]:
        """Stop and remove everything the manifest declares.

        Args:
            remove_orphans: Also remove containers not in the manifest anymore.

        Returns:
            Tuple of (success, message).
        """
        if not self.manifest_path.exists():
            return False, f"No manifest found at {self.manifest_path}"

        args = self._compose("down")
        if remove_orphans:
            args.append("--remove-orphans")

        result = self.runner.run(args)
        if not result.ok:
            return False, f"Failed to tear down stack: {result.error_text}"

        logger.info("stack.down", manifest=str(self.manifest_path))
        return True, "Previous deployment removed"

    def log_tail(self, lines: int) -> CommandResult:
        """Capture the last lines of service logs."""
        return self.runner.run(self._compose("logs", f"--tail={lines}"), merge_stderr=True)

    def logs(self, follow: bool = False, tail: int | None = None) -> int:
        """Show logs on the terminal.

        Args:
            follow: Whether to follow log output.
            tail: Number of lines to show from end.

        Returns:
            Exit code of docker compose.
        """
        args = self._compose("logs")
        if follow:
            args.append("-f")
        if tail:
            args.append(f"--tail={tail}")
        return self.runner.stream(args)
