"""Existing-deployment detection for idempotent reruns.

The manifest is the only durable state the installer keeps; its presence
means a previous run got at least as far as writing it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..errors import RuntimeFailure
from .stack import ComposeStack


class DeploymentAction(Enum):
    """What the detector decided to do about prior state."""

    FRESH_INSTALL = "fresh_install"  # No manifest
    RECREATE = "recreate"  # Old stack torn down, continue
    KEEP_EXISTING = "keep_existing"  # Operator declined, stop without changes


@dataclass
class DetectionResult:
    """Outcome of the deployment detector."""

    action: DeploymentAction
    manifest_path: Path
    error: RuntimeFailure | None = None


class DeploymentDetector:
    """Find a prior deployment and optionally tear it down."""

    def __init__(self, stack: ComposeStack, confirm):
        """Initialize detector.

        Args:
            stack: Compose stack for the manifest path being checked.
            confirm: Callable(question, default) -> bool asking the operator.
        """
        self.stack = stack
        self._confirm = confirm

    @property
    def manifest_path(self) -> Path:
        return self.stack.manifest_path

    def has_existing(self) -> bool:
        return self.manifest_path.exists()

    def resolve(self, on_found=None) -> DetectionResult:
        """Decide whether the run may proceed.

        Args:
            on_found: Optional callback(manifest_path) called before prompting.

        Returns:
            DetectionResult. KEEP_EXISTING means the run should end with
            exit code 0; an error means teardown failed.
        """
        if not self.has_existing():
            return DetectionResult(DeploymentAction.FRESH_INSTALL, self.manifest_path)

        if on_found:
            on_found(self.manifest_path)

        if not self._confirm("Tear down and recreate?", False):
            return DetectionResult(DeploymentAction.KEEP_EXISTING, self.manifest_path)

        success, msg = self.stack.down(remove_orphans=True)
        if not success:
            return DetectionResult(
                DeploymentAction.RECREATE,
                self.manifest_path,
                error=RuntimeFailure(msg, hint=f"Inspect the stack with: {self.stack.ps_command}"),
            )
        return DetectionResult(DeploymentAction.RECREATE, self.manifest_path)
