"""Deployment configuration collection and validation.

Values are prompted once each; an empty answer takes the shown default.
A value that fails validation ends the run. There is no re-prompt loop:
the operator reruns the installer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..errors import ValidationError
from ..shared.logging import get_logger
from .constants import DEFAULT_PORT, DEFAULT_STORAGE_PATH, IMAGE_REFERENCE
from .runtime import TailscaleClient

logger = get_logger(__name__)

_DIGITS = re.compile(r"[0-9]+")
_WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True)
class DeploymentConfig:
    """Validated deployment values, built once per run."""

    bind_address: str
    port: int
    storage_path: str
    public_domain: str
    image_reference: str = IMAGE_REFERENCE

    @property
    def public_url(self) -> str:
        return f"https://{self.public_domain}"

    @property
    def direct_url(self) -> str:
        return f"http://{self.bind_address}:{self.port}"


def validate_bind_address(value: str) -> str:
    """Check for a dotted-quad IPv4 address."""
    if not value:
        raise ValidationError(
            "No Tailscale IP provided and none detected. Is Tailscale running?",
            field="bind_address",
        )
    parts = value.split(".")
    if len(parts) != 4 or not all(_DIGITS.fullmatch(part) for part in parts):
        raise ValidationError(f"Invalid IPv4 address: {value!r}", field="bind_address")
    if any(int(part) > 255 for part in parts):
        raise ValidationError(f"Invalid IPv4 address: {value!r} (octets must be 0-255)", field="bind_address")
    return value


def validate_port(value: str) -> int:
    """Check for an integer in 1-65535."""
    if not _DIGITS.fullmatch(value):
        raise ValidationError(f"Port must be an integer, got {value!r}", field="port")
    port = int(value)
    if not 1 <= port <= 65535:
        raise ValidationError(f"Port must be between 1 and 65535, got {value!r}", field="port")
    return port


def validate_storage_path(value: str) -> str:
    """Check the storage path is absolute."""
    if not value.startswith("/"):
        raise ValidationError(
            f"Storage path must be an absolute path, got {value!r}",
            field="storage_path",
        )
    return value


def validate_domain(value: str) -> str:
    """Minimal domain-shape check: non-empty, no whitespace, at least one dot."""
    if not value:
        raise ValidationError("Tailscale MagicDNS domain cannot be empty.", field="public_domain")
    if _WHITESPACE.search(value):
        raise ValidationError(f"Domain must not contain whitespace, got {value!r}", field="public_domain")
    if "." not in value:
        raise ValidationError(
            f"Domain must be a dotted name like machine.alias.ts.net, got {value!r}",
            field="public_domain",
        )
    return value


@dataclass
class CollectionResult:
    """Outcome of configuration collection."""

    config: DeploymentConfig | None = None
    detected_address: str | None = None
    error: ValidationError | None = None


class ConfigurationCollector:
    """Prompt for and validate the deployment values."""

    def __init__(self, prompt, tailscale: TailscaleClient | None = None):
        """Initialize collector.

        Args:
            prompt: Callable(text, default) -> str. `default` is shown to the
                operator and returned on empty input; None means no default.
            tailscale: Tailscale adapter used for address auto-detection.
        """
        self._prompt = prompt
        self.tailscale = tailscale or TailscaleClient()

    def detect_address(self) -> str | None:
        return self.tailscale.ipv4()

    def _ask(self, text: str, default: str | None) -> str:
        answer = self._prompt(text, default)
        if not answer and default is not None:
            return default
        return answer or ""

    def collect(self, detected_address: str | None = None) -> CollectionResult:
        """Prompt for every field and validate each answer as it arrives.

        Args:
            detected_address: Result of detect_address(), offered as the
                bind address default.

        Returns:
            CollectionResult with either a config or the first validation error.
        """
        try:
            bind_address = validate_bind_address(
                self._ask("Enter the Tailscale IP to bind to", detected_address or "")
            )
            port = validate_port(self._ask("Enter the port for OpenCloud", str(DEFAULT_PORT)))
            storage_path = validate_storage_path(
                self._ask("Enter the absolute path for file storage", DEFAULT_STORAGE_PATH)
            )
            domain = validate_domain(
                self._ask("Enter your Tailscale MagicDNS domain (e.g., machine.alias.ts.net)", None)
            )
        except ValidationError as e:
            logger.info("config.rejected", field=e.field)
            return CollectionResult(detected_address=detected_address, error=e)

        config = DeploymentConfig(
            bind_address=bind_address,
            port=port,
            storage_path=storage_path,
            public_domain=domain,
        )
        logger.info("config.accepted", bind_address=bind_address, port=port, storage_path=storage_path)
        return CollectionResult(config=config, detected_address=detected_address)
