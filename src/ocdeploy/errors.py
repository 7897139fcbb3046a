"""Error types for ocdeploy.

Every failure the installer reports falls in one of three kinds. Stage
results carry these errors; the pipeline driver prints the first one and
exits non-zero.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(Enum):
    """Category of an installer failure."""

    ENVIRONMENT = "environment"  # Host precondition the operator must fix
    VALIDATION = "validation"  # Operator input rejected
    RUNTIME = "runtime"  # Docker/compose step failed


@dataclass
class InstallerError(Exception):
    """Base error class for installer failures."""

    message: str
    kind: ErrorKind = ErrorKind.RUNTIME
    hint: str | None = None
    field: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass
class EnvironmentCheckError(InstallerError):
    """Missing privilege, missing tool, unsupported Docker, daemon down."""

    kind: ErrorKind = ErrorKind.ENVIRONMENT


@dataclass
class SettingsError(InstallerError):
    """Settings file or OCDEPLOY_* variable could not be used."""

    kind: ErrorKind = ErrorKind.ENVIRONMENT


@dataclass
class ValidationError(InstallerError):
    """An operator-supplied value failed validation."""

    kind: ErrorKind = ErrorKind.VALIDATION


@dataclass
class RuntimeFailure(InstallerError):
    """Teardown, pull, start or health check failed."""

    kind: ErrorKind = ErrorKind.RUNTIME
