"""Deploy package for the OpenCloud tenant installer.

This package provides the `ocdeploy install` flow which:
1. Checks host prerequisites (root, docker, tailscale, compose, daemon)
2. Detects an existing manifest and offers teardown
3. Collects and validates bind address, port, storage path and domain
4. Prepares storage directories and writes docker-compose.yml
5. Runs `opencloud init` once, starts the service and waits for health
6. Prints the init output and access URLs
"""

from .collect import (
    CollectionResult,
    ConfigurationCollector,
    DeploymentConfig,
    validate_bind_address,
    validate_domain,
    validate_port,
    validate_storage_path,
)
from .compose import ManifestRenderer
from .health import HealthCheckResult, HealthPoller, HealthState
from .initializer import Initializer, InitResult, InitStatus
from .lock import DeploymentLock
from .pipeline import Deployer, DeployResult
from .prerequisites import PreflightChecker, PreflightResult
from .report import Reporter
from .runtime import (
    CommandResult,
    CommandRunner,
    ContainerHealth,
    DockerClient,
    RunState,
    TailscaleClient,
)
from .stack import ComposeStack
from .state import DeploymentAction, DeploymentDetector, DetectionResult
from .storage import StoragePreparer, StorageResult

__all__ = [
    # Adapters
    "CommandResult",
    "CommandRunner",
    "ContainerHealth",
    "DockerClient",
    "RunState",
    "TailscaleClient",
    "ComposeStack",
    # Preflight
    "PreflightChecker",
    "PreflightResult",
    # Existing deployment
    "DeploymentAction",
    "DeploymentDetector",
    "DetectionResult",
    "DeploymentLock",
    # Configuration
    "CollectionResult",
    "ConfigurationCollector",
    "DeploymentConfig",
    "validate_bind_address",
    "validate_domain",
    "validate_port",
    "validate_storage_path",
    # Storage and manifest
    "StoragePreparer",
    "StorageResult",
    "ManifestRenderer",
    # Init and health
    "Initializer",
    "InitResult",
    "InitStatus",
    "HealthPoller",
    "HealthCheckResult",
    "HealthState",
    # Report and driver
    "Reporter",
    "Deployer",
    "DeployResult",
]
