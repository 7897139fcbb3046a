"""The install flow.

Stages run in a fixed order and each returns an explicit result. The driver
stops at the first failed result, prints its diagnostic and reports exit
code 1. Declining to tear down an existing deployment ends the run with
exit code 0. Nothing already applied is rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass

import click

from ..config import InstallerSettings
from ..errors import InstallerError, RuntimeFailure
from ..output import Output, out
from ..shared.logging import get_logger
from .collect import ConfigurationCollector, DeploymentConfig
from .compose import ManifestRenderer
from .constants import CONTAINER_NAME, LOG_TAIL_LINES
from .health import HealthCheckResult, HealthPoller, HealthState
from .initializer import Initializer, InitResult, InitStatus
from .lock import DeploymentLock
from .prerequisites import PreflightChecker
from .report import Reporter
from .runtime import DockerClient, TailscaleClient
from .stack import ComposeStack
from .state import DeploymentAction, DeploymentDetector
from .storage import StoragePreparer

logger = get_logger(__name__)

RULE = "================================================="


def click_prompt(text: str, default: str | None) -> str:
    """Prompt once; empty input returns the default (or "" when there is none)."""
    return click.prompt(
        text,
        default="" if default is None else default,
        show_default=default is not None,
    )


def click_confirm(text: str, default: bool) -> bool:
    return click.confirm(text, default=default)


@dataclass
class DeployResult:
    """Outcome of a full install run."""

    exit_code: int
    stage: str | None = None
    error: InstallerError | None = None
    action: DeploymentAction | None = None
    config: DeploymentConfig | None = None
    init: InitResult | None = None
    health: HealthCheckResult | None = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class Deployer:
    """Drive one install run from preflight to report."""

    def __init__(
        self,
        settings: InstallerSettings,
        output: Output | None = None,
        docker: DockerClient | None = None,
        stack: ComposeStack | None = None,
        tailscale: TailscaleClient | None = None,
        prompt=None,
        confirm=None,
        is_root=None,
        which=None,
        chown=None,
        clock=None,
        sleep=None,
    ):
        self.settings = settings
        self.out = output or out
        self.docker = docker or DockerClient()
        self.stack = stack or ComposeStack(settings.manifest_path)
        self.tailscale = tailscale or TailscaleClient()
        self._prompt = prompt or click_prompt
        self._confirm = confirm or click_confirm
        self._is_root = is_root
        self._which = which
        self._chown = chown
        self._clock = clock
        self._sleep = sleep
        self.stage: str | None = None

    def run(self) -> DeployResult:
        """Run every stage; unexpected exceptions become a failed result."""
        lock = DeploymentLock(self.settings.lock_file)
        try:
            return self._run(lock)
        except click.Abort:
            raise
        except InstallerError as e:
            return self._fail(e)
        except Exception as e:
            logger.exception("deploy.unexpected_error", stage=self.stage)
            return self._fail(
                RuntimeFailure(
                    f"Installer failed during {self.stage}: {e}",
                    hint=f"Containers may be in a partial state. Check '{self.stack.ps_command}'.",
                )
            )
        finally:
            lock.release()

    def _fail(self, error: InstallerError, **fields) -> DeployResult:
        self.out.error(error.message)
        if error.hint:
            self.out.error(error.hint)
        logger.info("deploy.failed", stage=self.stage, kind=error.kind.value, field=error.field)
        return DeployResult(exit_code=1, stage=self.stage, error=error, **fields)

    def _enter(self, stage: str) -> None:
        self.stage = stage
        logger.info("deploy.stage", stage=stage)

    def _run(self, lock: DeploymentLock) -> DeployResult:
        settings = self.settings

        self._enter("preflight")
        preflight = PreflightChecker(self.docker, is_root=self._is_root, which=self._which).check()
        if not preflight.passed:
            return self._fail(preflight.error)

        self._enter("lock")
        lock.acquire()

        self._enter("detect")
        detector = DeploymentDetector(self.stack, self._confirm)
        detection = detector.resolve(
            on_found=lambda path: self.out.info(f"Existing compose file found at {path}")
        )
        if detection.action is DeploymentAction.KEEP_EXISTING:
            self.out.info("Aborting, existing deployment left untouched")
            return DeployResult(exit_code=0, stage=self.stage, action=detection.action)
        if detection.error:
            return self._fail(detection.error, action=detection.action)
        if detection.action is DeploymentAction.RECREATE:
            self.out.ok("Previous deployment removed")
        action = detection.action

        self._enter("collect")
        collector = ConfigurationCollector(self._prompt, self.tailscale)
        detected = collector.detect_address()
        self.out.banner(RULE)
        self.out.banner(" OpenCloud Tenant Installer (Tailscale-Only)")
        self.out.banner(RULE)
        if detected:
            self.out.info(f"Detected Tailscale IPv4: {detected}")
        else:
            self.out.info("Tailscale IPv4 not detected, enter manually")
        self.out.blank()
        collected = collector.collect(detected)
        if collected.error:
            return self._fail(collected.error, action=action)
        config = collected.config

        self._enter("storage")
        storage = StoragePreparer(settings.config_dir, chown=self._chown).prepare(config.storage_path)
        if storage.error:
            return self._fail(storage.error, action=action, config=config)
        self.out.ok("Storage directories ready")

        self._enter("manifest")
        manifest = ManifestRenderer(settings.config_dir).write(config, settings.manifest_path)
        self.out.ok(f"Compose file written to {manifest}")

        self._enter("pull")
        self.out.info("Pulling image...")
        pulled = self.docker.pull(config.image_reference)
        if not pulled.ok:
            return self._fail(
                RuntimeFailure(f"Failed to pull {config.image_reference}: {pulled.error_text}"),
                action=action,
                config=config,
            )

        self._enter("init")
        self.out.info("Running initialisation (generating secrets, etc.)...")
        init = Initializer(
            self.docker,
            settings.config_dir,
            timeout_seconds=settings.init_timeout,
            clock=self._clock,
            sleep=self._sleep,
        ).run(config)
        self._note_init(init)

        self._enter("launch")
        self.out.info("Starting container...")
        success, msg = self.stack.up(pull=False)
        if not success:
            return self._fail(
                RuntimeFailure(msg, hint=f"Check logs: {self.stack.logs_command}"),
                action=action,
                config=config,
                init=init,
            )

        self._enter("health")
        self.out.info(f"Waiting for OpenCloud to become healthy (up to {settings.health_timeout} s)...")
        poller = HealthPoller(
            self.docker,
            timeout_seconds=settings.health_timeout,
            interval_seconds=settings.poll_interval,
            clock=self._clock,
            sleep=self._sleep,
        )
        health = poller.wait(CONTAINER_NAME)
        fields = {"action": action, "config": config, "init": init, "health": health}

        if health.state is HealthState.HEALTHY:
            self.out.ok(f"Container is healthy ({health.elapsed_seconds:.0f}s)")
        elif health.state is HealthState.RUNNING_NO_HEALTHCHECK:
            self.out.ok(f"Container is running (no healthcheck defined, {health.elapsed_seconds:.0f}s)")
        elif health.state is HealthState.UNHEALTHY:
            self.out.error(f"Container reported unhealthy. Last {LOG_TAIL_LINES} log lines:")
            self.out.raw(self.stack.log_tail(LOG_TAIL_LINES).stdout)
            return self._fail(
                RuntimeFailure("OpenCloud container is unhealthy", hint=f"Check logs: {self.stack.logs_command}"),
                **fields,
            )
        else:
            return self._fail(
                RuntimeFailure(
                    f"Timed out waiting for healthy state (last status: {health.last_status})",
                    hint=f"Check logs: {self.stack.logs_command}",
                ),
                **fields,
            )

        self._enter("report")
        Reporter(self.out).show(config, init)
        return DeployResult(exit_code=0, stage=self.stage, **fields)

    def _note_init(self, init: InitResult) -> None:
        if init.status is InitStatus.COMPLETED:
            self.out.ok("Initialisation completed")
        elif init.status is InitStatus.TIMED_OUT:
            self.out.info(
                f"Init taking too long ({self.settings.init_timeout}s), forced stop. Continuing."
            )
        elif init.status is InitStatus.ALREADY_INITIALIZED:
            self.out.info(f"Init exited with code {init.exit_code} (already initialised, continuing)")
        else:
            self.out.warn(
                f"Init exited with code {init.exit_code} without reporting an existing config. "
                "Continuing; review its output below."
            )

