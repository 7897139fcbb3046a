"""Shared test fixtures for ocdeploy tests.

This module provides fakes for the external collaborators:
- FakeDocker: scripted answers for the docker adapter
- FakeStack: records compose up/down calls
- FakeTailscale: fixed (or missing) Tailscale address
- FakeClock: simulated monotonic time; sleeping advances it
- ScriptedPrompt: answers prompts in order
"""

import io
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from rich.console import Console

from ocdeploy.config import InstallerSettings
from ocdeploy.deploy import CommandResult, ContainerHealth, Deployer, RunState
from ocdeploy.output import Output

# =============================================================================
# Time
# =============================================================================


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


# =============================================================================
# Docker
# =============================================================================


@dataclass
class FakeDocker:
    """Scripted docker adapter.

    health_sequence is consumed one entry per query_health call; the last
    entry repeats once the list is exhausted.
    """

    health_sequence: list[ContainerHealth] = field(default_factory=lambda: [ContainerHealth.HEALTHY])
    run_state: RunState = RunState.RUNNING
    init_running_checks: int = 0  # is_running answers True this many times
    init_logs: str = "Admin password: s3cret\n"
    init_exit_code: int | None = 0
    init_start_ok: bool = True
    pull_ok: bool = True
    compose_ok: bool = True
    info_ok: bool = True
    calls: list[tuple] = field(default_factory=list)

    def _result(self, ok: bool, stdout: str = "") -> CommandResult:
        return CommandResult(0 if ok else 1, stdout=stdout, stderr="" if ok else "boom")

    def info(self) -> CommandResult:
        self.calls.append(("info",))
        return self._result(self.info_ok)

    def compose_version(self) -> CommandResult:
        self.calls.append(("compose_version",))
        return self._result(self.compose_ok, "2.24.0\n")

    def pull(self, image):
        self.calls.append(("pull", image))
        return self._result(self.pull_ok)

    def run_detached(self, name, image, command=None, volumes=None, env=None):
        self.calls.append(("run_detached", name, image, tuple(command or []), tuple(volumes or []), dict(env or {})))
        return self._result(self.init_start_ok, "abc123\n")

    def query_health(self, name):
        self.calls.append(("query_health", name))
        if len(self.health_sequence) > 1:
            return self.health_sequence.pop(0)
        return self.health_sequence[0]

    def query_run_state(self, name):
        self.calls.append(("query_run_state", name))
        return self.run_state

    def is_running(self, name):
        self.calls.append(("is_running", name))
        if self.init_running_checks > 0:
            self.init_running_checks -= 1
            return True
        return False

    def exit_code(self, name):
        self.calls.append(("exit_code", name))
        return self.init_exit_code

    def logs(self, name):
        self.calls.append(("logs", name))
        return self.init_logs

    def stop(self, name):
        self.calls.append(("stop", name))
        return self._result(True)

    def remove(self, name):
        self.calls.append(("remove", name))
        return self._result(True)

    def called(self, method: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == method]


# =============================================================================
# Compose stack
# =============================================================================


@dataclass
class FakeStack:
    """Compose stack fake recording what the manifest looked like at each call."""

    manifest_path: Path
    up_ok: bool = True
    down_ok: bool = True
    log_text: str = "opencloud  | proxy: backend unreachable\n"
    events: list[tuple] = field(default_factory=list)

    @property
    def logs_command(self) -> str:
        return f"docker compose -f {self.manifest_path} logs"

    @property
    def ps_command(self) -> str:
        return f"docker compose -f {self.manifest_path} ps"

    def _snapshot(self) -> bytes | None:
        return self.manifest_path.read_bytes() if self.manifest_path.exists() else None

    def up(self, pull=False):
        self.events.append(("up", pull, self._snapshot()))
        if not self.up_ok:
            return False, "Failed to start stack: port is already allocated"
        return True, "Stack started"

    def down(self, remove_orphans=True):
        self.events.append(("down", remove_orphans, self._snapshot()))
        if not self.down_ok:
            return False, "Failed to tear down stack: permission denied"
        return True, "Previous deployment removed"

    def log_tail(self, lines):
        self.events.append(("log_tail", lines, None))
        return CommandResult(0, stdout=self.log_text)


class FakeTailscale:
    def __init__(self, address: str | None = "100.64.0.5"):
        self.address = address

    def ipv4(self):
        return self.address


class ScriptedPrompt:
    """Answer prompts from a list; records (text, default) of each prompt."""

    def __init__(self, answers: list[str]):
        self.answers = list(answers)
        self.asked: list[tuple[str, str | None]] = []

    def __call__(self, text, default):
        self.asked.append((text, default))
        return self.answers.pop(0)


# =============================================================================
# Fixtures
# =============================================================================


@dataclass
class CapturedOutput:
    output: Output
    stdout: io.StringIO
    stderr: io.StringIO

    @property
    def text(self) -> str:
        return self.stdout.getvalue() + self.stderr.getvalue()


@pytest.fixture
def captured_output() -> CapturedOutput:
    """Output writing to in-memory buffers, no color."""
    stdout, stderr = io.StringIO(), io.StringIO()
    output = Output(
        console=Console(file=stdout, width=120, color_system=None, highlight=False),
        err_console=Console(file=stderr, width=120, color_system=None, highlight=False),
    )
    return CapturedOutput(output, stdout, stderr)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_docker() -> FakeDocker:
    return FakeDocker()


@pytest.fixture
def settings(tmp_path) -> InstallerSettings:
    """Settings rooted in a temporary directory."""
    return InstallerSettings(
        install_dir=tmp_path / "opt" / "opencloud",
        lock_file=tmp_path / "run" / "ocdeploy.lock",
    )


@pytest.fixture
def storage_path(tmp_path) -> str:
    return str(tmp_path / "clouddata")


@dataclass
class DeployHarness:
    """A Deployer wired entirely to fakes."""

    deployer: Deployer
    docker: FakeDocker
    stack: FakeStack
    prompt: ScriptedPrompt
    clock: FakeClock
    out: CapturedOutput
    chowned: list
    confirms: list


@pytest.fixture
def make_deployer(settings, captured_output, fake_clock, storage_path):
    """Factory building a Deployer around fakes.

    Default answers accept the detected address and default port, give a
    temporary storage path and a MagicDNS domain.
    """

    def _make(
        answers: list[str] | None = None,
        docker: FakeDocker | None = None,
        tailscale_address: str | None = "100.64.0.5",
        confirm_answer: bool = False,
        is_root: bool = True,
        which=None,
    ) -> DeployHarness:
        docker = docker or FakeDocker()
        stack = FakeStack(settings.manifest_path)
        prompt = ScriptedPrompt(answers if answers is not None else ["", "", storage_path, "host.tailxxxx.ts.net"])
        chowned: list = []
        confirms: list = []

        def confirm(text, default):
            confirms.append((text, default))
            return confirm_answer

        deployer = Deployer(
            settings,
            output=captured_output.output,
            docker=docker,
            stack=stack,
            tailscale=FakeTailscale(tailscale_address),
            prompt=prompt,
            confirm=confirm,
            is_root=lambda: is_root,
            which=which or (lambda tool: f"/usr/bin/{tool}"),
            chown=lambda path, uid, gid, follow_symlinks=True: chowned.append((str(path), uid, gid)),
            clock=fake_clock,
            sleep=fake_clock.sleep,
        )
        return DeployHarness(deployer, docker, stack, prompt, fake_clock, captured_output, chowned, confirms)

    return _make
