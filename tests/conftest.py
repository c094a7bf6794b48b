"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Optional

import pytest

from compose_harness.commands import CommandResult, CommandRunner, ComposeCli
from compose_harness.core.config import HarnessSettings

pytest_plugins = ["pytester"]


# =============================================================================
# FAKE ORCHESTRATOR
# =============================================================================

# Stands in for docker-compose. Every invocation is appended to calls.log in
# the state directory; files in that directory switch failure modes on.
FAKE_COMPOSE = r'''
import signal
import sys
import time
from pathlib import Path

STATE = Path(sys.argv[1])
args = sys.argv[2:]
while args and args[0] in ("-f", "-p"):
    args = args[2:]
command = args[0] if args else ""

with open(STATE / "calls.log", "a") as f:
    f.write(" ".join(args) + "\n")

if command == "up":
    if (STATE / "ignore-sigint").exists():
        signal.signal(signal.SIGINT, signal.SIG_IGN)
    else:
        code = 3 if (STATE / "exit-error").exists() else 0

        def stop(signum, frame):
            print("Gracefully stopping...", flush=True)
            sys.exit(code)

        signal.signal(signal.SIGINT, stop)
    print("Starting containers", flush=True)
    (STATE / "ready").touch()
    while True:
        time.sleep(0.05)

if (STATE / f"hang-{command}").exists():
    time.sleep(60)

if command == "rm":
    (STATE / "ready").unlink(missing_ok=True)

print(f"{command} output", flush=True)
sys.exit(1 if (STATE / f"fail-{command}").exists() else 0)
'''

# Stands in for docker-machine. No machine is active unless machine-name exists.
FAKE_MACHINE = r'''
import sys
from pathlib import Path

STATE = Path(sys.argv[1])
command = sys.argv[2]

with open(STATE / "machine-calls.log", "a") as f:
    f.write(" ".join(sys.argv[2:]) + "\n")

name_file = STATE / "machine-name"
if command == "active":
    if not name_file.exists():
        print("No active host found", file=sys.stderr)
        sys.exit(1)
    print(name_file.read_text())
    sys.exit(0)

if command == "ip":
    if (STATE / "fail-ip").exists():
        print("Host does not exist", file=sys.stderr)
        sys.exit(1)
    print("  192.168.99.100  ")
    sys.exit(0)
sys.exit(2)
'''


class FakeStack:
    """State directory and scripts for the fake orchestrator tools."""

    def __init__(self, root: Path):
        self.root = root
        self.state = root / "state"
        self.state.mkdir()
        self.compose = root / "fake_compose.py"
        self.compose.write_text(FAKE_COMPOSE)
        self.machine = root / "fake_machine.py"
        self.machine.write_text(FAKE_MACHINE)

    @property
    def compose_command(self) -> list[str]:
        return [sys.executable, str(self.compose), str(self.state)]

    @property
    def machine_command(self) -> list[str]:
        return [sys.executable, str(self.machine), str(self.state)]

    @property
    def ready_file(self) -> Path:
        return self.state / "ready"

    def calls(self) -> list[str]:
        path = self.state / "calls.log"
        return path.read_text().splitlines() if path.exists() else []

    def machine_calls(self) -> list[str]:
        path = self.state / "machine-calls.log"
        return path.read_text().splitlines() if path.exists() else []

    def commands(self) -> list[str]:
        """First word of every orchestrator call, in order."""
        return [line.split()[0] for line in self.calls() if line]

    def fail(self, command: str) -> None:
        (self.state / f"fail-{command}").touch()

    def ignore_sigint(self) -> None:
        (self.state / "ignore-sigint").touch()

    def hang(self, command: str) -> None:
        (self.state / f"hang-{command}").touch()

    def exit_with_error(self) -> None:
        (self.state / "exit-error").touch()

    def activate_machine(self, name: str = "dev") -> None:
        (self.state / "machine-name").write_text(name)


class ReadyFileProbe:
    """Ready once the fake 'up' has installed its signal handling."""

    def __init__(self, stack: FakeStack):
        self.stack = stack
        self.addresses: list[str] = []

    def check(self, address: str) -> bool:
        self.addresses.append(address)
        return self.stack.ready_file.exists()


class NeverReadyProbe:
    def __init__(self):
        self.attempts = 0

    def check(self, address: str) -> bool:
        self.attempts += 1
        return False


class RecordingRunner(CommandRunner):
    """Runner that records argument lists and returns canned results."""

    def __init__(self, responses: Optional[dict[tuple[str, ...], tuple[int, bytes]]] = None):
        super().__init__()
        self.responses = responses or {}
        self.calls: list[list[str]] = []

    def run(self, args) -> CommandResult:
        args = list(args)
        self.calls.append(args)
        returncode, output = self.responses.get(tuple(args), (0, b""))
        return CommandResult(args, returncode, output)


def wait_for(path: Path, timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while not path.exists():
        if time.monotonic() > deadline:
            raise AssertionError(f"{path} did not appear within {timeout}s")
        time.sleep(0.02)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def fake_stack(tmp_path: Path) -> FakeStack:
    return FakeStack(tmp_path)


@pytest.fixture
def harness_settings(tmp_path: Path, fake_stack: FakeStack) -> HarnessSettings:
    """Settings wired to the fake tools, with short timings."""
    return HarnessSettings(
        _env_file=None,
        short=False,
        compose_command=fake_stack.compose_command,
        machine_command=fake_stack.machine_command,
        target_address=None,
        log_path=str(tmp_path / "logs" / "test.log"),
        readiness_interval=0.02,
        readiness_timeout=10.0,
        shutdown_timeout=5.0,
        end_marker_delay=0.0,
    )


@pytest.fixture
def cli(harness_settings: HarnessSettings) -> ComposeCli:
    return ComposeCli(harness_settings)


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def ready_probe(fake_stack: FakeStack) -> ReadyFileProbe:
    return ReadyFileProbe(fake_stack)


@pytest.fixture
def never_ready_probe() -> NeverReadyProbe:
    return NeverReadyProbe()


@pytest.fixture
def wait_for_file():
    return wait_for
