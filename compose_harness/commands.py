"""
Orchestrator command lines and one-shot command execution.

``ComposeCli`` owns every fixed argument list the harness passes to the
orchestrator and to the named-host tool. ``CommandRunner`` executes the
short-lived ones and captures their combined output; the long-running
``up`` command is spawned by the supervisor instead.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from compose_harness.core.config import HarnessSettings
from compose_harness.core.logging import get_logger

logger = get_logger("commands")

# Exit status reported when the executable could not be launched at all
LAUNCH_FAILURE = 127


@dataclass
class CommandResult:
    """Outcome of a one-shot command."""

    args: list[str]
    returncode: int
    output: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace").strip()


class CommandRunner:
    """Run a command to completion, capturing stdout and stderr together."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    def run(self, args: Sequence[str]) -> CommandResult:
        args = list(args)
        logger.debug("Running %s", " ".join(args))
        try:
            proc = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.timeout,
                check=False,
            )
        except OSError as e:
            return CommandResult(args, LAUNCH_FAILURE, str(e).encode())
        except subprocess.TimeoutExpired as e:
            return CommandResult(args, LAUNCH_FAILURE, e.output or b"Timeout")
        return CommandResult(args, proc.returncode, proc.stdout or b"")


class ComposeCli:
    """Fixed argument lists for the orchestrator and named-host tools."""

    def __init__(self, settings: HarnessSettings):
        self.settings = settings

    def base(self) -> list[str]:
        args = list(self.settings.compose_command)
        if self.settings.compose_file:
            args += ["-f", self.settings.compose_file]
        if self.settings.project_name:
            args += ["-p", self.settings.project_name]
        return args

    def build(self) -> list[str]:
        """Build command; an empty list means there is nothing to build."""
        if self.settings.build_command is not None:
            return list(self.settings.build_command)
        return self.base() + ["build"]

    def pull(self) -> list[str]:
        return self.base() + ["pull"]

    def up(self) -> list[str]:
        return self.base() + ["up", "--force-recreate", "--no-color"]

    def remove(self) -> list[str]:
        return self.base() + ["rm", "--force", "--stop"]

    def machine_active(self) -> list[str]:
        return list(self.settings.machine_command) + ["active"]

    def machine_ip(self, name: str) -> list[str]:
        return list(self.settings.machine_command) + ["ip", name]
