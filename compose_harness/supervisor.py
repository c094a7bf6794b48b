"""
Supervision of the long-running orchestrator 'up' process.

Startup returns as soon as the process is launched. Shutdown is strictly
ordered:

1. send SIGINT so the orchestrator can stop its containers gracefully
2. wait for the exit, bounded by ``shutdown_timeout``
3. on timeout, kill and reap the process, then report the timeout
4. always remove leftover containers, after 2/3 have resolved

A non-zero exit status after the interrupt is only logged; every other
failure along the way is raised once removal has been attempted.
"""

from __future__ import annotations

import signal
import subprocess
import time
from dataclasses import dataclass, field
from enum import Enum

from compose_harness.commands import CommandRunner, ComposeCli
from compose_harness.core.config import HarnessSettings
from compose_harness.core.exceptions import (
    ShutdownError,
    ShutdownTimeoutError,
    StartupError,
)
from compose_harness.core.logging import get_logger
from compose_harness.log_sink import LogSink

logger = get_logger("supervisor")


class ProcessPhase(str, Enum):
    """Lifecycle of one supervised process."""

    STARTING = "starting"
    RUNNING = "running"
    INTERRUPTING = "interrupting"
    WAITING_FOR_EXIT = "waiting_for_exit"
    EXITED = "exited"
    TIMED_OUT = "timed_out"
    REMOVED = "removed"


@dataclass
class SupervisedProcess:
    """The 'up' process of a single run."""

    args: list[str]
    started_at: float = field(default_factory=time.monotonic)
    phase: ProcessPhase = ProcessPhase.STARTING
    popen: subprocess.Popen | None = None

    @property
    def pid(self) -> int | None:
        return self.popen.pid if self.popen else None

    @property
    def returncode(self) -> int | None:
        return self.popen.returncode if self.popen else None

    @property
    def stopped(self) -> bool:
        return self.phase == ProcessPhase.REMOVED


class ProcessSupervisor:
    """Start and stop the orchestrator for one run at a time."""

    def __init__(
        self,
        settings: HarnessSettings,
        cli: ComposeCli,
        runner: CommandRunner,
    ):
        self.settings = settings
        self.cli = cli
        self.runner = runner

    def start(self, sink: LogSink) -> SupervisedProcess:
        process = SupervisedProcess(args=self.cli.up())
        try:
            process.popen = subprocess.Popen(
                process.args,
                stdin=subprocess.DEVNULL,
                stdout=sink.fileno(),
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            raise StartupError(
                f"Error starting Compose: {e}", details={"command": process.args}
            ) from e

        process.phase = ProcessPhase.RUNNING
        logger.info(
            "Started %s (pid %s)",
            " ".join(process.args),
            process.pid,
            extra={"extra_fields": {"pid": process.pid, "command": process.args}},
        )
        return process

    def stop(self, process: SupervisedProcess) -> None:
        try:
            self._interrupt(process)
            self._await_exit(process)
        finally:
            self._remove_containers(process)

    def _interrupt(self, process: SupervisedProcess) -> None:
        process.phase = ProcessPhase.INTERRUPTING
        try:
            process.popen.send_signal(signal.SIGINT)
        except OSError as e:
            raise ShutdownError(
                f"Error exiting Compose: {e}", details={"pid": process.pid}
            ) from e

    def _await_exit(self, process: SupervisedProcess) -> None:
        process.phase = ProcessPhase.WAITING_FOR_EXIT
        timeout = self.settings.shutdown_timeout
        try:
            returncode = process.popen.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            process.phase = ProcessPhase.TIMED_OUT
            self._kill(process)
            raise ShutdownTimeoutError(
                details={"pid": process.pid, "timeout": timeout}
            ) from None

        process.phase = ProcessPhase.EXITED
        if returncode != 0:
            logger.warning(
                "Compose exited with error: exit status %s",
                returncode,
                extra={"extra_fields": {"pid": process.pid, "returncode": returncode}},
            )
        else:
            logger.info("Compose exited cleanly")

    def _kill(self, process: SupervisedProcess) -> None:
        logger.warning(
            "Compose did not exit within %.1fs, killing pid %s",
            self.settings.shutdown_timeout,
            process.pid,
            extra={"extra_fields": {"pid": process.pid}},
        )
        try:
            process.popen.kill()
            process.popen.wait(timeout=self.settings.shutdown_timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ShutdownError(
                f"failed to kill Compose: {e}", details={"pid": process.pid}
            ) from e

    def _remove_containers(self, process: SupervisedProcess) -> None:
        args = self.cli.remove()
        result = self.runner.run(args)
        if not result.ok:
            raise ShutdownError(
                "error removing containers",
                details={"command": args, "output": result.text},
            )
        process.phase = ProcessPhase.REMOVED
