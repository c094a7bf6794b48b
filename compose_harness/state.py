"""
Lifecycle state and one-time initialization.

A ``LifecycleState`` lives as long as the harness that owns it. Its flags
only ever go from False to True, which is what lets many tests in one
process share a single build, a single image pull, one resolved address and
one log file.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional

from compose_harness.commands import CommandRunner, ComposeCli
from compose_harness.core.config import HarnessSettings
from compose_harness.core.exceptions import SetupError
from compose_harness.core.logging import get_logger
from compose_harness.log_sink import LogSink

logger = get_logger("state")


@dataclass
class LifecycleState:
    """Shared state for all runs of one harness."""

    built: bool = False
    pulled: bool = False
    hooks_ran: bool = False
    target_address: str = ""
    log_sink: Optional[LogSink] = None
    sequence_number: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def next_sequence(self) -> int:
        with self.lock:
            self.sequence_number += 1
            return self.sequence_number


class OneTimeSetup:
    """Build, resolve, open and pull, each at most once per state."""

    def __init__(
        self,
        state: LifecycleState,
        settings: HarnessSettings,
        cli: ComposeCli,
        runner: CommandRunner,
    ):
        self.state = state
        self.settings = settings
        self.cli = cli
        self.runner = runner

    def prepare(self) -> str:
        """Run every pending one-time step and return the target address."""
        with self.state.lock:
            self.ensure_built()
            self.ensure_address()
            self.ensure_log_sink()
            self.ensure_pulled()
            return self.state.target_address

    def ensure_built(self) -> None:
        if self.state.built:
            return

        args = self.cli.build()
        if args:
            logger.info("Building project")
            result = self.runner.run(args)
            if not result.ok:
                raise SetupError(
                    f"build failed: exit status {result.returncode}",
                    details={"command": args, "output": result.text},
                )
        self.state.built = True

    def ensure_address(self) -> None:
        if self.state.target_address:
            return

        if self.settings.target_address:
            self.state.target_address = self.settings.target_address
        else:
            self.state.target_address = self._resolve_address()
        logger.info(
            "Using target address %s",
            self.state.target_address,
            extra={"extra_fields": {"address": self.state.target_address}},
        )

    def _resolve_address(self) -> str:
        active = self.runner.run(self.cli.machine_active())
        if not active.ok or not active.text:
            # No active named host, assume the engine runs natively
            return self.settings.loopback_address

        args = self.cli.machine_ip(active.text)
        result = self.runner.run(args)
        if not result.ok:
            raise SetupError(
                f"Cannot resolve address of host {active.text!r}",
                details={"command": args, "output": result.text},
            )
        return result.text

    def ensure_log_sink(self) -> None:
        if self.state.log_sink is None:
            self.state.log_sink = LogSink.open(self.settings.log_path)

    def ensure_pulled(self) -> None:
        if self.state.pulled:
            return

        sink = self.state.log_sink
        sink.write("pulling Compose images...")
        args = self.cli.pull()
        result = self.runner.run(args)
        if not result.ok:
            sink.write(result.output)
            raise SetupError(
                f"error pulling Compose images: exit status {result.returncode}",
                details={"command": args},
            )
        self.state.pulled = True
        sink.write("done\n")
