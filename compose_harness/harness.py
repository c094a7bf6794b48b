"""
Test harness entry point.

``Harness.run_test`` brings the compose stack up, waits until it is ready,
hands the resolved address to the test body and always tears the stack
down again, however the body finished.
"""

from __future__ import annotations

import time
from contextlib import ExitStack
from typing import Callable, Optional, TypeVar

import pytest

from compose_harness.commands import CommandRunner, ComposeCli
from compose_harness.core.config import HarnessSettings, get_settings
from compose_harness.core.logging import get_logger, run_number_var
from compose_harness.hooks import GlobalHook, HookRegistry, PerRunHook
from compose_harness.log_sink import LogSink
from compose_harness.probes import ReadinessProbe, probe_from_settings, wait_until_ready
from compose_harness.state import LifecycleState, OneTimeSetup
from compose_harness.supervisor import ProcessSupervisor

logger = get_logger("harness")

T = TypeVar("T")


class Harness:
    """
    Runs tests against a live compose stack.

    One harness should live for the whole test process: it owns the
    lifecycle state, so the build, the image pull, address resolution and
    the log file happen once no matter how many tests run.

    Usage:
        harness = Harness()
        harness.register_per_run_hook(seed_database)

        def test_signup():
            def body(address):
                response = httpx.post(f"http://{address}:8080/signup", ...)
                assert response.status_code == 201

            harness.run_test(body)
    """

    def __init__(
        self,
        settings: Optional[HarnessSettings] = None,
        probe: Optional[ReadinessProbe] = None,
        runner: Optional[CommandRunner] = None,
    ):
        self.settings = settings or get_settings()
        self.state = LifecycleState()
        self.hooks = HookRegistry()
        self.probe = probe or probe_from_settings(self.settings)

        runner = runner or CommandRunner(timeout=self.settings.command_timeout)
        cli = ComposeCli(self.settings)
        self.setup = OneTimeSetup(self.state, self.settings, cli, runner)
        self.supervisor = ProcessSupervisor(self.settings, cli, runner)

    def register_global_hook(self, fn: GlobalHook) -> GlobalHook:
        """Call ``fn()`` once, before the first test starts the stack."""
        return self.hooks.register_global_hook(fn)

    def register_per_run_hook(self, fn: PerRunHook) -> PerRunHook:
        """Call ``fn(address)`` before each test body."""
        return self.hooks.register_per_run_hook(fn)

    def run_test(self, test_body: Callable[[str], T]) -> T:
        """Run ``test_body(address)`` against a freshly started stack."""
        if self.settings.short:
            pytest.skip("skipping Compose end-to-end test in short mode.")

        self._run_global_hooks()
        address = self.setup.prepare()
        sink = self.state.log_sink

        with ExitStack() as cleanup:
            cleanup.callback(sink.sync)
            cleanup.callback(run_number_var.set, None)

            process = self.supervisor.start(sink)
            cleanup.callback(self.supervisor.stop, process)

            number = self.state.next_sequence()
            run_number_var.set(number)
            sink.marker(number, "start")
            cleanup.callback(self._end_marker, sink, number)

            self.hooks.run_per_run(address)

            wait_until_ready(
                self.probe,
                address,
                timeout=self.settings.readiness_timeout,
                interval=self.settings.readiness_interval,
            )

            logger.info("Running test %d against %s", number, address)
            return test_body(address)

    def _run_global_hooks(self) -> None:
        if self.state.hooks_ran:
            return
        self.hooks.run_global()
        self.state.hooks_ran = True

    def _end_marker(self, sink: LogSink, number: int) -> None:
        # Let orchestrator output still in flight land before the marker
        time.sleep(self.settings.end_marker_delay)
        sink.marker(number, "end")

    def close(self) -> None:
        """Release the log file and probe resources at process end."""
        close_probe = getattr(self.probe, "close", None)
        if close_probe is not None:
            close_probe()
        if self.state.log_sink is not None and not self.state.log_sink.closed:
            self.state.log_sink.close()
