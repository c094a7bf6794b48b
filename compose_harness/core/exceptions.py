"""Harness exception taxonomy.

Every fatal condition aborts the current test by propagating one of these
out of ``Harness.run_test``. A non-zero exit of the orchestrator after a
graceful interrupt is not an error and is only logged.
"""

from __future__ import annotations

from typing import Any


class HarnessError(Exception):
    """Base harness exception with a structured description."""

    error_code: str = "HARNESS_ERROR"
    message: str = "Compose harness failure"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }


class SetupError(HarnessError):
    """A one-time setup step (build, pull, address resolution) failed."""

    error_code = "SETUP_FAILED"
    message = "One-time setup failed"


class LogSinkError(SetupError):
    """The log file could not be opened, written or synced."""

    error_code = "LOG_SINK_FAILED"
    message = "Log file operation failed"


class StartupError(HarnessError):
    """The orchestrator 'up' process could not be launched."""

    error_code = "STARTUP_FAILED"
    message = "Error starting Compose"


class ReadinessTimeoutError(HarnessError):
    """The readiness probe never succeeded before the deadline."""

    error_code = "READINESS_TIMEOUT"
    message = "Timed out waiting for server to start"


class ShutdownError(HarnessError):
    """Interrupt delivery, kill or container removal failed."""

    error_code = "SHUTDOWN_FAILED"
    message = "Error shutting down Compose"


class ShutdownTimeoutError(ShutdownError):
    """The orchestrator ignored the interrupt and had to be killed."""

    error_code = "SHUTDOWN_TIMEOUT"
    message = "Compose killed as timeout reached"
