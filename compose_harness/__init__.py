"""
Compose Test Harness.

Runs integration tests against a live Docker Compose stack:

- one-time build, image pull and address resolution per process
- supervised 'docker-compose up' with output captured to a log file
- readiness polling with a deadline
- graceful interrupt, forced kill on timeout, guaranteed container removal
- global and per-run setup hooks
"""

from compose_harness.core.config import HarnessSettings, get_settings
from compose_harness.core.exceptions import (
    HarnessError,
    LogSinkError,
    ReadinessTimeoutError,
    SetupError,
    ShutdownError,
    ShutdownTimeoutError,
    StartupError,
)
from compose_harness.harness import Harness
from compose_harness.hooks import HookRegistry
from compose_harness.probes import (
    ContainerHealthProbe,
    HttpReadinessProbe,
    ReadinessProbe,
    wait_until_ready,
)
from compose_harness.state import LifecycleState
from compose_harness.supervisor import ProcessPhase, ProcessSupervisor, SupervisedProcess

__all__ = [
    "ContainerHealthProbe",
    "Harness",
    "HarnessError",
    "HarnessSettings",
    "HookRegistry",
    "HttpReadinessProbe",
    "LifecycleState",
    "LogSinkError",
    "ProcessPhase",
    "ProcessSupervisor",
    "ReadinessProbe",
    "ReadinessTimeoutError",
    "SetupError",
    "ShutdownError",
    "ShutdownTimeoutError",
    "StartupError",
    "SupervisedProcess",
    "get_settings",
    "wait_until_ready",
]
