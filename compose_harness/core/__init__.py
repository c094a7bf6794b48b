"""Core infrastructure: settings, logging, exceptions."""

from .config import HarnessSettings, get_settings
from .exceptions import (
    HarnessError,
    LogSinkError,
    ReadinessTimeoutError,
    SetupError,
    ShutdownError,
    ShutdownTimeoutError,
    StartupError,
)
from .logging import get_logger, run_number_var, setup_logging

__all__ = [
    "HarnessSettings",
    "get_settings",
    "HarnessError",
    "LogSinkError",
    "ReadinessTimeoutError",
    "SetupError",
    "ShutdownError",
    "ShutdownTimeoutError",
    "StartupError",
    "get_logger",
    "run_number_var",
    "setup_logging",
]
