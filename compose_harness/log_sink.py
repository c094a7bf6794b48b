"""Process-wide orchestrator log file."""

from __future__ import annotations

import os
from pathlib import Path

from compose_harness.core.exceptions import LogSinkError
from compose_harness.core.logging import get_logger

logger = get_logger("log_sink")


class LogSink:
    """
    Append-only log shared by every run in the process.

    The file is unbuffered so lifecycle markers written here interleave
    correctly with output the orchestrator writes to the same descriptor.
    """

    def __init__(self, path: Path, handle):
        self.path = path
        self._handle = handle

    @classmethod
    def open(cls, path: str | Path) -> "LogSink":
        """Create (truncating) the log file."""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            handle = open(path, "wb", buffering=0)
        except OSError as e:
            raise LogSinkError(
                f"Cannot open log file {path}: {e}", details={"path": str(path)}
            ) from e
        logger.info("Writing orchestrator output to %s", path)
        return cls(path, handle)

    def fileno(self) -> int:
        return self._handle.fileno()

    def write(self, data: str | bytes) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        try:
            self._handle.write(data)
        except OSError as e:
            raise LogSinkError(f"Error writing log file: {e}") from e

    def marker(self, number: int, phase: str) -> None:
        self.write(f"--- test {number} {phase}\n")

    def sync(self) -> None:
        """Flush the file to disk."""
        try:
            os.fsync(self._handle.fileno())
        except OSError as e:
            raise LogSinkError(f"Error syncing log file: {e}") from e

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def close(self) -> None:
        self._handle.close()
