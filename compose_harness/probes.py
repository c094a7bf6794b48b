"""
Readiness probes and the polling loop.

A probe performs one cheap check and answers ready / not ready. Any error
raised while probing counts as "not ready"; only the polling deadline turns
an unready stack into a failure.
"""

from __future__ import annotations

import re
import time
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, Protocol, runtime_checkable

import docker
import httpx
import requests

if TYPE_CHECKING:
    from docker.models.containers import Container

from compose_harness.core.config import HarnessSettings
from compose_harness.core.exceptions import ReadinessTimeoutError
from compose_harness.core.logging import get_logger

logger = get_logger("probes")

COMPOSE_PROJECT_LABEL = "com.docker.compose.project"


@runtime_checkable
class ReadinessProbe(Protocol):
    """A single readiness check against the target address."""

    def check(self, address: str) -> bool: ...


class HttpReadinessProbe:
    """HEAD the health check endpoint and expect a fixed status code."""

    def __init__(
        self,
        port: Optional[int] = None,
        path: str = "/health_check",
        expected_status: int = 204,
        timeout: float = 2.0,
        client: Optional[httpx.Client] = None,
    ):
        self.port = port
        self.path = path
        self.expected_status = expected_status
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: HarnessSettings) -> "HttpReadinessProbe":
        return cls(
            port=settings.port,
            path=settings.health_path,
            expected_status=settings.health_status,
            timeout=settings.probe_timeout,
        )

    def url(self, address: str) -> str:
        port = f":{self.port}" if self.port else ""
        return f"http://{address}{port}{self.path}"

    def check(self, address: str) -> bool:
        try:
            response = self._client.head(self.url(address))
        except httpx.HTTPError as e:
            logger.debug("Health check failed: %s", e)
            return False
        return response.status_code == self.expected_status

    def close(self) -> None:
        self._client.close()


class ContainerHealthProbe:
    """
    Ask the Docker engine whether every container of the project is up.

    Ready when the project has at least one container and all of them are
    running; containers with a Docker health check must also report
    ``healthy``.
    """

    def __init__(
        self,
        project: str,
        client_factory: Callable[[], "docker.DockerClient"] = docker.from_env,
    ):
        self.project = project
        self._client_factory = client_factory
        self._client: Optional[docker.DockerClient] = None

    @classmethod
    def from_settings(cls, settings: HarnessSettings) -> "ContainerHealthProbe":
        return cls(settings.project_name or default_project_name(settings.compose_file))

    def check(self, address: str) -> bool:
        try:
            if self._client is None:
                self._client = self._client_factory()
            containers = self._client.containers.list(
                all=True,
                filters={"label": f"{COMPOSE_PROJECT_LABEL}={self.project}"},
            )
            return bool(containers) and all(
                self._container_ready(c) for c in containers
            )
        except (
            docker.errors.DockerException,
            requests.exceptions.RequestException,
        ) as e:
            logger.debug("Container health check failed: %s", e)
            return False

    @staticmethod
    def _container_ready(container: "Container") -> bool:
        if container.status != "running":
            return False
        health = container.attrs.get("State", {}).get("Health", {})
        if health:
            return health.get("Status") == "healthy"
        return True

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


def default_project_name(compose_file: Optional[str] = None) -> str:
    """Compose's default project name.

    The basename of the compose file's directory, or of the working
    directory, lowercased and stripped to [a-z0-9_-].
    """
    directory = Path(compose_file).resolve().parent if compose_file else Path.cwd()
    return re.sub(r"[^a-z0-9_-]", "", directory.name.lower())


def probe_from_settings(settings: HarnessSettings) -> ReadinessProbe:
    if settings.readiness_probe == "containers":
        return ContainerHealthProbe.from_settings(settings)
    return HttpReadinessProbe.from_settings(settings)


def wait_until_ready(
    probe: ReadinessProbe,
    address: str,
    *,
    timeout: float,
    interval: float,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Poll ``probe`` until it succeeds; return the number of attempts.

    The probe is checked before the first sleep, so an already-ready target
    costs no waiting at all.
    """
    start = clock()
    attempts = 0

    while True:
        attempts += 1
        if probe.check(address):
            logger.info("Target ready after %d attempt(s)", attempts)
            return attempts

        elapsed = clock() - start
        if elapsed > timeout:
            raise ReadinessTimeoutError(
                details={"address": address, "attempts": attempts, "timeout": timeout}
            )
        sleep(interval)
