"""
pytest integration.

Registered through the ``pytest11`` entry point, so installing the package
is enough to get:

- ``--compose-short``: skip every harnessed test (same as
  ``COMPOSE_HARNESS_SHORT=1``)
- ``compose_settings`` / ``compose_harness`` session fixtures
- the ``compose`` marker

Usage in a test suite:

    def test_health(compose_harness):
        def body(address):
            assert httpx.get(f"http://{address}:8080/health_check").is_success

        compose_harness.run_test(body)
"""

from __future__ import annotations

from typing import Generator

import pytest

from compose_harness.core.config import HarnessSettings, get_settings
from compose_harness.core.logging import setup_logging
from compose_harness.harness import Harness


def pytest_addoption(parser):
    group = parser.getgroup("compose", "Compose test harness")
    group.addoption(
        "--compose-short",
        action="store_true",
        default=False,
        help="Skip end-to-end tests that need the Compose stack.",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "compose: End-to-end test that runs against the live Compose stack",
    )


@pytest.fixture(scope="session")
def compose_settings(request: pytest.FixtureRequest) -> HarnessSettings:
    """Harness settings from the environment, with command-line overrides."""
    settings = get_settings()
    if request.config.getoption("compose_short"):
        settings = settings.model_copy(update={"short": True})
    setup_logging(settings)
    return settings


@pytest.fixture(scope="session")
def compose_harness(
    compose_settings: HarnessSettings,
) -> Generator[Harness, None, None]:
    """One harness for the whole session, so one-time steps stay one-time."""
    harness = Harness(compose_settings)
    yield harness
    harness.close()
