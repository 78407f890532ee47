"""Shared fixtures for the SwarmCast test suite."""

import pytest

from swarmcast.catalog import AVAILABLE_AGENTS, available_roles
from swarmcast.config import SwarmConfig
from tests.helpers import StubClient, failing


@pytest.fixture
def catalog_roles():
    """The six catalog roles in catalog order."""
    return available_roles(AVAILABLE_AGENTS)


@pytest.fixture
def failing_client():
    return StubClient(failing)


@pytest.fixture
def parallel_config():
    return SwarmConfig(execution_mode="parallel")


@pytest.fixture
def staggered_config():
    return SwarmConfig(execution_mode="staggered", min_agent_seconds=0.01)


@pytest.fixture
def log_events():
    """Capture structlog events, including contextvars bindings."""
    import structlog
    from structlog.testing import LogCapture

    capture = LogCapture()
    processors = structlog.get_config()["processors"]
    saved = processors.copy()
    processors.clear()
    processors.extend([structlog.contextvars.merge_contextvars, capture])
    structlog.configure(processors=processors)
    try:
        yield capture.entries
    finally:
        processors.clear()
        processors.extend(saved)
        structlog.configure(processors=processors)
        structlog.contextvars.clear_contextvars()
