"""Shared pytest configuration and fixtures for grantflow tests."""

import logging
import os

import pytest

# Import token endpoint and redirect capture fixtures
pytest_plugins = ["tests.fixtures.oauth_http"]

GRANTFLOW_ENV_VARS = (
    "GRANTFLOW_LOG_LEVEL",
    "GRANTFLOW_HTTP_TIMEOUT",
    "GRANTFLOW_CALLBACK_HOST",
    "GRANTFLOW_CALLBACK_PORT",
    "GRANTFLOW_OPEN_BROWSER",
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests (fast, no external deps)")
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (local sockets and threads)"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers to tests based on their location."""
    for item in items:
        if "tests/unit/" in str(item.fspath) or "tests/cli/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def clean_grantflow_environment():
    """Run every test against default configuration.

    Removes GRANTFLOW_* variables (a developer's .env included) and drops the
    cached Config so each test sees a fresh environment.
    """
    from grantflow.core.config import reset_config

    original_env = {name: os.environ.pop(name, None) for name in GRANTFLOW_ENV_VARS}
    reset_config()
    try:
        yield
    finally:
        for name, value in original_env.items():
            if value is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = value
        reset_config()


@pytest.fixture
def restore_root_logging():
    """Restore root logger handlers after tests that reconfigure logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
