"""Shared fixtures."""

import pytest
import structlog

from schema_architect.logging_config import configure_logging


@pytest.fixture(autouse=True)
def stderr_logging():
    """Route structlog to stderr, as the CLI does, for every test."""
    configure_logging(debug=False)
    yield
    structlog.reset_defaults()
