"""Fixtures for the CLI tests."""

import pytest
from click.testing import CliRunner

from freelance_ledger.cli.commands.common import CLIState
from freelance_ledger.config.logging_config import reset_logging
from freelance_ledger.services.factory import create_services


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def services(test_config, store):
    """All services on an empty in-memory store."""
    return create_services(test_config, store)


@pytest.fixture
def state(test_config, services):
    """CLI state handed to commands through ``obj``."""
    return CLIState(test_config, services)


@pytest.fixture(autouse=True)
def restore_logging():
    """Drop handlers bound to the runner's captured streams."""
    yield
    reset_logging()
