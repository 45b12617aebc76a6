"""
Global pytest configuration and fixtures.
"""
import os
from typing import Dict

import pytest

from freelance_ledger.config import LedgerConfig, reload_config
from freelance_ledger.services.memory_store import InMemoryRecordStore

ENV_KEYS = (
    "TAX_RATE",
    "INVOICE_DUE_DAYS",
    "CURRENCY_SYMBOL",
    "STORE_BACKEND",
    "LOCAL_STORE_PATH",
    "SPREADSHEET_ID",
    "GOOGLE_PROJECT_ID",
    "GOOGLE_PRIVATE_KEY_ID",
    "GOOGLE_PRIVATE_KEY",
    "GOOGLE_CLIENT_EMAIL",
    "GOOGLE_CLIENT_ID",
    "TIMER_TICK_SECONDS",
    "PAGE_SIZE",
    "ENVIRONMENT",
    "DEBUG",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FILE",
    "LOG_CONSOLE",
)


@pytest.fixture(scope="session")
def test_env_vars() -> Dict[str, str]:
    """Test environment variables for configuration."""
    return {
        "TAX_RATE": "0.10",
        "INVOICE_DUE_DAYS": "14",
        "STORE_BACKEND": "local",
        "ENVIRONMENT": "testing",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
    }


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove ledger settings from the environment and run in a temp dir.

    The temp working directory keeps a developer's .env file out of tests.
    """
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)

    import freelance_ledger.config.settings

    freelance_ledger.config.settings._config = None
    yield tmp_path
    freelance_ledger.config.settings._config = None


@pytest.fixture
def mock_env(test_env_vars, clean_env, monkeypatch):
    """Mock environment variables for testing."""
    for key, value in test_env_vars.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("LOCAL_STORE_PATH", str(clean_env / "ledger.json"))
    yield test_env_vars


@pytest.fixture
def test_config(mock_env) -> LedgerConfig:
    """Test configuration instance."""
    return reload_config()


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Empty in-memory record store without a backing file."""
    return InMemoryRecordStore()


@pytest.fixture
def sample_client_record():
    return {
        "Name": "Ada Lovelace",
        "company": "Analytical Engines Ltd",
        "email": "ada@example.com",
        "phone": "555-123-4567",
        "status": "active",
        "Tags": "vip,design",
    }


@pytest.fixture
def sample_project_record():
    return {
        "Name": "Website Redesign",
        "clientId": 1,
        "startDate": "2024-01-01",
        "dueDate": "2024-03-31",
        "status": "in-progress",
        "budget": 5000.0,
        "progress": 40,
        "hourlyRate": 85.0,
    }


@pytest.fixture(autouse=True)
def cleanup_test_files():
    """Clean up any test files created during testing."""
    yield

    for file in ["coverage.xml", ".coverage"]:
        if os.path.exists(file):
            os.remove(file)


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location."""
    for item in items:
        if "tests/unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
