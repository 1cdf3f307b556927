"""Pytest configuration for policy store tests.

This configuration provides:
1. A file-backed SQLite database per test (tmp_path), so every test starts
   from an empty rule table and concurrent sessions really are separate
   connections
2. An Adapter with a mocked logger, and a Casbin AsyncEnforcer using it
3. Helpers to seed and read the rule table directly

pytest-asyncio runs in auto mode (see pyproject.toml), so async tests and
fixtures need no explicit marker.
"""

from pathlib import Path
from unittest.mock import Mock

import casbin
import pytest
import pytest_asyncio

from rulestore import Adapter, Filter

FIXTURES_DIR = Path(__file__).parent / "fixtures"
RBAC_MODEL_PATH = str(FIXTURES_DIR / "rbac_model.conf")


@pytest.fixture
def mock_logger():
    """Provide a mock logger for testing.

    Usage:
        def test_something(mock_logger):
            adapter = Adapter(url, logger=mock_logger)
            ...
            mock_logger.info.assert_any_call("policy_loaded", ...)
    """
    logger = Mock()
    logger.info = Mock()
    logger.debug = Mock()
    logger.error = Mock()
    logger.warning = Mock()
    return logger


@pytest.fixture
def database_url(tmp_path):
    """Async SQLite URL of a fresh database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'casbin.db'}"


@pytest.fixture
def rbac_model_path():
    """Path of the RBAC model used by every enforcer in the tests."""
    return RBAC_MODEL_PATH


@pytest_asyncio.fixture
async def adapter(database_url, mock_logger):
    """Adapter owning its engine, with the default rule table created."""
    adapter = Adapter(database_url, logger=mock_logger)
    await adapter.create_table()
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def enforcer(adapter):
    """Casbin AsyncEnforcer (RBAC model) backed by the adapter."""
    enforcer = casbin.AsyncEnforcer(RBAC_MODEL_PATH, adapter)
    await enforcer.load_policy()
    return enforcer


@pytest.fixture
def stored_rules(adapter):
    """Read every stored rule (with ptype) in row order.

    Usage:
        assert await stored_rules() == [["p", "alice", "data1", "read"]]
    """

    async def read():
        return await adapter.find_filtered(Filter())

    return read


@pytest.fixture
def seed_rules(adapter):
    """Insert rules (given with ptype) straight into the rule table.

    Usage:
        await seed_rules(["p", "alice", "data1", "read"], ["g", "alice", "admin"])
    """

    async def seed(*rules):
        for rule in rules:
            await adapter.add_policy(rule[0][:1], rule[0], rule[1:])

    return seed


# Pytest markers for different test types
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line(
        "markers", "integration: Integration tests with a real SQLite database"
    )
