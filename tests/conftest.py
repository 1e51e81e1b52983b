"""
Sample Buddy Test Configuration

Shared fixtures and configuration for all tests.
"""

import sys
import os
import itertools
import logging
from datetime import datetime, timedelta

import pytest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from database.persistence import PersistenceGateway
from database.session import DatabaseManager
from samplebuddy.inventory.store import InventoryStore

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


# =============================================================================
# Deterministic time and ids
# =============================================================================

class FakeClock:
    """Returns a fixed start time, advancing one second per call."""

    def __init__(self, start: datetime = datetime(2025, 3, 14, 9, 30, 0)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


class StaticAuthenticator:
    """Accepts exactly one password."""

    def __init__(self, password: str = "secret"):
        self.password = password
        self.calls = []

    def authenticate(self, password: str) -> bool:
        self.calls.append(password)
        return password == self.password


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def authenticator():
    return StaticAuthenticator("secret")


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def store(clock, id_factory, authenticator):
    """Empty store with an operator logged in."""
    store = InventoryStore(clock=clock, id_factory=id_factory, authenticator=authenticator)
    store.login("Mario")
    return store


@pytest.fixture
def populated_store(store):
    """
    Store with:
        SC-01 / CA-01: 2501234-001 TQ, 2501234-002 TQ
        SC-01 / CA-02: (empty)
        AL-01 / AL-B1: 2509999-001 MC
    """
    store.create_shelf("SC-01")
    store.create_box("SC-01", "CA-01")
    store.create_box("SC-01", "CA-02")
    store.create_sample("SC-01", "CA-01", "2501234-001")
    store.create_sample("SC-01", "CA-01", "2501234-002")
    store.create_shelf("AL-01")
    store.create_box("AL-01", "AL-B1")
    store.create_sample("AL-01", "AL-B1", "2509999-001")
    return store


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def db():
    """In-memory SQLite database."""
    manager = DatabaseManager("sqlite:///:memory:")
    yield manager
    manager.dispose()


@pytest.fixture
def backup_dir(tmp_path):
    return tmp_path / "backups"


@pytest.fixture
def gateway(db, backup_dir):
    return PersistenceGateway(db=db, backup_dir=backup_dir)


@pytest.fixture
def manager(gateway, clock, id_factory):
    """SampleManager over an in-memory database, operator logged in."""
    from samplebuddy.manager import SampleManager
    manager = SampleManager(gateway=gateway, clock=clock, id_factory=id_factory)
    manager.login("Mario")
    return manager


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that use the database or the file system"
    )
    config.addinivalue_line(
        "markers", "gui: marks tests that require GUI dependencies"
    )
