"""Shared pytest fixtures for all tests."""

import pytest
import pytest_asyncio

from cli.config import Config
from common.constants import APP_TAG
from drive.auth import SecretStore
from drive.config import DriveConfig
from drive.session import DriveSession
from ledger.memory import InMemoryLedger

ALICE_SECRET = "alice-secret"
BOB_SECRET = "bob-secret"
CAROL_SECRET = "carol-secret"


@pytest.fixture
def temp_config(tmp_path):
    """
    Create temporary CLI config instance.

    Returns:
        Config instance with temp config file
    """
    config_dir = tmp_path / '.ledgerdrive'
    config_dir.mkdir()
    return Config(config_dir / 'config.json')


@pytest.fixture
def ledger():
    """In-memory ledger with alice, bob and carol registered."""
    ledger = InMemoryLedger()
    ledger.create_account("alice", secret=ALICE_SECRET)
    ledger.create_account("bob", secret=BOB_SECRET)
    ledger.create_account("carol", secret=CAROL_SECRET)
    return ledger


@pytest.fixture
def secret_store():
    """Secret store with a single KDF round to keep tests fast."""
    return SecretStore(rounds=1)


@pytest.fixture
def drive_config(tmp_path):
    return DriveConfig(
        data_dir=tmp_path / "data",
        ledger_nodes=["http://ledger.test"],
        history_window=100,
        kdf_rounds=1,
        ledger_timeout=1.0,
        ledger_max_retries=0,
    )


@pytest_asyncio.fixture
async def session(drive_config, ledger, secret_store):
    """DriveSession wired to the in-memory ledger, not logged in."""
    session = DriveSession(drive_config, ledger=ledger, secret_store=secret_store)
    yield session
    await session.aclose()


@pytest_asyncio.fixture
async def alice_session(session):
    """DriveSession logged in as alice."""
    await session.login("alice", ALICE_SECRET)
    return session


@pytest.fixture
def make_event():
    """
    Factory for raw drive event dicts.

    Usage: make_event("file_star", id="f1", starred=True)
    """
    def _make(event_type, **data):
        return {"type": event_type, "app": APP_TAG, "data": data}
    return _make


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample text file for upload tests.

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'notes.txt'
    file_path.write_text('Sample content for testing')
    return file_path
