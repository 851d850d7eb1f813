"""
Pytest configuration and shared fixtures for indexer tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")
_chain = importlib.import_module("fixtures.chain_fixtures")

make_commitment = _common.make_commitment
make_event = _common.make_event
make_events = _common.make_events

FakeEventSource = _chain.FakeEventSource
FakeSubmitter = _chain.FakeSubmitter

from core.config.runtime import IndexerConfig
from core.crypto.hashing import get_hasher
from core.merkle.merkle_tree import TreeBuilder
from core.merkle.snapshot import SnapshotHolder
from core.storage.db import Database, IN_MEMORY
from core.storage.ledger import CommitmentLedger
from core.storage.roots import RootStore
from indexer.cycle import bootstrap_snapshot


# Small height keeps hashing cheap; the algorithms do not depend on H.
TEST_HEIGHT = 8


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def hasher():
    """Deterministic SHA-256 field hasher."""
    return get_hasher("sha256")


@pytest.fixture
def builder(hasher):
    """TreeBuilder at the small test height."""
    return TreeBuilder(hasher, TEST_HEIGHT)


@pytest.fixture
def db():
    """Fresh in-memory database."""
    database = Database(IN_MEMORY)
    yield database
    database.close()


@pytest.fixture
def ledger(db):
    return CommitmentLedger(db)


@pytest.fixture
def roots(db):
    return RootStore(db)


@pytest.fixture
def holder(ledger, builder):
    """SnapshotHolder bootstrapped from the (empty) ledger."""
    return SnapshotHolder(bootstrap_snapshot(ledger, builder))


@pytest.fixture
def source():
    return FakeEventSource()


@pytest.fixture
def submitter():
    return FakeSubmitter()


@pytest.fixture
def indexer_config(tmp_path):
    """Config pointing at a temp database with the sha256 hasher."""
    config = IndexerConfig()
    config.tree.hash = "sha256"
    config.tree.height = TEST_HEIGHT
    config.storage.db_path = str(tmp_path / "commitments.db")
    config.ingest.poll_interval = 0.01
    config.ingest.retry_delay = 0.01
    config.api.run_ingestion = False
    return config


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
