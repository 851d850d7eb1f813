"""
Test fixtures package for indexer tests.

Organized into layers:
- common.py: commitment values, decoded events, raw RPC events
- chain_fixtures.py: in-memory event source and root submitter

Usage:
    from fixtures.common import make_event
    from fixtures.chain_fixtures import FakeEventSource
"""

from .common import (
    make_commitment,
    make_event,
    make_events,
    make_raw_event,
)

from .chain_fixtures import (
    FakeEventSource,
    FakeSubmitter,
)

__all__ = [
    # Common
    "make_commitment",
    "make_event",
    "make_events",
    "make_raw_event",
    # Chain
    "FakeEventSource",
    "FakeSubmitter",
]
