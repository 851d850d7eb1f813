"""
Tests for the Indexer Service

End-to-end behavior of the composed service over a file database:
restart reproduces the same tree, the background loop ingests and
publishes, and a leaf gap halts ingestion while queries keep serving.
"""

import threading
import time

import pytest

from core.merkle.merkle_proofs import verify_merkle_proof
from indexer.service import Indexer

from fixtures.chain_fixtures import FakeEventSource, FakeSubmitter
from fixtures.common import make_commitment, make_event, make_events


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


@pytest.mark.integration
class TestRestart:
    """The database is the only state; a restart replays it."""

    def test_same_root_after_restart(self, indexer_config):
        indexer_config.ingest.auto_submit = False
        first = Indexer(indexer_config, source=FakeEventSource(make_events(5), latest=120))
        first.cycle.run_once()
        root = first.proofs.current_root()
        first.close()

        second = Indexer(indexer_config)
        assert second.proofs.leaf_count() == 5
        assert second.proofs.current_root() == root
        assert second.proofs.path_for_commitment(make_commitment(3)).index == 3
        second.close()

    def test_resume_skips_stored_events(self, indexer_config):
        indexer_config.ingest.auto_submit = False
        first = Indexer(indexer_config, source=FakeEventSource(make_events(3), latest=110))
        first.cycle.run_once()
        first.close()

        source = FakeEventSource(make_events(3), latest=110)
        source.add(make_event(3, block_number=115))
        second = Indexer(indexer_config, source=source)
        result = second.cycle.run_once()

        assert source.fetch_calls == [(102, 115)]
        assert result.inserted == 1
        assert second.proofs.leaf_count() == 4
        assert second.roots.count() == 2
        second.close()

    def test_restart_with_stored_gap_serves_prefix(self, indexer_config):
        first = Indexer(indexer_config)
        first.ledger.insert(0, make_commitment(0), block=100)
        first.ledger.insert(2, make_commitment(2), block=102)
        first.close()

        second = Indexer(indexer_config, source=FakeEventSource(latest=120))
        try:
            assert second.proofs.leaf_count() == 1
            assert second.proofs.path_for_index(0).leaf == make_commitment(0)

            health = second.health()
            assert health["status"] == "halted"
            assert health["haltReason"].startswith("INCONSISTENT_LEAF")
            assert health["leaves"] == 1

            second.start()
            assert not second.loop.running
        finally:
            second.close()

    def test_restart_with_stored_gap_without_chain(self, indexer_config):
        first = Indexer(indexer_config)
        first.ledger.insert(0, make_commitment(0), block=100)
        first.ledger.insert(2, make_commitment(2), block=102)
        first.close()

        second = Indexer(indexer_config)
        assert second.proofs.leaf_count() == 1
        assert second.health()["status"] == "halted"
        second.close()

    def test_submitted_flag_survives_restart(self, indexer_config):
        submitter = FakeSubmitter()
        first = Indexer(indexer_config, source=FakeEventSource(make_events(2), latest=101), submitter=submitter)
        first.cycle.run_once()
        first.close()
        assert len(submitter.submitted) == 1

        second = Indexer(indexer_config)
        assert second.roots.count(submitted=False) == 0
        assert second.roots.latest().tx_hash == "0x0001"
        second.close()


@pytest.mark.integration
class TestBackgroundLoop:

    def test_ingests_and_publishes(self, indexer_config):
        source = FakeEventSource(make_events(2), latest=101)
        submitter = FakeSubmitter()
        indexer = Indexer(indexer_config, source=source, submitter=submitter)
        indexer.start()
        try:
            assert wait_for(lambda: indexer.proofs.leaf_count() == 2)
            source.add(make_event(2, block_number=130))
            assert wait_for(lambda: indexer.proofs.leaf_count() == 3)
            assert wait_for(lambda: len(submitter.submitted) == 2)
            assert indexer.health()["ingesting"] is True
        finally:
            indexer.close()

        assert source.closed
        assert not indexer.loop.running

    def test_gap_halts_and_queries_keep_serving(self, indexer_config):
        source = FakeEventSource(make_events(2), latest=101)
        indexer = Indexer(indexer_config, source=source, submitter=FakeSubmitter())
        indexer.start()
        try:
            assert wait_for(lambda: indexer.proofs.leaf_count() == 2)
            root = indexer.proofs.current_root()

            source.add(make_event(5, block_number=140))
            assert wait_for(lambda: indexer.loop.halted)

            health = indexer.health()
            assert health["status"] == "halted"
            assert health["haltReason"].startswith("INCONSISTENT_LEAF")
            assert indexer.proofs.current_root() == root
            assert indexer.proofs.path_for_index(1).root == root
        finally:
            indexer.close()

    def test_transient_failures_recover(self, indexer_config):
        source = FakeEventSource(make_events(1), latest=100)
        source.fail_next(3)
        indexer = Indexer(indexer_config, source=source, submitter=FakeSubmitter())
        indexer.start()
        try:
            assert wait_for(lambda: indexer.proofs.leaf_count() == 1)
            assert wait_for(lambda: indexer.health()["status"] == "ok")
        finally:
            indexer.close()


@pytest.mark.integration
@pytest.mark.slow
def test_readers_see_consistent_paths_during_ingestion(indexer_config, hasher):
    """Every served path verifies against the root it carries."""
    indexer_config.ingest.auto_submit = False
    source = FakeEventSource(latest=100)
    indexer = Indexer(indexer_config, source=source)

    errors = []
    stop = threading.Event()

    def reader():
        while not stop.is_set():
            snapshot = indexer.proofs.snapshot()
            for index in range(snapshot.leaf_count):
                proof = snapshot.proof_for_index(index)
                if not verify_merkle_proof(hasher, proof):
                    errors.append(index)

    threads = [threading.Thread(target=reader) for _ in range(3)]
    for thread in threads:
        thread.start()
    try:
        for i in range(20):
            source.add(make_event(i, block_number=101 + i))
            indexer.cycle.run_once()
    finally:
        stop.set()
        for thread in threads:
            thread.join()
        indexer.close()

    assert errors == []
    assert indexer.proofs.leaf_count() == 20
