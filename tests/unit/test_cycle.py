"""
Ingestion Cycle Unit Tests
Tests for indexer/cycle.py

Covers:
1. New events are stored, the tree rebuilt and the root recorded
2. Re-ingesting the same events changes nothing
3. A leaf gap halts the cycle before any root is recorded
4. Leaves stored by an interrupted pass are attached on the next pass
5. Auto-submission through the publisher
"""
import pytest

from core.merkle.merkle_tree import MerkleTree
from core.merkle.snapshot import SnapshotHolder
from core.schemas.errors import ConflictError, InconsistentLeafError, TransientError
from indexer.cycle import IngestionCycle, bootstrap_snapshot, contiguous_prefix
from indexer.publisher import PublishStatus, RootPublisher

from fixtures.chain_fixtures import FakeEventSource, FakeSubmitter
from fixtures.common import make_commitment, make_event


def make_cycle(ledger, roots, builder, holder, source, publisher=None, **kwargs):
    return IngestionCycle(ledger, roots, builder, holder, source, publisher, **kwargs)


def expected_root(hasher, builder, count):
    leaves = [make_commitment(i) for i in range(count)]
    return MerkleTree.from_leaves(hasher, leaves, height=builder.height).root


class TestRunOnce:

    def test_ingests_and_records_root(self, hasher, ledger, roots, builder, holder):
        source = FakeEventSource([make_event(i) for i in range(3)], latest=110)
        result = make_cycle(ledger, roots, builder, holder, source).run_once()

        assert result.events == 3
        assert result.inserted == 3
        assert result.rebuilt
        assert result.leaves == 3
        assert result.root == expected_root(hasher, builder, 3)
        assert result.root_recorded

        snapshot = holder.current()
        assert snapshot.generation == 1
        assert snapshot.root == result.root
        assert snapshot.find(make_commitment(2)) == 2
        assert roots.get(result.root).observed_at_block == 110

    def test_idle_when_no_new_blocks(self, ledger, roots, builder, holder):
        source = FakeEventSource(latest=4)
        result = make_cycle(ledger, roots, builder, holder, source, start_block=10).run_once()
        assert result.idle
        assert source.fetch_calls == []

    def test_advances_block_cursor(self, ledger, roots, builder, holder):
        source = FakeEventSource([make_event(0, block_number=5)], latest=8)
        cycle = make_cycle(ledger, roots, builder, holder, source)
        cycle.run_once()
        assert cycle.next_block == 9

        source.add(make_event(1, block_number=12))
        cycle.run_once()
        assert source.fetch_calls == [(0, 8), (9, 12)]
        assert holder.current().leaf_count == 2

    def test_no_events_no_rebuild(self, ledger, roots, builder, holder):
        source = FakeEventSource(latest=8)
        result = make_cycle(ledger, roots, builder, holder, source).run_once()
        assert not result.rebuilt
        assert holder.current().generation == 0
        assert roots.count() == 0

    def test_resumes_from_last_stored_block(self, ledger, roots, builder):
        ledger.insert(0, make_commitment(0), block=40)
        holder_snapshot = bootstrap_snapshot(ledger, builder)
        assert holder_snapshot.leaf_count == 1

        cycle = make_cycle(ledger, roots, builder, SnapshotHolder(holder_snapshot),
                           FakeEventSource(latest=50), start_block=10)
        assert cycle.next_block == 40


class TestIdempotence:

    def test_rescan_changes_nothing(self, hasher, ledger, roots, builder, holder):
        events = [make_event(i, block_number=7) for i in range(2)]
        make_cycle(ledger, roots, builder, holder, FakeEventSource(events, latest=7)).run_once()
        root_before = holder.current().root

        # A restarted cycle re-scans block 7 and sees the same events again.
        again = make_cycle(ledger, roots, builder, holder, FakeEventSource(events, latest=7))
        result = again.run_once()

        assert result.events == 2
        assert result.inserted == 0
        assert not result.rebuilt
        assert holder.current().root == root_before
        assert holder.current().generation == 1
        assert roots.count() == 1


class TestIntegrityFailures:

    def test_gap_halts_before_recording_root(self, ledger, roots, builder, holder):
        events = [make_event(0), make_event(1), make_event(3)]
        cycle = make_cycle(ledger, roots, builder, holder, FakeEventSource(events, latest=200))

        with pytest.raises(InconsistentLeafError):
            cycle.run_once()

        assert holder.current().generation == 0
        assert holder.current().is_empty
        assert roots.count() == 0

    def test_conflicting_event(self, ledger, roots, builder, holder):
        source = FakeEventSource([make_event(0)], latest=120)
        cycle = make_cycle(ledger, roots, builder, holder, source)
        cycle.run_once()
        root = holder.current().root

        source.add(make_event(0, commitment=make_commitment(77), block_number=130))
        with pytest.raises(ConflictError):
            cycle.run_once()
        assert holder.current().root == root
        assert ledger.count() == 1

    def test_commitment_replayed_at_new_index_leaves_gap(self, ledger, roots, builder, holder):
        events = [make_event(0), make_event(1, commitment=make_commitment(0)), make_event(2)]
        cycle = make_cycle(ledger, roots, builder, holder, FakeEventSource(events, latest=200))

        with pytest.raises(InconsistentLeafError):
            cycle.run_once()

        assert ledger.count() == 2
        assert ledger.get(1) is None
        assert roots.count() == 0

    def test_transient_source_failure_propagates(self, ledger, roots, builder, holder):
        source = FakeEventSource([make_event(0)], latest=120)
        source.fail_next()
        cycle = make_cycle(ledger, roots, builder, holder, source)
        with pytest.raises(TransientError):
            cycle.run_once()
        assert cycle.next_block == 0
        assert cycle.run_once().leaves == 1


class TestRecovery:

    def test_attaches_leaves_left_by_interrupted_pass(self, hasher, ledger, roots, builder, holder):
        # Stored durably, but the process stopped before the rebuild.
        ledger.insert(0, make_commitment(0), block=3)
        ledger.insert(1, make_commitment(1), block=3)

        cycle = make_cycle(ledger, roots, builder, holder, FakeEventSource(latest=5))
        result = cycle.run_once()

        assert result.rebuilt
        assert holder.current().leaf_count == 2
        assert holder.current().root == expected_root(hasher, builder, 2)


class TestBootstrap:

    def test_gap_raises(self, ledger, builder):
        ledger.insert(0, make_commitment(0), block=3)
        ledger.insert(2, make_commitment(2), block=4)
        with pytest.raises(InconsistentLeafError):
            bootstrap_snapshot(ledger, builder)

    def test_prefix_only_stops_at_gap(self, hasher, ledger, builder):
        for i in (0, 1, 3):
            ledger.insert(i, make_commitment(i), block=3 + i)
        snapshot = bootstrap_snapshot(ledger, builder, prefix_only=True)
        assert snapshot.leaf_count == 2
        assert snapshot.root == expected_root(hasher, builder, 2)
        assert snapshot.block == 4

    def test_contiguous_prefix(self, ledger):
        for i in (0, 2):
            ledger.insert(i, make_commitment(i), block=1)
        assert [r.leaf_index for r in contiguous_prefix(ledger.list_ordered())] == [0]
        assert contiguous_prefix([]) == []

class TestPublishing:

    def test_auto_submit(self, ledger, roots, builder, holder):
        submitter = FakeSubmitter()
        publisher = RootPublisher(roots, submitter)
        source = FakeEventSource([make_event(0)], latest=100)
        result = make_cycle(ledger, roots, builder, holder, source, publisher).run_once()

        assert [o.status for o in result.published] == [PublishStatus.SUBMITTED]
        assert submitter.submitted == [result.root]
        assert roots.get(result.root).submitted

    def test_auto_submit_disabled(self, ledger, roots, builder, holder):
        submitter = FakeSubmitter()
        publisher = RootPublisher(roots, submitter)
        source = FakeEventSource([make_event(0)], latest=100)
        result = make_cycle(
            ledger, roots, builder, holder, source, publisher, auto_submit=False
        ).run_once()

        assert result.published == []
        assert submitter.submitted == []
        assert roots.count(submitted=False) == 1

    def test_publish_failure_keeps_root_pending(self, hasher, ledger, roots, builder, holder):
        submitter = FakeSubmitter()
        publisher = RootPublisher(roots, submitter)
        source = FakeEventSource([make_event(0)], latest=100)
        cycle = make_cycle(ledger, roots, builder, holder, source, publisher)
        assert cycle.run_once().published[0].success

        source.add(make_event(1, block_number=150))
        submitter.fail_roots = {expected_root(hasher, builder, 2)}
        result = cycle.run_once()

        assert result.published[0].status == PublishStatus.FAILED
        assert result.leaves == 2
        assert [r.root for r in roots.list_unsubmitted()] == [result.root]
