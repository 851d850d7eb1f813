"""
Root Store Unit Tests
Tests for core/storage/roots.py
"""
import pytest

from core.schemas.errors import NotFoundError


class TestRecord:

    def test_record_is_idempotent(self, roots):
        assert roots.record_if_new(111, block=5).recorded
        assert not roots.record_if_new(111, block=9).recorded
        assert roots.count() == 1
        assert roots.get(111).observed_at_block == 5

    def test_fresh_roots_are_unsubmitted(self, roots):
        roots.record_if_new(111, block=5)
        record = roots.get(111)
        assert not record.submitted
        assert record.tx_hash is None


class TestUnsubmitted:

    def test_oldest_first(self, roots):
        for root in (30, 10, 20):
            roots.record_if_new(root, block=root)
        assert [r.root for r in roots.list_unsubmitted()] == [30, 10, 20]
        assert roots.latest_unsubmitted().root == 20
        assert roots.latest().root == 20

    def test_mark_submitted(self, roots):
        roots.record_if_new(10, block=1)
        roots.record_if_new(20, block=2)
        assert roots.mark_submitted(10, tx_hash="0xaa")
        assert [r.root for r in roots.list_unsubmitted()] == [20]
        assert roots.get(10).tx_hash == "0xaa"
        assert roots.count(submitted=True) == 1
        assert roots.count(submitted=False) == 1

    def test_mark_twice(self, roots):
        roots.record_if_new(10, block=1)
        assert roots.mark_submitted(10)
        assert not roots.mark_submitted(10, tx_hash="0xbb")
        assert roots.get(10).tx_hash is None

    def test_mark_unknown(self, roots):
        with pytest.raises(NotFoundError):
            roots.mark_submitted(999)

    def test_empty_store(self, roots):
        assert roots.latest() is None
        assert roots.latest_unsubmitted() is None
        assert roots.list_unsubmitted() == []

    def test_record_to_dict(self, roots):
        roots.record_if_new(10, block=3)
        assert roots.get(10).to_dict() == {
            "root": "10", "block": 3, "submitted": False, "tx_hash": None,
        }
