"""
API Smoke Tests

Tests for the FastAPI endpoints:
1. GET /root is null on an empty tree, the current root otherwise
2. GET /path/{i} and /path/commitment/{c} return verifiable paths
3. Bad input maps to 400, unknown leaves to 404, transient failures to 503
4. GET /health and /pending-roots report ingestion state
5. Submission endpoints with and without an indexer account
"""

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from core.merkle.merkle_proofs import MerkleProof, verify_merkle_proof
from core.schemas.errors import TransientError
from indexer.service import Indexer

from fixtures.chain_fixtures import FakeEventSource
from fixtures.common import make_commitment, make_events


@pytest.fixture
def indexer(indexer_config, submitter):
    indexer_config.ingest.auto_submit = False
    source = FakeEventSource(make_events(3), latest=110)
    service = Indexer(indexer_config, source=source, submitter=submitter)
    yield service
    service.close()


@pytest.fixture
def synced(indexer):
    indexer.cycle.run_once()
    return indexer


@pytest.fixture
def client(indexer):
    return TestClient(create_app(indexer=indexer))


def assert_error(response, status, code):
    assert response.status_code == status
    body = response.json()
    assert body["ok"] is False
    assert body["error"]["code"] == code


# =============================================================================
# Root & paths
# =============================================================================

class TestRoot:

    def test_empty_tree(self, client):
        response = client.get("/root")
        assert response.status_code == 200
        assert response.json() == {"root": None}

    def test_after_sync(self, client, synced):
        response = client.get("/root")
        assert response.json() == {"root": str(synced.proofs.current_root())}


class TestPathByIndex:

    def test_valid_path(self, client, synced, hasher):
        response = client.get("/path/1")
        assert response.status_code == 200
        data = response.json()
        assert data["leaf_index"] == 1
        assert data["commitment"] == str(make_commitment(1))
        assert len(data["siblings"]) == synced.config.tree.height
        assert data["root"] == str(synced.proofs.current_root())
        assert verify_merkle_proof(hasher, MerkleProof.from_dict(data))

    def test_out_of_range(self, client, synced):
        assert_error(client.get("/path/3"), 404, "NOT_FOUND")

    def test_negative(self, client, synced):
        assert_error(client.get("/path/-1"), 404, "NOT_FOUND")

    def test_empty_tree(self, client):
        response = client.get("/path/0")
        assert_error(response, 404, "NOT_FOUND")
        assert response.json()["error"]["message"] == "no leaves in tree"

    def test_not_an_integer(self, client):
        assert_error(client.get("/path/abc"), 400, "INVALID_REQUEST")


class TestPathByCommitment:

    def test_decimal(self, client, synced):
        response = client.get(f"/path/commitment/{make_commitment(2)}")
        assert response.status_code == 200
        assert response.json()["leaf_index"] == 2

    def test_hex(self, client, synced):
        response = client.get(f"/path/commitment/{hex(make_commitment(0))}")
        assert response.status_code == 200
        assert response.json()["leaf_index"] == 0

    def test_unknown(self, client, synced):
        response = client.get(f"/path/commitment/{make_commitment(42)}")
        assert_error(response, 404, "NOT_FOUND")
        assert response.json()["error"]["message"] == "commitment not found"

    def test_not_a_field_element(self, client):
        assert_error(client.get("/path/commitment/xyz"), 400, "INVALID_FIELD_ELEMENT")


# =============================================================================
# Health & pending roots
# =============================================================================

class TestHealth:

    def test_empty(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["leaves"] == 0
        assert data["latestRoot"] is None
        assert data["pendingRoots"] == 0

    def test_after_sync(self, client, synced):
        data = client.get("/health").json()
        assert data["leaves"] == 3
        assert data["generation"] == 1
        assert data["latestRoot"] == str(synced.proofs.current_root())
        assert data["pendingRoots"] == 1

    def test_halted_loop_reported(self, client, indexer):
        indexer.loop.halt("INCONSISTENT_LEAF: gap")
        data = client.get("/health").json()
        assert data["status"] == "halted"
        assert data["haltReason"] == "INCONSISTENT_LEAF: gap"


class TestPendingRoots:

    def test_lists_unsubmitted(self, client, synced):
        response = client.get("/pending-roots")
        assert response.status_code == 200
        assert response.json() == {
            "pending": [{"root": str(synced.proofs.current_root()), "block": 110}]
        }


# =============================================================================
# Submission
# =============================================================================

class TestSubmit:

    def test_submit_latest(self, client, synced, submitter):
        response = client.post("/submit-root")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "submitted"
        assert data["root"] == str(synced.proofs.current_root())
        assert data["transaction_hash"] == "0x0001"
        assert client.get("/pending-roots").json() == {"pending": []}

    def test_submit_explicit_root(self, client, synced, submitter):
        root = str(synced.proofs.current_root())
        response = client.post("/submit-root", json={"root": root})
        assert response.status_code == 200
        assert submitter.submitted == [int(root)]

    def test_submit_twice(self, client, synced, submitter):
        root = str(synced.proofs.current_root())
        client.post("/submit-root", json={"root": root})
        response = client.post("/submit-root", json={"root": root})
        assert response.json()["status"] == "already_submitted"
        assert len(submitter.submitted) == 1

    def test_nothing_pending(self, client):
        assert_error(client.post("/submit-root"), 404, "NOT_FOUND")

    def test_unknown_root(self, client, synced):
        assert_error(client.post("/submit-root", json={"root": "12345"}), 404, "NOT_FOUND")

    def test_invalid_root(self, client):
        assert_error(client.post("/submit-root", json={"root": "zz"}), 400, "INVALID_FIELD_ELEMENT")

    def test_failed_submission(self, client, synced, submitter):
        submitter.fail_roots = {synced.proofs.current_root()}
        assert_error(client.post("/submit-root"), 502, "PUBLISH_FAILED")

    def test_submit_all(self, client, synced, submitter):
        response = client.post("/submit-all-roots")
        assert response.status_code == 200
        data = response.json()
        assert data["submitted"] == 1
        assert data["results"][0]["success"] is True

    def test_submit_all_nothing_pending(self, client):
        response = client.post("/submit-all-roots")
        assert response.json() == {"submitted": 0, "message": "No pending roots", "results": []}


class TestManualMode:

    @pytest.fixture
    def client(self, indexer_config):
        indexer_config.chain.contract = "0xc0ffee"
        service = Indexer(indexer_config, source=FakeEventSource(make_events(1), latest=100))
        service.cycle.run_once()
        yield TestClient(create_app(indexer=service))
        service.close()

    def test_submit_returns_calldata(self, client):
        response = client.post("/submit-root")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["status"] == "manual"
        assert set(data["calldata"]) == {"low", "high"}
        assert data["command"].startswith("starkli invoke 0xc0ffee submit_merkle_root")
        assert client.get("/health").json()["pendingRoots"] == 1

    def test_submit_all_requires_account(self, client):
        assert_error(client.post("/submit-all-roots"), 400, "NO_ACCOUNT")


class TestTransientErrors:

    def test_mapped_to_503(self, client, indexer, monkeypatch):
        def unavailable(*args, **kwargs):
            raise TransientError("database is locked")

        monkeypatch.setattr(indexer.proofs, "path_for_index", unavailable)
        response = client.get("/path/0")
        assert_error(response, 503, "UNAVAILABLE")
        assert "locked" not in response.text
