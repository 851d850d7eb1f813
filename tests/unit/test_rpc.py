"""
Starknet RPC Client Unit Tests
Tests for core/chain/rpc.py
"""
import json

import pytest

from core.chain.rpc import StarknetRpcClient
from core.http.client import HttpError, HttpResponse
from core.schemas.errors import TransientError


class FakeHttp:
    """Returns queued responses (or raises queued errors) for each POST."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.payloads = []
        self.closed = False

    def post(self, url, *, json=None, headers=None, timeout=None):
        self.payloads.append(json)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def close(self):
        self.closed = True


def ok(result, status=200):
    body = {"jsonrpc": "2.0", "id": 1, "result": result}
    return HttpResponse(status_code=status, content=json.dumps(body).encode())


def rpc_error(message):
    body = {"jsonrpc": "2.0", "id": 1, "error": {"code": 24, "message": message}}
    return HttpResponse(status_code=200, content=json.dumps(body).encode())


def client(*replies, attempts=3):
    return StarknetRpcClient("http://rpc", http=FakeHttp(*replies), max_attempts=attempts, retry_delay=0)


class TestCall:

    def test_block_number(self):
        rpc = client(ok(1234))
        assert rpc.block_number() == 1234
        payload = rpc.http.payloads[0]
        assert payload["jsonrpc"] == "2.0"
        assert payload["method"] == "starknet_blockNumber"

    def test_request_ids_increase(self):
        rpc = client(ok(1), ok(2))
        rpc.block_number()
        rpc.block_number()
        assert [p["id"] for p in rpc.http.payloads] == [1, 2]

    def test_retries_transient_failures(self):
        rpc = client(HttpError("timeout"), HttpResponse(503, b"busy"), ok(7))
        assert rpc.block_number() == 7
        assert len(rpc.http.payloads) == 3

    def test_gives_up_after_max_attempts(self):
        rpc = client(HttpError("timeout"), HttpError("timeout"), attempts=2)
        with pytest.raises(TransientError):
            rpc.block_number()

    def test_rpc_error_body(self):
        rpc = client(rpc_error("Block not found"), attempts=1)
        with pytest.raises(TransientError, match="Block not found"):
            rpc.block_number()

    def test_invalid_json(self):
        rpc = client(HttpResponse(200, b"<html>"), attempts=1)
        with pytest.raises(TransientError):
            rpc.block_number()

    def test_missing_result(self):
        rpc = client(HttpResponse(200, b'{"jsonrpc": "2.0", "id": 1}'), attempts=1)
        with pytest.raises(TransientError):
            rpc.block_number()


class TestGetEvents:

    def test_filter_shape(self):
        rpc = client(ok({"events": [], "continuation_token": None}))
        page = rpc.get_events("0xabc", [["0x1"]], from_block=3, to_block=9, chunk_size=10)
        assert page == {"events": [], "continuation_token": None}

        event_filter = rpc.http.payloads[0]["params"]["filter"]
        assert event_filter == {
            "from_block": {"block_number": 3},
            "to_block": {"block_number": 9},
            "address": "0xabc",
            "keys": [["0x1"]],
            "chunk_size": 10,
        }

    def test_continuation_token_forwarded(self):
        rpc = client(ok({"events": []}))
        rpc.get_events("0xabc", [["0x1"]], from_block=0, to_block=1, continuation_token="abc")
        assert rpc.http.payloads[0]["params"]["filter"]["continuation_token"] == "abc"

    def test_close(self):
        rpc = client()
        rpc.close()
        assert rpc.http.closed
