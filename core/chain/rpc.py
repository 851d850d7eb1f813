"""
Starknet JSON-RPC Client

The handful of read methods the indexer needs, over the shared HttpClient.
Every failure to get a usable answer is a TransientError; calls are retried
with a fixed delay before giving up to the ingestion loop.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Optional

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from core.http.client import HttpClient, HttpError
from core.schemas.errors import TransientError


logger = logging.getLogger(__name__)


class StarknetRpcClient:
    """
    Minimal Starknet JSON-RPC 2.0 client.

    Usage:
        rpc = StarknetRpcClient("https://starknet-sepolia.example/rpc/v0_7")
        latest = rpc.block_number()
        page = rpc.get_events(address, keys, from_block=0, to_block=latest)
    """

    def __init__(
        self,
        url: str,
        *,
        http: Optional[HttpClient] = None,
        max_attempts: int = 3,
        retry_delay: float = 2.0,
    ) -> None:
        self.url = url
        self.http = http or HttpClient(timeout=30.0)
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self._ids = itertools.count(1)

    def call(self, method: str, params: Any) -> Any:
        """Call a JSON-RPC method, retrying transient failures."""
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type(TransientError),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        f"Retrying {method} (attempt {attempt.retry_state.attempt_number}"
                        f"/{self.max_attempts})"
                    )
                return self._call_once(method, params)

    def _call_once(self, method: str, params: Any) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            response = self.http.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except HttpError as e:
            raise TransientError(
                f"RPC {method} failed: {e}",
                details={"method": method, "status_code": e.status_code},
            ) from e
        except ValueError as e:
            raise TransientError(f"RPC {method} returned invalid JSON") from e

        if body.get("error"):
            error = body["error"]
            raise TransientError(
                f"RPC {method} error: {error.get('message', error)}",
                details={"method": method, "rpc_error": error},
            )
        if "result" not in body:
            raise TransientError(f"RPC {method} response has no result")
        return body["result"]

    def block_number(self) -> int:
        return int(self.call("starknet_blockNumber", []))

    def get_events(
        self,
        address: str,
        keys: list[list[str]],
        *,
        from_block: int,
        to_block: int,
        chunk_size: int = 50,
        continuation_token: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Fetch one page of events.

        Returns:
            {"events": [...], "continuation_token": str | None}
        """
        event_filter: dict[str, Any] = {
            "from_block": {"block_number": from_block},
            "to_block": {"block_number": to_block},
            "address": address,
            "keys": keys,
            "chunk_size": chunk_size,
        }
        if continuation_token:
            event_filter["continuation_token"] = continuation_token
        return self.call("starknet_getEvents", {"filter": event_filter})

    def close(self) -> None:
        self.http.close()
