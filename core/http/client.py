"""
HTTP Transport

JSON-over-HTTP POST transport for the chain RPC layer, built on a pooled
requests session. Only the transport lives here; JSON-RPC framing, error
classification and retries belong to core.chain.rpc.
"""

from __future__ import annotations

import json as jsonlib
from dataclasses import dataclass
from typing import Any, Optional

import requests


USER_AGENT = "commitment-indexer/0.1"

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "User-Agent": USER_AGENT,
}


@dataclass
class HttpResponse:
    """Status and raw body of one POST."""
    status_code: int
    content: bytes
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """
        Raises:
            ValueError: If the body is not JSON
        """
        return jsonlib.loads(self.content)

    def raise_for_status(self) -> None:
        if not self.ok:
            snippet = self.content[:200].decode("utf-8", errors="replace")
            raise HttpError(f"HTTP {self.status_code}: {snippet}", status_code=self.status_code)


class HttpError(Exception):
    """Transport failure. status_code is None when no response arrived."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HttpClient:
    """
    Posts JSON bodies to a node endpoint.

    Usage:
        with HttpClient(timeout=10) as http:
            response = http.post(url, json={"jsonrpc": "2.0", ...})
            response.raise_for_status()
    """

    def __init__(self, *, timeout: float = 30.0, headers: Optional[dict[str, str]] = None) -> None:
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(JSON_HEADERS)
        if headers:
            self._session.headers.update(headers)

    def post(
        self,
        url: str,
        *,
        json: Any,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """
        Raises:
            HttpError: On connection errors and timeouts (status_code=None)
        """
        try:
            response = self._session.post(
                url,
                json=json,
                headers=headers,
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as e:
            raise HttpError(f"{type(e).__name__}: {e}") from e

        return HttpResponse(
            status_code=response.status_code,
            content=response.content,
            elapsed_ms=response.elapsed.total_seconds() * 1000,
        )

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()
