"""
HTTP transport to the Nocostcoin node.

Two calls are needed by the wallet:

GET  /account/<address>     ->  {"balance": u64, "nonce": u64}
POST /transaction/send      <-  Transaction.to_submission()

Nothing is retried.  A failed submission is raised to the caller as a
``NodeError`` so a stale nonce is never silently re-sent.

Usage:
    async with NodeClient("http://localhost:8000") as client:
        info = await client.get_account(address)
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

import aiohttp

from nocostcoin_wallet.codec import Transaction
from nocostcoin_wallet.errors import WalletError

logger = logging.getLogger("nocostcoin_node")

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10.0


class NodeError(WalletError):
    """The node (or the network in between) rejected a request."""

    def __init__(self, message: str, status: int | None = None, details: str = ""):
        self.status = status
        self.details = details
        super().__init__(message)


@dataclass
class AccountInfo:
    balance: int
    nonce: int

    @classmethod
    def from_dict(cls, data: dict) -> AccountInfo:
        return cls(balance=_whole(data, "balance"), nonce=_whole(data, "nonce"))


def _whole(data: dict, key: str) -> int:
    # Nonces are signed as-is, so 1.5 or "2" must not be coerced.
    value = data.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"Account {key} must be a non-negative integer")
    return value


class NodeClient:
    """Thin aiohttp wrapper around the node's account and submit endpoints."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT,
                 session: aiohttp.ClientSession | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> NodeClient:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def _client(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def _request(self, method: str, path: str, payload: Any = None) -> tuple[int, str]:
        url = f"{self.base_url}{path}"
        try:
            async with self._client().request(
                method, url, json=payload, headers={"Cache-Control": "no-cache"},
            ) as resp:
                return resp.status, await resp.text()
        except aiohttp.ClientError as exc:
            logger.warning(f"{method} {path} failed: {exc}")
            raise NodeError(f"Failed to connect to node: {exc}") from exc
        except asyncio.TimeoutError as exc:
            logger.warning(f"{method} {path} timed out")
            raise NodeError("Node request timed out") from exc

    async def get_account(self, address: str) -> AccountInfo:
        """Current balance and next expected nonce of *address*."""
        status, body = await self._request("GET", f"/account/{address}")
        if status == 404:
            raise NodeError("Account not found", status=404, details=body)
        if status >= 400:
            raise NodeError(f"Node responded with {status}", status=status, details=body)
        try:
            return AccountInfo.from_dict(json.loads(body))
        except (ValueError, TypeError, AttributeError) as exc:
            raise NodeError("Malformed account response", status=status, details=body) from exc

    async def submit_transaction(self, tx: Transaction) -> dict:
        """Post a signed transaction.  Non-JSON replies come back as ``{"result": text}``."""
        status, body = await self._request("POST", "/transaction/send", tx.to_submission())
        logger.info("Transaction submitted", extra={"nonce": tx.nonce, "status": status})
        if status >= 400:
            raise NodeError(f"Backend error: {status}", status=status, details=body)
        try:
            data = json.loads(body)
        except ValueError:
            return {"result": body}
        return data if isinstance(data, dict) else {"result": data}
