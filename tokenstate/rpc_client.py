"""Client for the token JSON-RPC service."""

from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests

from .errors import AssetNotFoundError, TxNotFoundError
from .ids import encode_id
from .rpc_server import JSONRPC_ENDPOINT
from .storage import TransactionRecord

logger = logging.getLogger(__name__)


class RPCError(Exception):
    """The service answered a call with an error."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class AssetInfo:
    """An asset as reported by the service."""

    metadata: bytes
    supply: int
    owner: str
    warp: bool


class JSONRPCClient:
    """Queries a node's token service."""

    poll_interval = 1.0
    timeout: Optional[float] = None
    request_timeout: Optional[float] = 30.0

    def __init__(
        self,
        uri: str,
        chain_id: bytes,
        namespace: str = "tokenvm",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = uri.removesuffix("/") + JSONRPC_ENDPOINT
        self.chain_id = bytes(chain_id)
        self.namespace = namespace
        self._session = session if session is not None else requests.Session()
        self._genesis: Any = None
        self._next_id = 0

    def _call(self, method: str, params: dict) -> dict:
        self._next_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": f"{self.namespace}.{method}",
            "params": params,
            "id": self._next_id,
        }
        response = self._session.post(self.endpoint, json=payload, timeout=self.request_timeout)
        if response.status_code != 200:
            raise RPCError(f"received status code: {response.status_code}")
        body = response.json()
        error = body.get("error")
        if error:
            raise RPCError(str(error.get("message", "")), code=error.get("code"))
        return body.get("result") or {}

    def genesis(self) -> Any:
        """The chain's genesis; fetched once and then cached."""
        if self._genesis is None:
            self._genesis = self._call("genesis", {}).get("genesis")
        return self._genesis

    def tx(self, tx_id: bytes) -> Optional[TransactionRecord]:
        """Outcome of a transaction, or ``None`` if the node does not know it."""
        try:
            result = self._call("tx", {"txId": encode_id(tx_id)})
        except RPCError as exc:
            if TxNotFoundError.message in str(exc):
                return None
            raise
        return TransactionRecord(
            timestamp=result.get("timestamp", 0),
            success=bool(result.get("success", False)),
            units=result.get("units", 0),
        )

    def asset(self, asset: bytes) -> Optional[AssetInfo]:
        """Description of an asset, or ``None`` if it does not exist."""
        try:
            result = self._call("asset", {"asset": encode_id(asset)})
        except RPCError as exc:
            if AssetNotFoundError.message in str(exc):
                return None
            raise
        return AssetInfo(
            metadata=base64.b64decode(result.get("metadata") or ""),
            supply=result.get("supply", 0),
            owner=result.get("owner", ""),
            warp=bool(result.get("warp", False)),
        )

    def balance(self, addr: str, asset: bytes) -> int:
        return self._call("balance", {"address": addr, "asset": encode_id(asset)}).get("amount", 0)

    def orders(self, pair: str) -> list:
        return list(self._call("orders", {"pair": pair}).get("orders") or [])

    def loan(self, asset: bytes, destination: bytes) -> int:
        params = {"asset": encode_id(asset), "destination": encode_id(destination)}
        return self._call("loan", params).get("amount", 0)

    def _wait(self, check: Callable[[], bool]) -> None:
        deadline = None if self.timeout is None else time.monotonic() + self.timeout
        while not check():
            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError("condition not met before the timeout")
            time.sleep(self.poll_interval)

    def wait_for_balance(self, addr: str, asset: bytes, minimum: int) -> None:
        """Block until the balance of ``addr`` reaches ``minimum``."""

        def reached() -> bool:
            if self.balance(addr, asset) >= minimum:
                return True
            logger.info("waiting for %d balance: %s", minimum, addr)
            return False

        self._wait(reached)

    def wait_for_transaction(self, tx_id: bytes) -> bool:
        """Block until the transaction is known and return whether it succeeded."""
        outcome: list[TransactionRecord] = []

        def found() -> bool:
            record = self.tx(tx_id)
            if record is None:
                return False
            outcome.append(record)
            return True

        self._wait(found)
        return outcome[0].success