"""
Chain client capability and its JSON-RPC implementation.

The verifier and the gas cost collector only depend on the three operations of
``ChainClient``; tests substitute in-memory implementations.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import httpx
from eth_utils import decode_hex, encode_hex

from ..constants import STORAGE_SLOT_SIZE
from ..crypto.address import AddressLike, normalize_address
from ..exceptions import MalformedResponseError, NodeUnreachableError, RPCResponseError
from .types import LogEntry, TransactionReceipt

logger = logging.getLogger(__name__)


class ChainClient(ABC):
    """Capabilities consumed from a node: read storage, send a transaction, get logs."""

    @abstractmethod
    async def get_storage_at(self, address: AddressLike, slot: bytes, block: str = "latest") -> bytes:
        """Return the 32-byte value stored at ``slot`` of ``address``."""

    @abstractmethod
    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        """Submit a signed transaction, returning its hash."""

    @abstractmethod
    async def get_transaction_logs(self, tx_hash: str) -> List[LogEntry]:
        """Return the logs emitted by a confirmed transaction."""


class JsonRpcClient(ChainClient):
    """
    ``ChainClient`` over Ethereum JSON-RPC 2.0.

    No retries are attempted: transport failures raise ``NodeUnreachableError``,
    error objects raise ``RPCResponseError`` and undecodable payloads raise
    ``MalformedResponseError``.
    """

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self.url = url.rstrip('/')
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._rpc_id_counter = 0

    async def __aenter__(self) -> "JsonRpcClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    # -----------------------------------------------------------------
    #  Low-level JSON-RPC transport
    # -----------------------------------------------------------------

    def _next_id(self) -> int:
        self._rpc_id_counter += 1
        return self._rpc_id_counter

    async def _rpc_call(self, method: str, params: Optional[list] = None) -> Any:
        """Send a JSON-RPC request and return its ``result`` field."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": self._next_id(),
        }

        start_time = time.time()
        try:
            response = await self.client.post(
                self.url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            elapsed = time.time() - start_time
            logger.debug(f"RPC {method} → {self.url} [{response.status_code}] ({elapsed:.3f}s)")
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"RPC {method} → {self.url} ERROR {e.response.status_code}")
            raise NodeUnreachableError(
                f"{method}: node returned HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            elapsed = time.time() - start_time
            logger.warning(f"RPC {method} → {self.url} NETWORK_ERROR ({elapsed:.3f}s)")
            raise NodeUnreachableError(f"{method}: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            raise MalformedResponseError(f"{method}: response is not JSON") from e
        if not isinstance(body, dict):
            raise MalformedResponseError(f"{method}: unexpected response {body!r}")

        error = body.get("error")
        if error is not None:
            if isinstance(error, dict):
                raise RPCResponseError(error.get("code", 0), error.get("message", str(error)), method)
            raise RPCResponseError(0, str(error), method)
        if "result" not in body:
            raise MalformedResponseError(f"{method}: response has neither result nor error")
        return body["result"]

    # -----------------------------------------------------------------
    #  Capabilities
    # -----------------------------------------------------------------

    async def get_storage_at(self, address: AddressLike, slot: bytes, block: str = "latest") -> bytes:
        result = await self._rpc_call(
            "eth_getStorageAt",
            [normalize_address(address), encode_hex(slot), block],
        )
        value = _decode_data(result, "eth_getStorageAt")
        if len(value) > STORAGE_SLOT_SIZE:
            raise MalformedResponseError(
                f"eth_getStorageAt: expected {STORAGE_SLOT_SIZE} bytes, got {len(value)}"
            )
        # Some nodes strip leading zeros
        return value.rjust(STORAGE_SLOT_SIZE, b'\x00')

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        result = await self._rpc_call("eth_sendRawTransaction", [encode_hex(raw_tx)])
        if not isinstance(result, str):
            raise MalformedResponseError(f"eth_sendRawTransaction: unexpected result {result!r}")
        return result

    async def get_transaction_logs(self, tx_hash: str) -> List[LogEntry]:
        receipt = await self.get_transaction_receipt(tx_hash)
        if receipt is None:
            raise RPCResponseError(0, f"transaction {tx_hash} has no receipt", "eth_getTransactionReceipt")
        return receipt.logs

    # -----------------------------------------------------------------
    #  Extras
    # -----------------------------------------------------------------

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        """Fetch a receipt, or None while the transaction is pending."""
        result = await self._rpc_call("eth_getTransactionReceipt", [tx_hash])
        if result is None:
            return None
        return TransactionReceipt.from_dict(result)

    async def get_code(self, address: AddressLike, block: str = "latest") -> bytes:
        """Fetch the deployed code of an account."""
        result = await self._rpc_call("eth_getCode", [normalize_address(address), block])
        return _decode_data(result, "eth_getCode")


def _decode_data(result: Any, method: str) -> bytes:
    if not isinstance(result, str):
        raise MalformedResponseError(f"{method}: expected hex string, got {result!r}")
    try:
        return decode_hex(result)
    except ValueError as e:
        raise MalformedResponseError(f"{method}: invalid hex {result!r}") from e
