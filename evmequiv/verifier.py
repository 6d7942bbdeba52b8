"""
Deployment Verification

Confirms that an account's code record in the account code storage system
contract matches an expected bytecode blob, or the zero sentinel when no code
must have been deployed.

Usage:
    >>> async with JsonRpcClient(url) as client:
    ...     result = await verify_deployed(client, address, runtime_bytecode)
    ...     assert result, result.describe()

Failures of the storage read itself are never caught here: they propagate as
raised by the reader, so callers can tell an unreachable node apart from a
mismatch (which is a normal, returned result).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, runtime_checkable

from eth_utils import decode_hex

from .constants import (
    ACCOUNT_CODE_STORAGE_ADDRESS,
    BLOB_HASH_SIZE,
    CONTRACT_DEPLOYED_TOPIC,
    CONTRACT_DEPLOYER_ADDRESS,
    LENGTH_POLICIES,
    ZERO_HASH,
)
from .crypto.address import AddressLike, address_from_word, code_storage_slot_for, normalize_address
from .crypto.hashing import BytesLike, blob_hash
from .exceptions import ConfigurationError, MalformedResponseError
from .rpc.types import LogEntry

logger = logging.getLogger(__name__)


@runtime_checkable
class StorageReader(Protocol):
    """Anything able to read a raw storage slot."""

    async def get_storage_at(self, address: AddressLike, slot: bytes, block: str = "latest") -> bytes:
        ...


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of comparing a stored code hash against the expected one."""
    address: str
    expected: bytes
    actual: bytes

    @property
    def matched(self) -> bool:
        return self.expected == self.actual

    def __bool__(self) -> bool:
        return self.matched

    def describe(self) -> str:
        status = "MATCH" if self.matched else "MISMATCH"
        return (
            f"{status} code hash for {self.address}: "
            f"expected 0x{self.expected.hex()}, actual 0x{self.actual.hex()}"
        )


@dataclass(frozen=True)
class DeploymentEvent:
    """Decoded ContractDeployed log."""
    deployer: str
    bytecode_hash: bytes
    contract_address: str


async def read_stored_code_hash(
    reader: StorageReader,
    address: AddressLike,
    storage_address: AddressLike = ACCOUNT_CODE_STORAGE_ADDRESS,
) -> bytes:
    """Fetch the code hash recorded for ``address``."""
    value = await reader.get_storage_at(storage_address, code_storage_slot_for(address))
    value = bytes(value)
    if len(value) != BLOB_HASH_SIZE:
        raise MalformedResponseError(
            f"Stored code hash must be {BLOB_HASH_SIZE} bytes, got {len(value)}"
        )
    return value


async def verify_deployed(
    reader: StorageReader,
    address: AddressLike,
    expected_blob: BytesLike,
    *,
    storage_address: AddressLike = ACCOUNT_CODE_STORAGE_ADDRESS,
    allow_overflow: bool = False,
) -> VerificationResult:
    """
    Check that ``address`` holds code whose blob hash matches ``expected_blob``.

    The expected hash is computed before the read, so an oversized blob fails
    with ``LengthOverflowError`` without touching the node.
    """
    expected = blob_hash(expected_blob, allow_overflow=allow_overflow)
    actual = await read_stored_code_hash(reader, address, storage_address)
    return VerificationResult(normalize_address(address), expected, actual)


async def verify_not_deployed(
    reader: StorageReader,
    address: AddressLike,
    *,
    storage_address: AddressLike = ACCOUNT_CODE_STORAGE_ADDRESS,
) -> VerificationResult:
    """Check that no code has ever been stored for ``address``."""
    actual = await read_stored_code_hash(reader, address, storage_address)
    return VerificationResult(normalize_address(address), ZERO_HASH, actual)


def _topic_word(topic: str) -> bytes:
    try:
        return decode_hex(topic)
    except (TypeError, ValueError) as e:
        raise MalformedResponseError(f"Log topic is not hex data: {topic!r}") from e


def find_deployment_event(
    logs: Iterable[LogEntry],
    address: AddressLike,
    emitter: AddressLike = CONTRACT_DEPLOYER_ADDRESS,
) -> Optional[DeploymentEvent]:
    """
    Find the ContractDeployed log emitted for ``address``.

    Only logs emitted by ``emitter`` (the contract deployer system contract)
    count; any contract can emit a log with the same signature.
    Topics are [signature, deployer, bytecodeHash, contractAddress], all indexed.
    """
    target = normalize_address(address)
    source = normalize_address(emitter)
    for log in logs:
        if (log.topic0 or "").lower() != CONTRACT_DEPLOYED_TOPIC or len(log.topics) != 4:
            continue
        if normalize_address(log.address) != source:
            continue
        words = [_topic_word(t) for t in log.topics[1:]]
        if any(len(word) != BLOB_HASH_SIZE for word in words):
            raise MalformedResponseError(
                f"ContractDeployed topics must be {BLOB_HASH_SIZE} bytes"
            )
        contract_address = address_from_word(words[2])
        if contract_address != target:
            continue
        return DeploymentEvent(
            deployer=address_from_word(words[0]),
            bytecode_hash=words[1],
            contract_address=contract_address,
        )
    return None


class DeploymentVerifier:
    """
    Verifier bound to a storage reader and a length policy.

    Args:
        reader: Storage read capability (e.g. ``JsonRpcClient``)
        storage_address: Account code storage system contract
        length_policy: "strict" raises on blobs longer than 65535 bytes,
            "wrap" encodes the length modulo 65536
        deployer_address: Emitter of trusted ContractDeployed logs
    """

    def __init__(
        self,
        reader: StorageReader,
        storage_address: AddressLike = ACCOUNT_CODE_STORAGE_ADDRESS,
        length_policy: str = "strict",
        deployer_address: AddressLike = CONTRACT_DEPLOYER_ADDRESS,
    ):
        if length_policy not in LENGTH_POLICIES:
            raise ConfigurationError(f"Unknown length policy {length_policy!r}")
        self.reader = reader
        self.storage_address = normalize_address(storage_address)
        self.length_policy = length_policy
        self.deployer_address = normalize_address(deployer_address)

    @property
    def allow_overflow(self) -> bool:
        return self.length_policy == "wrap"

    async def verify_deployed(self, address: AddressLike, expected_blob: BytesLike) -> VerificationResult:
        result = await verify_deployed(
            self.reader,
            address,
            expected_blob,
            storage_address=self.storage_address,
            allow_overflow=self.allow_overflow,
        )
        self._log(result)
        return result

    async def verify_not_deployed(self, address: AddressLike) -> VerificationResult:
        result = await verify_not_deployed(self.reader, address, storage_address=self.storage_address)
        self._log(result)
        return result

    async def verify_created(
        self,
        address: AddressLike,
        expected_blob: BytesLike,
        logs: Iterable[LogEntry] = (),
    ) -> VerificationResult:
        """
        Storage check plus, when the receipt carries a ContractDeployed log for
        ``address``, a check that the logged hash agrees with the expected one.
        A storage mismatch is returned as is so the stored value stays reported.
        """
        result = await self.verify_deployed(address, expected_blob)
        if not result.matched:
            return result
        event = find_deployment_event(logs, address, self.deployer_address)
        if event is not None and event.bytecode_hash != result.expected:
            logger.warning(
                f"MISMATCH deployment event for {result.address}: "
                f"logged 0x{event.bytecode_hash.hex()}"
            )
            return VerificationResult(result.address, result.expected, event.bytecode_hash)
        return result

    @staticmethod
    def _log(result: VerificationResult) -> None:
        if result.matched:
            logger.debug(result.describe())
        else:
            logger.warning(result.describe())


__all__ = [
    "StorageReader",
    "VerificationResult",
    "DeploymentEvent",
    "DeploymentVerifier",
    "read_stored_code_hash",
    "verify_deployed",
    "verify_not_deployed",
    "find_deployment_event",
]
