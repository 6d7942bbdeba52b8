"""
evmequiv Crypto Hashing Module

Provides the hash functions used to identify deployed code:
- sha256: digest underlying the versioned blob hash
- keccak256: Web3 standard for addresses and event topics
- blob_hash: the 32-byte versioned, length-tagged code hash stored on-chain
"""

import hashlib
from dataclasses import dataclass
from typing import Union

from eth_utils import decode_hex, keccak

from ..constants import (
    BLOB_HASH_SIZE,
    BLOB_HASH_VERSION,
    BLOB_HASH_RESERVED,
    MAX_BLOB_LENGTH,
    ZERO_HASH,
)
from ..exceptions import InvalidBlobHashError, LengthOverflowError

BytesLike = Union[bytes, bytearray, memoryview, str]


def to_bytes(data: BytesLike) -> bytes:
    """
    Normalize bytes-like input.

    Strings are treated as hex, with or without a 0x prefix.
    """
    if isinstance(data, str):
        return decode_hex(data)
    return bytes(data)


def keccak256(data: BytesLike) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum standard).

    Args:
        data: Input bytes or hex string

    Returns:
        32-byte hash
    """
    return keccak(to_bytes(data))


def sha256(data: BytesLike) -> bytes:
    """
    Compute SHA-256 hash.

    Args:
        data: Input bytes or hex string

    Returns:
        32-byte hash
    """
    return hashlib.sha256(to_bytes(data)).digest()


def blob_hash(blob: BytesLike, *, allow_overflow: bool = False) -> bytes:
    """
    Compute the canonical hash of a code blob.

    The SHA-256 digest of the blob is overwritten with a header:

        byte 0     version marker (0x02, code blob)
        byte 1     reserved, always zero
        bytes 2-3  blob length in bytes, big-endian

    Args:
        blob: Raw bytecode, as bytes or hex string
        allow_overflow: Encode lengths above 65535 modulo 65536 instead of raising

    Returns:
        32-byte tag

    Raises:
        LengthOverflowError: If the blob does not fit the length field and
            ``allow_overflow`` is not set
    """
    data = to_bytes(blob)
    length = len(data)
    if length > MAX_BLOB_LENGTH and not allow_overflow:
        raise LengthOverflowError(length, MAX_BLOB_LENGTH)

    tag = bytearray(hashlib.sha256(data).digest())
    tag[0] = BLOB_HASH_VERSION
    tag[1] = BLOB_HASH_RESERVED
    tag[2] = (length // 256) % 256
    tag[3] = length % 256
    return bytes(tag)


def blob_hash_hex(blob: BytesLike, *, allow_overflow: bool = False) -> str:
    """
    Compute the canonical blob hash and return it as hex string.

    Returns:
        Hex string with 0x prefix
    """
    return '0x' + blob_hash(blob, allow_overflow=allow_overflow).hex()


@dataclass(frozen=True)
class BlobHashInfo:
    """Decoded header of a blob hash."""
    version: int
    length: int
    digest_tail: bytes


def parse_blob_hash(tag: BytesLike) -> BlobHashInfo:
    """Split a 32-byte tag into its header fields and the truncated digest."""
    value = to_bytes(tag)
    if len(value) != BLOB_HASH_SIZE:
        raise InvalidBlobHashError(
            f"Blob hash must be {BLOB_HASH_SIZE} bytes, got {len(value)}"
        )
    return BlobHashInfo(
        version=value[0],
        length=int.from_bytes(value[2:4], 'big'),
        digest_tail=value[4:],
    )


def is_zero_hash(tag: BytesLike) -> bool:
    """Check whether a tag is the "no code" sentinel."""
    return to_bytes(tag) == ZERO_HASH
