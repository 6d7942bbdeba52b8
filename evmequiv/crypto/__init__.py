"""
evmequiv Crypto Module

Hashing and address primitives:
- Hash functions (sha256, keccak256) and the versioned code blob hash
- Address normalization and code storage keys
- CREATE / CREATE2 address derivation
"""

from .hashing import (
    BlobHashInfo,
    blob_hash,
    blob_hash_hex,
    is_zero_hash,
    keccak256,
    parse_blob_hash,
    sha256,
)
from .address import (
    address_from_word,
    code_storage_slot_for,
    normalize_address,
    to_address_bytes,
)
from .contract import generate_contract_address, generate_contract_address_create2

__all__ = [
    # Hashing
    "sha256",
    "keccak256",
    "blob_hash",
    "blob_hash_hex",
    "parse_blob_hash",
    "is_zero_hash",
    "BlobHashInfo",
    # Address
    "to_address_bytes",
    "normalize_address",
    "code_storage_slot_for",
    "address_from_word",
    # Contract addresses
    "generate_contract_address",
    "generate_contract_address_create2",
]
