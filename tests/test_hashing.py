"""
Blob Hash Test Suite

Coverage:
  - versioned code blob hash layout (version, reserved, length, digest tail)
  - length limit handling (strict / wrap)
  - header decoding and the zero sentinel
  - sha256 / keccak256 helpers

Run with:
    pytest tests/test_hashing.py -v
"""

import hashlib
import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from evmequiv.constants import ZERO_HASH
from evmequiv.crypto.hashing import (
    blob_hash,
    blob_hash_hex,
    is_zero_hash,
    keccak256,
    parse_blob_hash,
    sha256,
)
from evmequiv.exceptions import InvalidBlobHashError, LengthOverflowError

# Runtime code returning 42
RUNTIME_BYTECODE = bytes.fromhex("602a60005260206000f3")
INIT_BYTECODE = bytes.fromhex("69602a60005260206000f3600052600a6016f3")


class TestBlobHashLayout:
    """Header bytes overwrite the start of the SHA-256 digest."""

    def test_known_vector(self):
        tag = blob_hash(RUNTIME_BYTECODE)
        assert len(tag) == 32
        assert tag[0] == 0x02
        assert tag[1] == 0x00
        assert tag[2] == 0x00
        assert tag[3] == 0x0A
        assert tag[4:] == hashlib.sha256(RUNTIME_BYTECODE).digest()[4:]

    def test_empty_blob(self):
        tag = blob_hash(b"")
        assert tag == b"\x02\x00\x00\x00" + hashlib.sha256(b"").digest()[4:]

    def test_hex_input_matches_bytes(self):
        expected = blob_hash(RUNTIME_BYTECODE)
        assert blob_hash("0x602a60005260206000f3") == expected
        assert blob_hash("602a60005260206000f3") == expected
        assert blob_hash(bytearray(RUNTIME_BYTECODE)) == expected
        assert blob_hash(memoryview(RUNTIME_BYTECODE)) == expected

    def test_hex_output(self):
        tag_hex = blob_hash_hex(RUNTIME_BYTECODE)
        assert tag_hex.startswith("0x0200000a")
        assert len(tag_hex) == 66
        assert bytes.fromhex(tag_hex[2:]) == blob_hash(RUNTIME_BYTECODE)

    def test_length_is_big_endian(self):
        tag = blob_hash(b"\x01" * 0x0102)
        assert tag[2:4] == b"\x01\x02"

    def test_length_256(self):
        tag = blob_hash(bytes(256))
        assert tag[2] == 1
        assert tag[3] == 0

    def test_maximum_length(self):
        tag = blob_hash(bytes(0xFFFF))
        assert tag[2:4] == b"\xff\xff"


class TestLengthOverflow:
    """Blobs longer than 65535 bytes do not fit the length field."""

    def test_strict_raises(self):
        with pytest.raises(LengthOverflowError) as exc_info:
            blob_hash(bytes(0x10000))
        assert exc_info.value.length == 0x10000
        assert exc_info.value.limit == 0xFFFF

    def test_overflow_is_value_error(self):
        with pytest.raises(ValueError):
            blob_hash(bytes(0x10000))

    def test_wrap_encodes_modulo(self):
        tag = blob_hash(bytes(0x10000), allow_overflow=True)
        assert tag[2:4] == b"\x00\x00"
        tag = blob_hash(bytes(0x10001), allow_overflow=True)
        assert tag[2:4] == b"\x00\x01"

    def test_wrap_keeps_digest(self):
        blob = bytes(0x10005)
        tag = blob_hash(blob, allow_overflow=True)
        assert tag[:2] == b"\x02\x00"
        assert tag[4:] == hashlib.sha256(blob).digest()[4:]


class TestSensitivity:
    """Distinct blobs give distinct tags."""

    def test_single_byte_difference(self):
        altered = bytes.fromhex("602b60005260206000f3")
        assert blob_hash(RUNTIME_BYTECODE) != blob_hash(altered)

    def test_length_difference(self):
        assert blob_hash(b"\x00") != blob_hash(b"\x00\x00")

    def test_init_and_runtime_differ(self):
        assert blob_hash(INIT_BYTECODE) != blob_hash(RUNTIME_BYTECODE)

    def test_never_zero(self):
        assert not is_zero_hash(blob_hash(b""))


class TestParseBlobHash:

    def test_parse(self):
        info = parse_blob_hash(blob_hash(RUNTIME_BYTECODE))
        assert info.version == 2
        assert info.length == 10
        assert info.digest_tail == hashlib.sha256(RUNTIME_BYTECODE).digest()[4:]

    def test_parse_hex(self):
        info = parse_blob_hash(blob_hash_hex(bytes(300)))
        assert info.length == 300

    def test_parse_rejects_wrong_size(self):
        with pytest.raises(InvalidBlobHashError, match="32 bytes"):
            parse_blob_hash(b"\x02" * 31)


class TestZeroHash:

    def test_zero_sentinel(self):
        assert is_zero_hash(ZERO_HASH)
        assert is_zero_hash("0x" + "00" * 32)

    def test_non_zero(self):
        assert not is_zero_hash(b"\x00" * 31 + b"\x01")


class TestDigests:

    def test_sha256(self):
        assert sha256(b"abc") == hashlib.sha256(b"abc").digest()
        assert sha256("0x616263") == hashlib.sha256(b"abc").digest()

    def test_keccak256_empty(self):
        assert keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_keccak256_hex_input(self):
        assert keccak256("0x") == keccak256(b"")
