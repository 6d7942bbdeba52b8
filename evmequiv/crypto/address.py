"""
evmequiv Crypto Address Module

Address normalization and the storage keys derived from addresses.
"""

from typing import Union

from eth_utils import is_address, to_canonical_address, to_checksum_address

from ..constants import ADDRESS_SIZE, STORAGE_SLOT_SIZE
from ..exceptions import InvalidAddressError


AddressLike = Union[str, bytes]


def to_address_bytes(address: AddressLike) -> bytes:
    """
    Convert an address to its 20-byte canonical form.

    Accepts a 0x-prefixed hex string (any casing) or raw 20 bytes.

    Raises:
        InvalidAddressError: If the value is not a 20-byte address
    """
    if isinstance(address, (bytes, bytearray)):
        if len(address) != ADDRESS_SIZE:
            raise InvalidAddressError(
                f"Address must be {ADDRESS_SIZE} bytes, got {len(address)}"
            )
        return bytes(address)
    if not isinstance(address, str) or not is_address(address):
        raise InvalidAddressError(f"Invalid address: {address!r}")
    return to_canonical_address(address)


def normalize_address(address: AddressLike) -> str:
    """Return the EIP-55 checksum form of an address."""
    return to_checksum_address(to_address_bytes(address))


def code_storage_slot_for(address: AddressLike) -> bytes:
    """
    Storage key of an account's code hash.

    The 20-byte address left-padded with zeros to 32 bytes.
    """
    return to_address_bytes(address).rjust(STORAGE_SLOT_SIZE, b'\x00')


def address_from_word(word: bytes) -> str:
    """Extract the address held in the low 20 bytes of a 32-byte word."""
    if len(word) != STORAGE_SLOT_SIZE:
        raise InvalidAddressError(
            f"Address word must be {STORAGE_SLOT_SIZE} bytes, got {len(word)}"
        )
    return to_checksum_address(word[-ADDRESS_SIZE:])
