"""
Contract Address Generation

Expected addresses of contracts created with CREATE and CREATE2.
"""

from eth_utils import keccak, to_checksum_address
import rlp

from .address import AddressLike, to_address_bytes
from .hashing import BytesLike, to_bytes


def generate_contract_address(sender: AddressLike, nonce: int) -> str:
    """
    Generate contract address using CREATE opcode logic.

    Address = keccak256(rlp([sender, nonce]))[-20:]

    Args:
        sender: Deployer address
        nonce: Deployer nonce

    Returns:
        Contract address (checksum format)
    """
    if nonce < 0:
        raise ValueError(f"Nonce must be non-negative, got {nonce}")
    rlp_encoded = rlp.encode([to_address_bytes(sender), nonce])
    return to_checksum_address(keccak(rlp_encoded)[-20:])


def generate_contract_address_create2(
    sender: AddressLike,
    salt: BytesLike,
    init_code: BytesLike,
) -> str:
    """
    Generate contract address using CREATE2 opcode logic.

    Address = keccak256(0xff + sender + salt + keccak256(init_code))[-20:]

    Args:
        sender: Deployer address
        salt: 32-byte salt
        init_code: Contract initialization bytecode

    Returns:
        Contract address (checksum format)
    """
    salt_bytes = to_bytes(salt)
    if len(salt_bytes) != 32:
        raise ValueError(f"Salt must be 32 bytes, got {len(salt_bytes)}")

    data = b'\xff' + to_address_bytes(sender) + salt_bytes + keccak(to_bytes(init_code))
    return to_checksum_address(keccak(data)[-20:])
