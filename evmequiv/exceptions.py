"""
evmequiv Exceptions

Custom exception classes for bytecode hashing and deployment verification.
"""


class EvmEquivException(Exception):
    """Base exception for evmequiv."""
    pass


class ConfigurationError(EvmEquivException):
    """Configuration error."""
    pass


class LengthOverflowError(EvmEquivException, ValueError):
    """Blob is too long for the two-byte length field of a blob hash."""

    def __init__(self, length: int, limit: int):
        self.length = length
        self.limit = limit
        super().__init__(
            f"Blob length {length} exceeds the maximum encodable length {limit}"
        )


class InvalidBlobHashError(EvmEquivException, ValueError):
    """Value is not a 32-byte blob hash."""
    pass


class InvalidAddressError(EvmEquivException, ValueError):
    """Invalid address format."""
    pass


class ChainClientError(EvmEquivException):
    """Reading from or writing to the chain failed."""
    pass


class NodeUnreachableError(ChainClientError):
    """Transport-level failure talking to the node."""
    pass


class RPCResponseError(ChainClientError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str, method: str = ""):
        self.code = code
        self.message = message
        self.method = method
        prefix = f"{method}: " if method else ""
        super().__init__(f"{prefix}RPC error {code}: {message}")


class MalformedResponseError(ChainClientError):
    """The node answered with data that cannot be decoded."""
    pass
