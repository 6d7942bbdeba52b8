"""Node access used by the verifier and cost collector."""

from .client import ChainClient, JsonRpcClient
from .types import LogEntry, TransactionReceipt

__all__ = ["ChainClient", "JsonRpcClient", "LogEntry", "TransactionReceipt"]
