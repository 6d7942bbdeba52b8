"""
JSON-RPC value types.

Only the receipt fields needed to inspect deployments and cost logs are kept.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from eth_utils import decode_hex, to_checksum_address

from ..exceptions import MalformedResponseError


def _hex_to_int(value: Any, name: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    try:
        return int(value, 16)
    except (TypeError, ValueError) as e:
        raise MalformedResponseError(f"Field {name!r} is not a hex quantity: {value!r}") from e


def _hex_to_bytes(value: Any, name: str) -> bytes:
    try:
        return decode_hex(value)
    except (TypeError, ValueError) as e:
        raise MalformedResponseError(f"Field {name!r} is not hex data: {value!r}") from e


@dataclass(frozen=True)
class LogEntry:
    """A single event log."""
    address: str
    topics: List[str]
    data: bytes
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None

    @property
    def topic0(self) -> Optional[str]:
        return self.topics[0] if self.topics else None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogEntry":
        try:
            address = to_checksum_address(data["address"])
            topics = [str(t).lower() for t in data.get("topics", [])]
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(f"Malformed log entry: {data!r}") from e
        return cls(
            address=address,
            topics=topics,
            data=_hex_to_bytes(data.get("data", "0x"), "data"),
            transaction_hash=data.get("transactionHash"),
            log_index=_hex_to_int(data.get("logIndex"), "logIndex"),
        )


@dataclass(frozen=True)
class TransactionReceipt:
    """Subset of eth_getTransactionReceipt."""
    transaction_hash: str
    status: Optional[int]
    gas_used: Optional[int]
    contract_address: Optional[str] = None
    logs: List[LogEntry] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransactionReceipt":
        if not isinstance(data, dict) or "transactionHash" not in data:
            raise MalformedResponseError(f"Malformed receipt: {data!r}")
        contract_address = data.get("contractAddress")
        return cls(
            transaction_hash=data["transactionHash"],
            status=_hex_to_int(data.get("status"), "status"),
            gas_used=_hex_to_int(data.get("gasUsed"), "gasUsed"),
            contract_address=to_checksum_address(contract_address) if contract_address else None,
            logs=[LogEntry.from_dict(log) for log in data.get("logs", [])],
        )
