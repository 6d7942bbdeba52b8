"""
Gas Cost Accumulator

Collects the per-opcode cost logs emitted by a tracing EVM interpreter and
renders them as a tab separated report:

    Overhead    <avg>   <min>   <max>
    0x01        <avg>   <min>   <max>
    0x02

Min and max columns are left blank when they equal the average; opcodes with
no samples are listed alone.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .constants import OPCODE_COST_TOPIC, OVERHEAD_COST_TOPIC, TRACKED_OPCODES
from .exceptions import MalformedResponseError
from .rpc.client import ChainClient
from .rpc.types import LogEntry

logger = logging.getLogger(__name__)

WORD_SIZE = 32


@dataclass(frozen=True)
class CostSummary:
    average: Optional[int]
    minimum: Optional[int]
    maximum: Optional[int]
    samples: int = 0

    @classmethod
    def of(cls, values: List[int]) -> "CostSummary":
        if not values:
            return cls(None, None, None, 0)
        return cls(sum(values) // len(values), min(values), max(values), len(values))


def _decode_words(data: bytes, count: int) -> List[int]:
    """Decode ``count`` ABI-encoded uint256 values."""
    if len(data) < count * WORD_SIZE:
        raise MalformedResponseError(
            f"Expected {count} ABI words, got {len(data)} bytes"
        )
    return [
        int.from_bytes(data[i * WORD_SIZE:(i + 1) * WORD_SIZE], 'big')
        for i in range(count)
    ]


def _render(value: Optional[int]) -> str:
    return "undefined" if value is None else str(value)


@dataclass
class GasCostAccumulator:
    """Overhead and per-opcode cost samples gathered across transactions."""
    tracked_opcodes: Iterable[int] = TRACKED_OPCODES
    overhead: List[int] = field(default_factory=list)
    opcodes: Dict[int, List[int]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for opcode in self.tracked_opcodes:
            self.opcodes.setdefault(opcode, [])

    def record_log(self, log: LogEntry) -> bool:
        """Record a single log. Returns False for unrelated logs."""
        topic = (log.topic0 or "").lower()
        if topic == OVERHEAD_COST_TOPIC:
            (cost,) = _decode_words(log.data, 1)
            self.overhead.append(cost)
            return True
        if topic == OPCODE_COST_TOPIC:
            opcode, cost = _decode_words(log.data, 2)
            self.opcodes.setdefault(opcode, []).append(cost)
            return True
        return False

    def record_logs(self, logs: Iterable[LogEntry]) -> int:
        return sum(1 for log in logs if self.record_log(log))

    async def collect(self, client: ChainClient, tx_hash: str) -> int:
        """Fetch the logs of ``tx_hash`` and record the cost entries."""
        logs = await client.get_transaction_logs(tx_hash)
        recorded = self.record_logs(logs)
        logger.debug(f"Recorded {recorded} cost entries from {tx_hash}")
        return recorded

    def summary(self) -> Dict[str, CostSummary]:
        result = {"overhead": CostSummary.of(self.overhead)}
        for opcode in sorted(self.opcodes):
            result[f"0x{opcode:02x}"] = CostSummary.of(self.opcodes[opcode])
        return result

    def report(self) -> str:
        overhead = CostSummary.of(self.overhead)
        lines = [
            "Overhead\t"
            f"{_render(overhead.average)}\t{_render(overhead.minimum)}\t{_render(overhead.maximum)}"
        ]
        for opcode in sorted(self.opcodes):
            name = f"0x{opcode:02x}"
            costs = CostSummary.of(self.opcodes[opcode])
            if costs.samples == 0:
                lines.append(name)
                continue
            minimum = "" if costs.minimum == costs.average else str(costs.minimum)
            maximum = "" if costs.maximum == costs.average else str(costs.maximum)
            lines.append(f"{name}\t{costs.average}\t{minimum}\t{maximum}")
        return "\n".join(lines) + "\n"
