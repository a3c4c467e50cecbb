"""Core data models for netsweep."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Sequence

from .utils import now_utc


class Protocol(str, Enum):
    """Probe transport. ICMP tags liveness results only."""

    TCP = "tcp"
    UDP = "udp"
    ICMP = "icmp"


class Verdict(str, Enum):
    ALIVE = "Alive"
    DOWN = "Down"
    OPEN = "Open"
    CLOSED = "Closed"
    UNKNOWN = "Unknown"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    FATAL = "fatal"


class ScanMode(str, Enum):
    LIVENESS = "liveness"
    PORTS = "ports"


@dataclass(frozen=True)
class PortSet:
    """Expanded port expression: valid ports in insertion order plus rejects."""

    valid: Sequence[int] = field(default_factory=tuple)
    invalid: Sequence[str] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return bool(self.valid)

    def __len__(self) -> int:
        return len(self.valid)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a single probe against an address (and optional port)."""

    address: str
    port: int | None
    protocol: Protocol
    verdict: Verdict
    elapsed: float = 0.0
    detail: str | None = None

    @property
    def is_positive(self) -> bool:
        return self.verdict in (Verdict.ALIVE, Verdict.OPEN)

    @property
    def endpoint(self) -> str:
        if self.port is None:
            return self.address
        return f"{self.address}:{self.port}"


@dataclass(frozen=True)
class ScanEvent:
    """Anything the scan reports to its consumer."""

    severity: Severity
    message: str
    result: ProbeResult | None = None


@dataclass(frozen=True)
class ScanPlan:
    """Validated inputs for a scan, ready to be dispatched."""

    addresses: Iterable[str]
    ports: PortSet
    protocol: Protocol
    mode: ScanMode

    @property
    def probe_protocol(self) -> Protocol:
        return Protocol.ICMP if self.mode is ScanMode.LIVENESS else self.protocol


@dataclass
class ScanSummary:
    """Running totals for a scan."""

    started_at: datetime = field(default_factory=now_utc)
    finished_at: datetime | None = None
    counts: dict[Verdict, int] = field(default_factory=dict)
    warnings: int = 0

    def record(self, result: ProbeResult) -> None:
        self.counts[result.verdict] = self.counts.get(result.verdict, 0) + 1

    def finish(self) -> None:
        self.finished_at = now_utc()

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def positives(self) -> int:
        return self.counts.get(Verdict.ALIVE, 0) + self.counts.get(Verdict.OPEN, 0)

    @property
    def duration(self) -> float:
        end = self.finished_at or now_utc()
        return (end - self.started_at).total_seconds()


__all__ = [
    "Protocol",
    "Verdict",
    "Severity",
    "ScanMode",
    "PortSet",
    "ProbeResult",
    "ScanEvent",
    "ScanPlan",
    "ScanSummary",
]
