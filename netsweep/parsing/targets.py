"""Target expression expansion.

A target expression is a comma separated list of segments. Each segment is
one of:

* ``10.0.0.1-10.0.0.20``: an inclusive dash range of IPv4 addresses,
* ``192.168.1.0/24``: a CIDR block, yielding its host addresses only,
* anything else: a literal hostname or address, passed through untouched.

Expansion is lazy so that large blocks are never materialized up front.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from ..core.errors import TargetError

MASK32 = 0xFFFFFFFF

_DOTTED_QUAD = re.compile(r"^[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}$")
_PREFIX = re.compile(r"^[0-9]{1,2}$")


def is_dotted_quad(text: str) -> bool:
    return bool(_DOTTED_QUAD.match(text.strip()))


def ip_to_int(address: str) -> int:
    """Convert a dotted quad to its unsigned 32-bit value."""

    text = address.strip()
    if not is_dotted_quad(text):
        raise TargetError(f"Not a dotted-quad IPv4 address: '{address}'")
    octets = [int(part) for part in text.split(".")]
    if any(octet > 255 for octet in octets):
        raise TargetError(f"Octet out of range in '{address}'")
    o1, o2, o3, o4 = octets
    return ((o1 << 24) + (o2 << 16) + (o3 << 8) + o4) & MASK32


def int_to_ip(value: int) -> str:
    value &= MASK32
    return f"{(value >> 24) & 0xFF}.{(value >> 16) & 0xFF}.{(value >> 8) & 0xFF}.{value & 0xFF}"


def cidr_host_bounds(address: str, prefix: int) -> Tuple[int, int]:
    """Return the half-open integer range of usable hosts in a block.

    Network and broadcast addresses are excluded, so /31 and /32 are empty.
    """

    if not 0 <= prefix <= 32:
        raise TargetError(f"CIDR prefix must be between 0 and 32, got {prefix}")
    num_hosts = 1 << (32 - prefix)
    network = ip_to_int(address) & ~(num_hosts - 1) & MASK32
    broadcast = network + num_hosts - 1
    return network + 1, max(network + 1, broadcast)


@dataclass(frozen=True)
class Segment:
    """One classified comma segment of a target expression."""

    text: str
    kind: str
    start: int = 0
    stop: int = 0

    def __iter__(self) -> Iterator[str]:
        if self.kind == "literal":
            yield self.text
            return
        for value in range(self.start, self.stop):
            yield int_to_ip(value)

    def __len__(self) -> int:
        if self.kind == "literal":
            return 1
        return max(0, self.stop - self.start)


def classify(segment: str) -> Segment:
    text = segment.strip()
    if "/" in text:
        address, _, prefix_text = text.partition("/")
        if not _PREFIX.match(prefix_text.strip()):
            raise TargetError(f"Invalid CIDR prefix in '{text}'")
        start, stop = cidr_host_bounds(address, int(prefix_text))
        return Segment(text=text, kind="cidr", start=start, stop=stop)
    if "-" in text:
        first, _, last = text.partition("-")
        if is_dotted_quad(first) and is_dotted_quad(last):
            start, end = ip_to_int(first), ip_to_int(last)
            return Segment(text=text, kind="range", start=start, stop=max(start, end + 1))
    return Segment(text=text, kind="literal")


class AddressSequence:
    """Restartable, lazily expanded sequence of target addresses."""

    def __init__(self, expression: str) -> None:
        self.expression = expression
        self.segments: List[Segment] = [
            classify(part) for part in expression.split(",") if part.strip()
        ]

    def __iter__(self) -> Iterator[str]:
        for segment in self.segments:
            yield from segment

    def __len__(self) -> int:
        return sum(len(segment) for segment in self.segments)

    def __bool__(self) -> bool:
        return any(len(segment) for segment in self.segments)

    def __repr__(self) -> str:
        return f"AddressSequence({self.expression!r})"


def expand(expression: str) -> AddressSequence:
    """Classify every segment of ``expression`` and return its addresses lazily.

    Malformed addresses in range or CIDR segments raise :class:`TargetError`
    immediately, before anything is iterated.
    """

    return AddressSequence(expression)


__all__ = [
    "AddressSequence",
    "Segment",
    "classify",
    "cidr_host_bounds",
    "expand",
    "int_to_ip",
    "ip_to_int",
    "is_dotted_quad",
]
