"""Port expression parsing."""
from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Sequence, Set, Tuple

from ..core.models import PortSet

MIN_PORT = 1
MAX_PORT = 65535

_SINGLE = re.compile(r"^[0-9]+$")
_RANGE = re.compile(r"^([0-9]+)-([0-9]+)$")


def _split_tokens(tokens: Iterable[str]) -> Iterator[str]:
    for token in tokens:
        for piece in token.split(","):
            piece = piece.strip()
            if piece:
                yield piece


def _span(start: int, end: int) -> str:
    return str(start) if start == end else f"{start}-{end}"


def _expand_token(token: str) -> Tuple[range, List[str]]:
    """Split one token into its valid port range and the rejected parts of it."""

    if _SINGLE.match(token):
        port = int(token)
        if MIN_PORT <= port <= MAX_PORT:
            return range(port, port + 1), []
        return range(0), [token]

    match = _RANGE.match(token)
    if match is None:
        return range(0), [token]
    start, end = int(match.group(1)), int(match.group(2))
    if start > end:
        return range(0), []

    rejected: List[str] = []
    if start < MIN_PORT:
        rejected.append(_span(start, min(end, MIN_PORT - 1)))
    if end > MAX_PORT:
        rejected.append(_span(max(start, MAX_PORT + 1), end))
    return range(max(start, MIN_PORT), min(end, MAX_PORT) + 1), rejected


def parse_ports(tokens: Sequence[str], *, dedupe: bool = True) -> PortSet:
    """Expand port tokens into valid ports and a batch of rejected entries.

    Tokens are bare integers or inclusive ``start-end`` ranges; tokens that
    contain commas are split further. A range whose start is greater than its
    end contributes nothing and is not an error. Numbers outside 1-65535 are
    rejected, and so is anything that is not a number or a range. Valid ports
    keep the order in which they were expanded.
    """

    valid: List[int] = []
    invalid: List[str] = []
    seen: Set[int] = set()
    for token in _split_tokens(tokens):
        ports, rejected = _expand_token(token)
        invalid.extend(rejected)
        for port in ports:
            if dedupe:
                if port in seen:
                    continue
                seen.add(port)
            valid.append(port)
    return PortSet(valid=tuple(valid), invalid=tuple(invalid))


def parse_port_expression(text: str, *, dedupe: bool = True) -> PortSet:
    """Parse a single comma separated expression such as ``"22,80,8000-8010"``."""

    return parse_ports([text], dedupe=dedupe)


__all__ = ["parse_ports", "parse_port_expression", "MIN_PORT", "MAX_PORT"]
