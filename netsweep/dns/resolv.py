"""Hostname resolution for probes."""
from __future__ import annotations

import logging
import socket
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from functools import lru_cache
from typing import Optional

from ..parsing.targets import is_dotted_quad

logger = logging.getLogger(__name__)

# getaddrinfo has no timeout of its own; lookups run here so callers can stop waiting.
_lookups = ThreadPoolExecutor(max_workers=8, thread_name_prefix="netsweep-dns")


class ResolutionError(OSError):
    """Raised when a host has no IPv4 address."""


@lru_cache(maxsize=256)
def _lookup(host: str) -> Optional[str]:
    try:
        infos = socket.getaddrinfo(host, None, socket.AF_INET)
    except (socket.gaierror, UnicodeError) as exc:
        logger.debug("Resolution of %s failed: %s", host, exc)
        return None
    for family, _, _, _, sockaddr in infos:
        if family == socket.AF_INET:
            return sockaddr[0]
    return None


def resolve_ipv4(host: str, timeout: Optional[float] = None) -> str:
    """Return an IPv4 address for ``host``, resolving hostnames once per run.

    With ``timeout`` set, a lookup still pending after that many seconds
    raises :class:`ResolutionError`; the lookup itself finishes in the
    background and its answer is cached for later calls.
    """

    if is_dotted_quad(host):
        return host.strip()
    name = host.strip()
    future = _lookups.submit(_lookup, name)
    try:
        address = future.result(timeout=timeout)
    except FutureTimeoutError:
        raise ResolutionError(f"Timed out resolving '{host}' after {timeout:.2f}s") from None
    if address is None:
        raise ResolutionError(f"Could not resolve '{host}' to an IPv4 address")
    logger.debug("Resolved %s to %s", host, address)
    return address


def clear_cache() -> None:
    _lookup.cache_clear()


__all__ = ["ResolutionError", "resolve_ipv4", "clear_cache"]
