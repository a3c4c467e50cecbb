"""Bounded-timeout connectivity probes."""
from __future__ import annotations

import logging
import math
import platform
import shutil
import socket
import subprocess
import time
from typing import Callable, List, Optional

from ..core.models import ProbeResult, Protocol, Verdict
from ..dns.resolv import ResolutionError, resolve_ipv4

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1.0
# Allowance for process start-up on top of ping's own reply deadline.
_PING_GRACE = 0.5
# Floor for the time left after resolution; a zero socket timeout means non-blocking.
_MIN_WAIT = 0.01

Prober = Callable[[str, Optional[int], Protocol, float], ProbeResult]


def _remaining(started: float, timeout: float) -> float:
    return max(_MIN_WAIT, timeout - (time.monotonic() - started))


def ping_command(timeout: float = DEFAULT_TIMEOUT) -> Optional[List[str]]:
    """Build a single-echo ``ping`` invocation for this platform, minus the host."""

    ping_path = shutil.which("ping")
    if not ping_path:
        return None
    system_name = platform.system().lower()
    wait_ms = str(max(1, int(timeout * 1000)))
    if system_name == "windows":
        return [ping_path, "-n", "1", "-w", wait_ms]
    if system_name == "darwin":
        return [ping_path, "-n", "-c", "1", "-W", wait_ms]
    return [ping_path, "-n", "-c", "1", "-W", str(max(1, math.ceil(timeout)))]


def ping_host(address: str, timeout: float = DEFAULT_TIMEOUT) -> ProbeResult:
    started = time.monotonic()
    try:
        ip = resolve_ipv4(address, timeout)
    except ResolutionError as exc:
        elapsed = time.monotonic() - started
        return ProbeResult(address, None, Protocol.ICMP, Verdict.DOWN, elapsed, str(exc))

    remaining = _remaining(started, timeout)
    command = ping_command(remaining)
    if command is None:
        return ProbeResult(address, None, Protocol.ICMP, Verdict.DOWN, 0.0, "ping not available")

    try:
        completed = subprocess.run(
            [*command, ip],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=remaining + _PING_GRACE,
            check=False,
        )
    except subprocess.TimeoutExpired:
        verdict = Verdict.DOWN
    else:
        verdict = Verdict.ALIVE if completed.returncode == 0 else Verdict.DOWN
    elapsed = time.monotonic() - started
    logger.debug("ping %s -> %s (%.3fs)", address, verdict.value, elapsed)
    return ProbeResult(address, None, Protocol.ICMP, verdict, elapsed)


def tcp_probe(address: str, port: int, timeout: float = DEFAULT_TIMEOUT) -> ProbeResult:
    """Attempt a full handshake; anything short of a connection is Closed."""

    started = time.monotonic()
    detail: Optional[str] = None
    try:
        ip = resolve_ipv4(address, timeout)
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(_remaining(started, timeout))
            code = sock.connect_ex((ip, port))
        verdict = Verdict.OPEN if code == 0 else Verdict.CLOSED
    except ResolutionError as exc:
        verdict, detail = Verdict.CLOSED, str(exc)
    except (socket.timeout, OSError) as exc:
        verdict, detail = Verdict.CLOSED, str(exc) or exc.__class__.__name__
    elapsed = time.monotonic() - started
    logger.debug("tcp %s:%d -> %s (%.3fs)", address, port, verdict.value, elapsed)
    return ProbeResult(address, port, Protocol.TCP, verdict, elapsed, detail)


def udp_probe(address: str, port: int, timeout: float = DEFAULT_TIMEOUT) -> ProbeResult:
    """Send an empty datagram and listen for a reply or an ICMP error.

    A reply or silence is reported Open. An ICMP port-unreachable (surfaced as
    a refused connection on the connected socket) or any other socket error
    is Unknown: without a handshake a closed port cannot be told apart from a
    filtered one.
    """

    started = time.monotonic()
    detail: Optional[str] = None
    try:
        ip = resolve_ipv4(address, timeout)
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.settimeout(_remaining(started, timeout))
            sock.connect((ip, port))
            sock.send(b"")
            try:
                sock.recv(1024)
                detail = "reply received"
            except socket.timeout:
                detail = "no response"
        verdict = Verdict.OPEN
    except ResolutionError as exc:
        verdict, detail = Verdict.UNKNOWN, str(exc)
    except ConnectionRefusedError:
        verdict, detail = Verdict.UNKNOWN, "port unreachable"
    except OSError as exc:
        verdict, detail = Verdict.UNKNOWN, str(exc) or exc.__class__.__name__
    elapsed = time.monotonic() - started
    logger.debug("udp %s:%d -> %s (%s)", address, port, verdict.value, detail)
    return ProbeResult(address, port, Protocol.UDP, verdict, elapsed, detail)


def probe(
    address: str,
    port: Optional[int] = None,
    protocol: Protocol = Protocol.TCP,
    timeout: float = DEFAULT_TIMEOUT,
) -> ProbeResult:
    """Run the probe matching ``port`` and ``protocol`` against one address."""

    if port is None:
        return ping_host(address, timeout)
    if protocol is Protocol.UDP:
        return udp_probe(address, port, timeout)
    return tcp_probe(address, port, timeout)


__all__ = ["Prober", "ping_command", "ping_host", "probe", "tcp_probe", "udp_probe"]
