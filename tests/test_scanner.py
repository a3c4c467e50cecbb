import threading
import time
from typing import List, Optional, Tuple

import pytest

from netsweep.core.config import RuntimeConfig
from netsweep.core.errors import PortError, UsageError
from netsweep.core.models import ProbeResult, Protocol, ScanMode, Severity, Verdict
from netsweep.core.scanner import Scanner, invalid_ports_event, plan_scan, run_scan, sort_results

Call = Tuple[str, Optional[int], Protocol]


class RecordingProber:
    def __init__(self, open_ports: Tuple[int, ...] = (), delay: float = 0.0) -> None:
        self.calls: List[Call] = []
        self.open_ports = open_ports
        self.delay = delay
        self.lock = threading.Lock()

    def __call__(self, address: str, port: Optional[int], protocol: Protocol, timeout: float) -> ProbeResult:
        with self.lock:
            self.calls.append((address, port, protocol))
        if self.delay:
            time.sleep(self.delay)
        if port is None:
            verdict = Verdict.ALIVE if address.endswith(".1") else Verdict.DOWN
        else:
            verdict = Verdict.OPEN if port in self.open_ports else Verdict.CLOSED
        return ProbeResult(address, port, protocol, verdict)


def test_liveness_mode_probes_every_address() -> None:
    prober = RecordingProber()
    events = list(run_scan("10.0.0.1-10.0.0.3", prober=prober))
    assert [e.result.address for e in events] == ["10.0.0.1", "10.0.0.2", "10.0.0.3"]
    assert [e.result.verdict for e in events] == [Verdict.ALIVE, Verdict.DOWN, Verdict.DOWN]
    assert all(call[1] is None and call[2] is Protocol.ICMP for call in prober.calls)
    assert all(e.severity is Severity.INFO for e in events)


def test_port_mode_orders_address_outer_port_inner() -> None:
    prober = RecordingProber(open_ports=(22,))
    events = list(run_scan("192.168.1.0/30", ["22", "80"], prober=prober))
    assert [(e.result.address, e.result.port) for e in events] == [
        ("192.168.1.1", 22),
        ("192.168.1.1", 80),
        ("192.168.1.2", 22),
        ("192.168.1.2", 80),
    ]
    assert [e.result.verdict for e in events] == [Verdict.OPEN, Verdict.CLOSED] * 2


def test_invalid_ports_reported_once_before_results() -> None:
    events = list(run_scan("10.0.0.1", ["80", "22-24", "99999", "ssh"], prober=RecordingProber()))
    warnings = [e for e in events if e.severity is Severity.WARNING]
    assert len(warnings) == 1
    assert events[0] is warnings[0]
    assert "99999" in warnings[0].message and "ssh" in warnings[0].message
    assert [e.result.port for e in events[1:]] == [80, 22, 23, 24]


def test_udp_without_ports_aborts_before_probing() -> None:
    prober = RecordingProber()
    with pytest.raises(UsageError):
        run_scan("10.0.0.0/24", [], Protocol.UDP, prober=prober)
    with pytest.raises(UsageError):
        run_scan("10.0.0.0/24", ["0", "70000"], Protocol.UDP, prober=prober)
    assert prober.calls == []


def test_udp_probes_use_udp() -> None:
    prober = RecordingProber()
    list(run_scan("10.0.0.1", ["53"], Protocol.UDP, prober=prober))
    assert prober.calls == [("10.0.0.1", 53, Protocol.UDP)]


def test_all_ports_invalid_under_tcp_falls_back_to_liveness() -> None:
    plan = plan_scan("10.0.0.1", ["99999"])
    assert plan.mode is ScanMode.LIVENESS
    assert list(plan.ports.invalid) == ["99999"]


def test_keep_duplicates_increases_probe_count() -> None:
    prober = RecordingProber()
    list(run_scan("10.0.0.1", ["22", "22"], prober=prober, dedupe=False))
    assert len(prober.calls) == 2


def test_pool_covers_every_pair_once() -> None:
    prober = RecordingProber(delay=0.01)
    config = RuntimeConfig(workers=8)
    events = list(run_scan("10.0.0.0/28", ["22", "80", "443"], config=config, prober=prober))
    pairs = {(e.result.address, e.result.port) for e in events}
    assert len(events) == 14 * 3
    assert len(pairs) == 14 * 3


def test_ordered_pool_matches_sequential_order() -> None:
    sequential = [
        (e.result.address, e.result.port)
        for e in run_scan("10.0.0.0/29", ["1-3"], prober=RecordingProber())
    ]
    pooled = [
        (e.result.address, e.result.port)
        for e in run_scan(
            "10.0.0.0/29",
            ["1-3"],
            config=RuntimeConfig(workers=4, ordered=True),
            prober=RecordingProber(delay=0.005),
        )
    ]
    assert pooled == sequential


def test_pool_runs_probes_concurrently() -> None:
    prober = RecordingProber(delay=0.2)
    started = time.monotonic()
    list(run_scan("10.0.0.1-10.0.0.8", ["80"], config=RuntimeConfig(workers=8), prober=prober))
    assert time.monotonic() - started < 1.2


def test_summary_counts_results() -> None:
    scanner = Scanner(prober=RecordingProber(open_ports=(80,)))
    list(scanner.run("10.0.0.1-10.0.0.2", ["80", "81", "0"]))
    summary = scanner.summary
    assert summary.total == 4
    assert summary.positives == 2
    assert summary.counts[Verdict.CLOSED] == 2
    assert summary.warnings == 1
    assert summary.finished_at is not None


def test_sort_results_restores_reference_order() -> None:
    results = [
        ProbeResult("10.0.0.10", 80, Protocol.TCP, Verdict.OPEN),
        ProbeResult("host.lan", 22, Protocol.TCP, Verdict.OPEN),
        ProbeResult("10.0.0.9", 443, Protocol.TCP, Verdict.OPEN),
        ProbeResult("10.0.0.9", 22, Protocol.TCP, Verdict.OPEN),
    ]
    ordered = [(r.address, r.port) for r in sort_results(results)]
    assert ordered == [("10.0.0.9", 22), ("10.0.0.9", 443), ("10.0.0.10", 80), ("host.lan", 22)]


def test_sort_results_accepts_out_of_range_literals() -> None:
    events = run_scan("10.0.0.300,10.0.0.2", ["80"], prober=RecordingProber())
    results = [e.result for e in events if e.result is not None]
    ordered = [r.address for r in sort_results(results)]
    assert ordered == ["10.0.0.2", "10.0.0.300"]


def test_invalid_port_warning_is_built_from_port_error() -> None:
    error = PortError(["99999", "ssh"])
    assert error.invalid == ("99999", "ssh")
    assert isinstance(error, ValueError)
    event = invalid_ports_event(["99999", "ssh"])
    assert event.severity is Severity.WARNING
    assert event.message == f"Ignoring {error}"
    assert event.message == "Ignoring invalid port(s): 99999, ssh"
