"""Scan orchestration: plan, dispatch probes, collect results."""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from itertools import islice
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..net.probes import Prober, probe
from ..parsing.ports import parse_ports
from ..parsing.targets import expand, ip_to_int, is_dotted_quad
from .config import RuntimeConfig
from .errors import PortError, TargetError, UsageError
from .models import (
    ProbeResult,
    Protocol,
    ScanEvent,
    ScanMode,
    ScanPlan,
    ScanSummary,
    Severity,
)

logger = logging.getLogger(__name__)

Job = Tuple[int, str, Optional[int]]


def plan_scan(
    target: str,
    ports: Sequence[str] = (),
    protocol: Protocol = Protocol.TCP,
    *,
    dedupe: bool = True,
) -> ScanPlan:
    """Validate inputs and decide the scan mode.

    UDP needs at least one valid port; asking for it without one is a usage
    error rather than a silent fallback to a liveness sweep.
    """

    port_set = parse_ports(ports, dedupe=dedupe)
    if protocol is Protocol.UDP and not port_set:
        raise UsageError("UDP scanning requires at least one valid port")
    addresses = expand(target)
    mode = ScanMode.PORTS if port_set else ScanMode.LIVENESS
    logger.debug(
        "Planned %s scan: %d address(es), %d port(s), protocol %s",
        mode.value,
        len(addresses),
        len(port_set),
        protocol.value,
    )
    return ScanPlan(addresses=addresses, ports=port_set, protocol=protocol, mode=mode)


def iter_jobs(plan: ScanPlan) -> Iterator[Job]:
    """Enumerate probes lazily: address outer, port inner."""

    index = 0
    for address in plan.addresses:
        if plan.mode is ScanMode.LIVENESS:
            yield index, address, None
            index += 1
            continue
        for port in plan.ports.valid:
            yield index, address, port
            index += 1


def _address_key(address: str) -> Tuple[int, int, str]:
    if is_dotted_quad(address):
        try:
            return 0, ip_to_int(address), address
        except TargetError:
            pass
    return 1, 0, address


def sort_results(results: Iterable[ProbeResult]) -> List[ProbeResult]:
    """Order results by address then port, hostnames after IPv4 literals."""

    return sorted(results, key=lambda r: (_address_key(r.address), r.port or 0))


def result_event(result: ProbeResult) -> ScanEvent:
    return ScanEvent(severity=Severity.INFO, message=result.verdict.value, result=result)


def invalid_ports_event(invalid: Sequence[str]) -> ScanEvent:
    return ScanEvent(
        severity=Severity.WARNING,
        message=f"Ignoring {PortError(invalid)}",
    )


class Scanner:
    """Runs scans with a fixed configuration and probe implementation."""

    def __init__(self, config: Optional[RuntimeConfig] = None, prober: Prober = probe) -> None:
        self.config = config or RuntimeConfig()
        self.prober = prober
        self.summary = ScanSummary()

    def run(
        self,
        target: str,
        ports: Sequence[str] = (),
        protocol: Protocol = Protocol.TCP,
        *,
        dedupe: bool = True,
    ) -> Iterator[ScanEvent]:
        """Plan the scan now and return an iterator over its events.

        Planning happens before this method returns, so usage errors surface
        here with no probe sent.
        """

        return self.execute(plan_scan(target, ports, protocol, dedupe=dedupe))

    def execute(self, plan: ScanPlan) -> Iterator[ScanEvent]:
        """Dispatch the probes of an already validated plan."""

        self.summary = ScanSummary()
        return self._events(plan)

    def _events(self, plan: ScanPlan) -> Iterator[ScanEvent]:
        if plan.ports.invalid:
            self.summary.warnings += 1
            yield invalid_ports_event(plan.ports.invalid)
        try:
            for result in self._results(plan):
                self.summary.record(result)
                yield result_event(result)
        finally:
            self.summary.finish()

    def _probe(self, plan: ScanPlan, address: str, port: Optional[int]) -> ProbeResult:
        return self.prober(address, port, plan.probe_protocol, self.config.timeout)

    def _results(self, plan: ScanPlan) -> Iterator[ProbeResult]:
        jobs = iter_jobs(plan)
        if self.config.workers <= 1:
            for _, address, port in jobs:
                yield self._probe(plan, address, port)
            return
        if self.config.ordered:
            yield from self._pooled_ordered(plan, jobs)
        else:
            for _, result in self._pooled(plan, jobs):
                yield result

    def _pooled(self, plan: ScanPlan, jobs: Iterator[Job]) -> Iterator[Tuple[int, ProbeResult]]:
        """Probe concurrently, keeping a bounded number of jobs in flight."""

        workers = self.config.workers
        logger.debug("Starting worker pool with %d workers", workers)
        pending: Dict[Future[ProbeResult], int] = {}
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="netsweep")
        try:
            for index, address, port in islice(jobs, workers * 2):
                pending[executor.submit(self._probe, plan, address, port)] = index
            while pending:
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    index = pending.pop(future)
                    for next_index, address, port in islice(jobs, 1):
                        pending[executor.submit(self._probe, plan, address, port)] = next_index
                    yield index, future.result()
        finally:
            for future in pending:
                future.cancel()
            executor.shutdown(wait=True, cancel_futures=True)

    def _pooled_ordered(self, plan: ScanPlan, jobs: Iterator[Job]) -> Iterator[ProbeResult]:
        """Concurrent probing, released in the same order a sequential scan uses."""

        buffered: Dict[int, ProbeResult] = {}
        next_index = 0
        for index, result in self._pooled(plan, jobs):
            buffered[index] = result
            while next_index in buffered:
                yield buffered.pop(next_index)
                next_index += 1


def run_scan(
    target: str,
    ports: Sequence[str] = (),
    protocol: Protocol = Protocol.TCP,
    *,
    config: Optional[RuntimeConfig] = None,
    prober: Prober = probe,
    dedupe: bool = True,
) -> Iterator[ScanEvent]:
    """Scan ``target`` and return its events; see :class:`Scanner`."""

    return Scanner(config, prober).run(target, ports, protocol, dedupe=dedupe)


__all__ = [
    "Scanner",
    "iter_jobs",
    "plan_scan",
    "run_scan",
    "sort_results",
    "result_event",
    "invalid_ports_event",
]
