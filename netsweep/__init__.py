"""netsweep core package."""

from .core.models import PortSet, ProbeResult, Protocol, ScanEvent, Severity, Verdict
from .core.scanner import Scanner, run_scan

__all__ = [
    "PortSet",
    "ProbeResult",
    "Protocol",
    "ScanEvent",
    "Scanner",
    "Severity",
    "Verdict",
    "run_scan",
]

__version__ = "0.1.0"
