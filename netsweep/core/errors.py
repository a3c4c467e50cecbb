"""Exception hierarchy for netsweep."""
from __future__ import annotations

from typing import Sequence


class NetsweepError(Exception):
    """Base class for errors raised by netsweep."""


class InputError(NetsweepError, ValueError):
    """Malformed user input."""


class PortError(InputError):
    def __init__(self, invalid: Sequence[str]) -> None:
        self.invalid = tuple(invalid)
        super().__init__(f"invalid port(s): {', '.join(self.invalid)}")


class TargetError(InputError):
    pass


class UsageError(InputError):
    """Inputs that cannot be combined into a scan at all."""


class EnvironmentCheckError(NetsweepError, RuntimeError):
    """A probing primitive the scan depends on is unavailable."""


__all__ = [
    "NetsweepError",
    "InputError",
    "PortError",
    "TargetError",
    "UsageError",
    "EnvironmentCheckError",
]
