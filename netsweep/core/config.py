"""Configuration loading for netsweep."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .utils import env_bool, env_float, env_int

try:  # pragma: no cover - Python >=3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - optional dependency path
    try:
        import tomli as tomllib  # type: ignore[assignment]
    except ModuleNotFoundError:  # pragma: no cover - fallback when tomli missing
        tomllib = None  # type: ignore[assignment]


logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".config" / "netsweep" / "config.toml"

DEFAULT_TIMEOUT = 1.0
DEFAULT_WORKERS = 1
MAX_WORKERS = 512


@dataclass(frozen=True)
class RuntimeConfig:
    """Computed runtime configuration values."""

    timeout: float = DEFAULT_TIMEOUT
    workers: int = DEFAULT_WORKERS
    ordered: bool = False
    verbose: bool = False


def _load_file_config(path: Path) -> dict[str, object]:
    if not path.exists():
        return {}
    raw = path.read_bytes()
    if tomllib is None:
        return {}
    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}
    section = data.get("netsweep")
    if not isinstance(section, dict):
        return {}
    return section


def _valid_timeout(value: object) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if value > 0 else None


def _valid_workers(value: object) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return min(value, MAX_WORKERS) if value > 0 else None


def load_config(
    *,
    cli_timeout: Optional[float] = None,
    cli_workers: Optional[int] = None,
    cli_ordered: Optional[bool] = None,
    cli_verbose: Optional[bool] = None,
    path: Optional[Path] = None,
) -> RuntimeConfig:
    """Compose runtime configuration respecting precedence.

    Defaults are overridden by the config file, then by ``NETSWEEP_*``
    environment variables, then by explicit command line values. A value that
    is out of range at any layer leaves the layer below in effect.
    """

    file_config = _load_file_config(path or CONFIG_PATH)

    timeout = _valid_timeout(file_config.get("timeout")) or DEFAULT_TIMEOUT
    timeout = _valid_timeout(env_float("NETSWEEP_TIMEOUT", timeout)) or timeout
    if cli_timeout is not None:
        timeout = _valid_timeout(cli_timeout) or timeout

    workers = _valid_workers(file_config.get("workers")) or DEFAULT_WORKERS
    workers = _valid_workers(env_int("NETSWEEP_WORKERS", workers)) or workers
    if cli_workers is not None:
        workers = _valid_workers(cli_workers) or workers

    file_ordered = bool(file_config.get("ordered", False))
    env_ordered = env_bool("NETSWEEP_ORDERED", file_ordered)
    ordered = cli_ordered if cli_ordered is not None else env_ordered

    file_verbose = bool(file_config.get("verbose", False))
    env_verbose = env_bool("NETSWEEP_VERBOSE", file_verbose)
    verbose = cli_verbose if cli_verbose is not None else env_verbose

    return RuntimeConfig(timeout=timeout, workers=workers, ordered=ordered, verbose=verbose)


__all__ = ["RuntimeConfig", "load_config", "CONFIG_PATH", "DEFAULT_TIMEOUT", "DEFAULT_WORKERS"]
