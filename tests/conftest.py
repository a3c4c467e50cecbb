from collections.abc import Iterator
from pathlib import Path

import pytest

from netsweep.core import config
from netsweep.dns import resolv

_ENV_VARS = ("NETSWEEP_TIMEOUT", "NETSWEEP_WORKERS", "NETSWEEP_ORDERED", "NETSWEEP_VERBOSE")


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "missing" / "config.toml")
    resolv.clear_cache()
    yield
    resolv.clear_cache()
