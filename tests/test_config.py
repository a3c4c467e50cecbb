from pathlib import Path

import pytest

from netsweep.core import config


def _write(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


def test_defaults_without_file_or_env() -> None:
    runtime = config.load_config()
    assert runtime == config.RuntimeConfig()
    assert runtime.timeout == 1.0
    assert runtime.workers == 1


def test_file_values_apply(tmp_path: Path) -> None:
    path = _write(tmp_path / "config.toml", "[netsweep]\ntimeout = 0.25\nworkers = 16\nordered = true\n")
    runtime = config.load_config(path=path)
    assert runtime.timeout == 0.25
    assert runtime.workers == 16
    assert runtime.ordered is True


def test_env_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path / "config.toml", "[netsweep]\ntimeout = 0.25\nworkers = 16\n")
    monkeypatch.setenv("NETSWEEP_WORKERS", "4")
    monkeypatch.setenv("NETSWEEP_VERBOSE", "yes")
    runtime = config.load_config(path=path)
    assert runtime.workers == 4
    assert runtime.timeout == 0.25
    assert runtime.verbose is True


def test_cli_overrides_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NETSWEEP_TIMEOUT", "3")
    runtime = config.load_config(cli_timeout=0.5, cli_ordered=True)
    assert runtime.timeout == 0.5
    assert runtime.ordered is True


def test_invalid_values_keep_lower_layer(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path / "config.toml", "[netsweep]\nworkers = 0\ntimeout = \"fast\"\n")
    monkeypatch.setenv("NETSWEEP_TIMEOUT", "-1")
    runtime = config.load_config(path=path, cli_workers=-3)
    assert runtime.workers == config.DEFAULT_WORKERS
    assert runtime.timeout == config.DEFAULT_TIMEOUT


def test_unreadable_file_is_ignored(tmp_path: Path) -> None:
    path = _write(tmp_path / "config.toml", "[netsweep\n")
    assert config.load_config(path=path) == config.RuntimeConfig()


def test_workers_are_capped() -> None:
    assert config.load_config(cli_workers=100000).workers == config.MAX_WORKERS
