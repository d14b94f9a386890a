from __future__ import annotations

import sys
from pathlib import Path

import pytest
import respx

# Ensure the repository-local ``src`` directory is importable when the project is
# not installed as a package.
SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

BASE_URL = "https://api.voluum.test"


@pytest.fixture
def token_getter():
    return lambda: "dummy-token"


@pytest.fixture
def respx_mock():
    with respx.mock(assert_all_called=False) as respx_mgr:
        yield respx_mgr


@pytest.fixture
def sleep_calls(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record retry backoff delays instead of sleeping."""

    calls: list[float] = []
    monkeypatch.setattr("voluum_cli.http_client.time.sleep", calls.append)
    return calls


@pytest.fixture
def config_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point the session config at a temp dir and clear env overrides."""

    home = tmp_path / "voluum-home"
    monkeypatch.setenv("VOLUUM_CLI_HOME", str(home))
    monkeypatch.delenv("VOLUUM_TOKEN", raising=False)
    monkeypatch.delenv("VOLUUM_BASE_URL", raising=False)
    monkeypatch.delenv("VOLUUM_DEBUG", raising=False)
    return home


@pytest.fixture
def run_cli(config_home: Path, sleep_calls: list[float], capsys: pytest.CaptureFixture[str]):
    """Invoke ``main`` with JSON output and return ``(exit_code, envelope)``."""

    import json

    from voluum_cli.cli import main

    def _run(*args: str, token: str | None = "test-token") -> tuple[int, dict]:
        argv = ["--json", "--baseUrl", BASE_URL]
        if token is not None:
            argv += ["--token", token]
        code = main([*argv, *args])
        out = capsys.readouterr().out
        return code, json.loads(out)

    return _run


@pytest.fixture
def base_url() -> str:
    return BASE_URL
