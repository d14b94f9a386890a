from __future__ import annotations

import json
import sys

import click
import httpx
import pytest
import yaml
from typer.testing import CliRunner

import voluum_cli.cli
from voluum_cli import __version__
from voluum_cli.cli import app, hoist_global_options, main

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated(config_home, sleep_calls):
    yield


def test_hoist_moves_global_flags_to_front():
    argv = [
        "campaigns",
        "get",
        "--id",
        "c-1",
        "--json",
        "--token",
        "t",
        "--out=result.json",
        "--",
        "--pretty",
    ]

    assert hoist_global_options(argv) == [
        "--json",
        "--token",
        "t",
        "--out=result.json",
        "campaigns",
        "get",
        "--id",
        "c-1",
        "--",
        "--pretty",
    ]


def test_global_flags_after_subcommand(respx_mock, base_url, capsys):
    respx_mock.get(f"{base_url}/offer").mock(
        return_value=httpx.Response(200, json={"offers": []})
    )

    code = main(["offers", "list", "--json", "--baseUrl", base_url, "--token", "t"])

    assert code == 0
    assert json.loads(capsys.readouterr().out) == {"ok": True, "data": {"offers": []}}


def test_default_output_is_yaml(respx_mock, base_url, capsys):
    respx_mock.get(f"{base_url}/flow").mock(return_value=httpx.Response(200, json=[]))

    code = main(["--baseUrl", base_url, "--token", "t", "flows", "list"])

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("ok: true\n")
    assert yaml.safe_load(out) == {"ok": True, "data": {"flows": []}}


def test_unknown_command_is_usage_error(capsys):
    code = main(["--json", "nope"])

    envelope = json.loads(capsys.readouterr().out)
    assert code == 1
    assert envelope["ok"] is False
    assert envelope["error"]["code"] == "USAGE_ERROR"
    assert "nope" in envelope["error"]["message"]


def test_unknown_option_is_usage_error(capsys):
    code = main(["campaigns", "list", "--bogus"])

    envelope = yaml.safe_load(capsys.readouterr().out)
    assert code == 1
    assert envelope["error"]["code"] == "USAGE_ERROR"


def test_missing_command_is_usage_error(capsys):
    code = main(["--json"])

    envelope = json.loads(capsys.readouterr().out)
    assert code == 1
    assert envelope["error"]["code"] == "USAGE_ERROR"


def test_unexpected_failure_exits_with_2(monkeypatch, capsys):
    def explode(**_kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("voluum_cli.cli.common.resolve_runtime_config", explode)

    code = main(["--json", "campaigns", "list"])

    envelope = json.loads(capsys.readouterr().out)
    assert code == 2
    assert envelope["error"] == {
        "message": "boom",
        "code": "UNEXPECTED",
        "details": {"type": "RuntimeError"},
    }


def test_network_failure_envelope(respx_mock, base_url, capsys):
    respx_mock.get(f"{base_url}/campaign").mock(side_effect=httpx.ConnectError("refused"))

    code = main(["--json", "--baseUrl", base_url, "--token", "t", "campaigns", "list"])

    envelope = json.loads(capsys.readouterr().out)
    assert code == 1
    assert envelope["error"]["code"] == "NETWORK_ERROR"
    assert "refused" in envelope["error"]["message"]
    assert "status" not in envelope["error"]


def test_out_file_and_silent(respx_mock, base_url, tmp_path, capsys):
    respx_mock.get(f"{base_url}/lander").mock(
        return_value=httpx.Response(200, json={"landers": [{"id": "l-1"}]})
    )
    target = tmp_path / "reports" / "landers.json"

    code = main(
        ["--pretty", "--silent", "--out", str(target), "--baseUrl", base_url, "--token", "t"]
        + ["landers", "list"]
    )

    assert code == 0
    assert capsys.readouterr().out == ""
    assert json.loads(target.read_text(encoding="utf-8"))["data"] == {"landers": [{"id": "l-1"}]}


def test_unwritable_out_file_reports_operational_error(respx_mock, base_url, tmp_path, capsys):
    respx_mock.get(f"{base_url}/lander").mock(return_value=httpx.Response(200, json=[]))
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    code = main(
        ["--json", "--out", str(blocker / "out.json"), "--baseUrl", base_url, "--token", "t"]
        + ["landers", "list"]
    )

    envelope = json.loads(capsys.readouterr().out)
    assert code == 1
    assert envelope["error"]["code"] == "OPERATIONAL_ERROR"
    assert "Failed to write output file" in envelope["error"]["message"]


def test_env_token_and_base_url_are_used(monkeypatch, respx_mock, capsys):
    monkeypatch.setenv("VOLUUM_TOKEN", "env-token")
    monkeypatch.setenv("VOLUUM_BASE_URL", "https://env.voluum.test")
    route = respx_mock.get("https://env.voluum.test/offer").mock(
        return_value=httpx.Response(200, json=[])
    )

    code = main(["--json", "offers", "list"])

    assert code == 0
    assert route.calls[0].request.headers["cwauth-token"] == "env-token"


def test_help_returns_zero(capsys):
    assert main(["--help"]) == 0
    assert "Usage" in capsys.readouterr().out


def test_version_flag(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == __version__


def test_root_help_lists_command_groups():
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for group in ("auth", "campaigns", "traffic-sources", "reports", "api"):
        assert group in result.stdout


def test_breakdown_help_lists_presets():
    result = runner.invoke(app, ["reports", "breakdown", "--help"])

    assert result.exit_code == 0
    assert "Run predefined report breakdowns" in result.stdout
    assert "--by" in result.stdout


def test_parse_failures_are_click_usage_errors():
    with pytest.raises(click.UsageError):
        app(args=["campaigns", "get"], prog_name="voluum", standalone_mode=False)


def test_root_callback_keeps_common_module_reachable():
    assert voluum_cli.cli.common is sys.modules["voluum_cli.cli.common"]
