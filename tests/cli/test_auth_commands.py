from __future__ import annotations

# ruff: noqa: S101,S105,S106
import json

import httpx
import pytest

from voluum_cli.cli.auth import validate_login_options
from voluum_cli.config import ConfigStore, SessionConfig
from voluum_cli.errors import OperationalError


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({}, "Provide either --email"),
        ({"email": "a@b.test", "access_key": "k"}, "Use one auth method only"),
        ({"email": "a@b.test"}, "Both --email and --password"),
        ({"access_id": "id"}, "Both --accessId"),
    ],
)
def test_validate_login_options_rejects_bad_combinations(kwargs, message):
    options = {"email": None, "password": None, "access_id": None, "access_key": None}
    options.update(kwargs)

    with pytest.raises(OperationalError, match=message):
        validate_login_options(**options)


def test_validate_login_options_picks_method():
    assert (
        validate_login_options(email="a@b.test", password="pw", access_id=None, access_key=None)
        == "emailPassword"
    )
    assert (
        validate_login_options(email=None, password=None, access_id="id", access_key="k")
        == "accessKeys"
    )


def test_mixed_credentials_fail_before_any_request(run_cli, respx_mock, config_home):
    code, envelope = run_cli(
        "auth", "login", "--email", "a@b.test", "--password", "pw", "--accessKey", "k"
    )

    assert code == 1
    assert envelope["error"]["code"] == "OPERATIONAL_ERROR"
    assert respx_mock.calls.call_count == 0
    assert not (config_home / "config.json").exists()


def test_login_with_email_persists_session(run_cli, respx_mock, base_url, config_home):
    route = respx_mock.post(f"{base_url}/auth/session").mock(
        return_value=httpx.Response(
            200, json={"token": "abcd1234wxyz", "expirationTimestamp": "2026-12-31T00:00:00Z"}
        )
    )

    code, envelope = run_cli(
        "auth", "login", "--email", "me@example.test", "--password", "pw", token=None
    )

    assert code == 0
    data = envelope["data"]
    assert data["tokenSaved"] is True
    assert data["tokenMasked"] == "abcd…wxyz"
    assert data["baseUrl"] == base_url
    assert data["tokenExpiresAt"] == "2026-12-31T00:00:00Z"
    assert data["tokenCreatedAt"].endswith("Z")

    request = route.calls[0].request
    assert json.loads(request.content) == {"email": "me@example.test", "password": "pw"}
    assert "cwauth-token" not in request.headers

    stored = json.loads((config_home / "config.json").read_text(encoding="utf-8"))
    assert stored["token"] == "abcd1234wxyz"
    assert stored["baseUrl"] == base_url
    assert stored["lastLoginEmail"] == "me@example.test"


def test_login_with_access_keys_uses_access_session(run_cli, respx_mock, base_url):
    route = respx_mock.post(f"{base_url}/auth/access/session").mock(
        return_value=httpx.Response(200, json={"data": {"token": "zz-token-value"}})
    )

    code, envelope = run_cli(
        "auth", "login", "--accessKeyId", "key-id", "--accessKey", "secret", token=None
    )

    assert code == 0
    assert envelope["data"]["tokenExpiresAt"] is None
    assert json.loads(route.calls[0].request.content) == {
        "accessId": "key-id",
        "accessKey": "secret",
    }


def test_login_without_token_in_response_fails(run_cli, respx_mock, base_url, config_home):
    respx_mock.post(f"{base_url}/auth/session").mock(
        return_value=httpx.Response(200, json={"status": "ok"})
    )

    code, envelope = run_cli("auth", "login", "--email", "a@b.test", "--password", "pw")

    assert code == 1
    assert "no token was found" in envelope["error"]["message"]
    assert not (config_home / "config.json").exists()


def test_whoami_returns_remote_identity(run_cli, respx_mock, base_url):
    route = respx_mock.get(f"{base_url}/user/current").mock(
        return_value=httpx.Response(200, json={"email": "me@example.test"})
    )

    code, envelope = run_cli("auth", "whoami")

    assert code == 0
    assert envelope["data"]["source"] == "remote"
    assert envelope["data"]["identity"] == {"email": "me@example.test"}
    assert envelope["data"]["tokenMasked"] == "test…oken"
    assert route.calls[0].request.headers["cwauth-token"] == "test-token"


def test_whoami_falls_back_to_local_metadata_on_404(run_cli, respx_mock, base_url):
    respx_mock.get(f"{base_url}/user/current").mock(return_value=httpx.Response(404))

    code, envelope = run_cli("auth", "whoami")

    assert code == 0
    assert envelope["data"]["source"] == "local"
    assert "note" in envelope["data"]


def test_whoami_propagates_other_errors(run_cli, respx_mock, base_url):
    respx_mock.get(f"{base_url}/user/current").mock(return_value=httpx.Response(401))

    code, envelope = run_cli("auth", "whoami")

    assert code == 1
    assert envelope["error"]["status"] == 401


def test_whoami_requires_token(run_cli, respx_mock):
    code, envelope = run_cli("auth", "whoami", token=None)

    assert code == 1
    assert "No auth token found" in envelope["error"]["message"]


def test_logout_clears_stored_token(run_cli, config_home):
    store = ConfigStore()
    store.save(SessionConfig(base_url="https://api.voluum.test", token="secret"))

    code, envelope = run_cli("auth", "logout", token=None)

    assert code == 0
    assert envelope["data"]["tokenRemoved"] is True
    assert store.load() == SessionConfig(base_url="https://api.voluum.test")
