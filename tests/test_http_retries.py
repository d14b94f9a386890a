from __future__ import annotations

import httpx

from voluum_cli.http_client import VoluumClient


def test_retries_on_429(respx_mock, sleep_calls):
    client = VoluumClient("https://example.com", token_getter=lambda: "t", max_retries=2)
    calls = {"n": 0}

    @respx_mock.route(method="GET", url="https://example.com/resource")
    def handler(request):
        calls["n"] += 1
        if calls["n"] < 3:
            return httpx.Response(429, headers={"Retry-After": "0"})
        return httpx.Response(200, json={"ok": True})

    assert client.get("resource") == {"ok": True}
    assert calls["n"] == 3
    assert sleep_calls == [0.25, 0.5]


def test_query_string_reaches_server(respx_mock, sleep_calls):
    route = respx_mock.get("https://example.com/report").mock(
        return_value=httpx.Response(200, json={"rows": []})
    )
    client = VoluumClient("https://example.com", token_getter=lambda: "t")

    client.get("/report", {"from": "2026-01-01", "groupBy": None, "column": ["a", "b"]})

    request = route.calls[0].request
    assert request.url.params.get_list("column") == ["a", "b"]
    assert "groupBy" not in request.url.params
    assert request.headers["cwauth-token"] == "t"
