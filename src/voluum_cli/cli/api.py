from __future__ import annotations

import typer

from ..output import CliResult, success
from .common import (
    get_command_context,
    handle_cli_errors,
    normalize_path,
    parse_json_body,
    parse_key_value_pairs,
)

app = typer.Typer(help="Generic API passthrough")

PATH_ARGUMENT = typer.Argument(..., help="API path (e.g. /campaign) or absolute URL")
QUERY_OPTION = typer.Option(None, "--query", help="Comma-separated key=value query params")


@app.command("get", help="Send a GET request to a Voluum path")
@handle_cli_errors
def api_get(
    ctx: typer.Context,
    path: str = PATH_ARGUMENT,
    query: str | None = QUERY_OPTION,
) -> CliResult:
    params = parse_key_value_pairs(query)
    request_path = normalize_path(path)
    with get_command_context(ctx) as context:
        response = context.client.get(request_path, params)
    return success({"method": "GET", "path": request_path, "response": response})


@app.command("post", help="Send a POST request to a Voluum path")
@handle_cli_errors
def api_post(
    ctx: typer.Context,
    path: str = PATH_ARGUMENT,
    body: str = typer.Option(..., "--body", help="JSON body string"),
    query: str | None = QUERY_OPTION,
) -> CliResult:
    params = parse_key_value_pairs(query)
    request_path = normalize_path(path)
    payload = parse_json_body(body)
    with get_command_context(ctx) as context:
        response = context.client.post(request_path, payload, params)
    return success({"method": "POST", "path": request_path, "response": response})


__all__ = ["api_get", "api_post", "app"]
