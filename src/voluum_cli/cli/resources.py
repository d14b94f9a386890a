"""CRUD command groups shared by every Voluum resource family."""

from __future__ import annotations

import typer

from ..endpoints import RESOURCES, ResourceEndpoints
from ..normalize import unwrap_list
from ..output import CliResult, success
from .common import get_command_context, handle_cli_errors, require_token, resolve_data_input

DATA_HELP = "JSON body string"
FILE_HELP = "Path to a JSON file holding the request body"


def build_resource_app(resource: ResourceEndpoints) -> typer.Typer:
    """Return a Typer group exposing list/get/create/update/delete for ``resource``."""

    app = typer.Typer(help=f"{resource.label} operations")
    plural = resource.label.lower() + "s"
    id_help = f"{resource.label} ID"

    @app.command("list", help=f"List {plural}")
    @handle_cli_errors
    def list_items(ctx: typer.Context) -> CliResult:
        with get_command_context(ctx) as context:
            require_token(context.token)
            response = context.client.get(resource.list_path)
        return success({resource.plural_key: unwrap_list(response, resource.plural_key)})

    @app.command("get", help=f"Get {resource.label.lower()} by ID")
    @handle_cli_errors
    def get_item(
        ctx: typer.Context,
        resource_id: str = typer.Option(..., "--id", help=id_help),
    ) -> CliResult:
        with get_command_context(ctx) as context:
            require_token(context.token)
            response = context.client.get(resource.get_path(resource_id))
        return success({resource.singular_key: response})

    @app.command("create", help=f"Create a new {resource.label.lower()}")
    @handle_cli_errors
    def create_item(
        ctx: typer.Context,
        data: str | None = typer.Option(None, "--data", help=DATA_HELP),
        file: str | None = typer.Option(None, "--file", help=FILE_HELP),
    ) -> CliResult:
        with get_command_context(ctx) as context:
            require_token(context.token)
            body = resolve_data_input(data, file)
            response = context.client.post(resource.create_path, body)
        return success({resource.singular_key: response})

    @app.command("update", help=f"Update an existing {resource.label.lower()}")
    @handle_cli_errors
    def update_item(
        ctx: typer.Context,
        resource_id: str = typer.Option(..., "--id", help=id_help),
        data: str | None = typer.Option(None, "--data", help=DATA_HELP),
        file: str | None = typer.Option(None, "--file", help=FILE_HELP),
    ) -> CliResult:
        with get_command_context(ctx) as context:
            require_token(context.token)
            body = resolve_data_input(data, file)
            response = context.client.put(resource.update_path(resource_id), body)
        return success({resource.singular_key: response})

    @app.command("delete", help=f"Delete a {resource.label.lower()}")
    @handle_cli_errors
    def delete_item(
        ctx: typer.Context,
        resource_id: str = typer.Option(..., "--id", help=id_help),
    ) -> CliResult:
        with get_command_context(ctx) as context:
            require_token(context.token)
            response = context.client.delete(resource.delete_path(resource_id))
        return success({"deleted": True, "id": resource_id, "response": response})

    return app


def register(app: typer.Typer) -> None:
    for resource in RESOURCES:
        app.add_typer(build_resource_app(resource), name=resource.name)


__all__ = ["build_resource_app", "register"]
