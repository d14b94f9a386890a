"""Session login, identity lookup and logout commands."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Literal

import typer

from ..config import ConfigStore
from ..endpoints import AUTH, AUTH_HEADER_NAME, extract_auth_token, extract_token_expiry
from ..errors import ApiError, OperationalError
from ..http_client import VoluumClient
from ..output import CliResult, success
from .common import (
    get_command_context,
    get_state,
    handle_cli_errors,
    mask_token,
    require_token,
)

LoginMethod = Literal["emailPassword", "accessKeys"]

app = typer.Typer(help="Authentication commands")


def validate_login_options(
    *,
    email: str | None,
    password: str | None,
    access_id: str | None,
    access_key: str | None,
) -> LoginMethod:
    """Check that exactly one complete credential pair was supplied."""

    has_email_password = bool(email) or bool(password)
    has_access_keys = bool(access_id) or bool(access_key)

    if not has_email_password and not has_access_keys:
        raise OperationalError(
            "Provide either --email with --password, or --accessKeyId with --accessKey."
        )
    if has_email_password and has_access_keys:
        raise OperationalError(
            "Use one auth method only: either --email/--password OR --accessKeyId/--accessKey."
        )
    if has_email_password and not (email and password):
        raise OperationalError("Both --email and --password are required together.")
    if has_access_keys and not (access_id and access_key):
        raise OperationalError(
            "Both --accessId (or --accessKeyId) and --accessKey are required together."
        )
    return "accessKeys" if has_access_keys else "emailPassword"


def _utc_now_iso() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


@app.command("login", help="Login and store the session token locally")
@handle_cli_errors
def auth_login(
    ctx: typer.Context,
    email: str | None = typer.Option(None, "--email", help="Voluum account email"),
    password: str | None = typer.Option(None, "--password", help="Voluum account password"),
    access_id: str | None = typer.Option(None, "--accessId", help="Voluum access ID"),
    access_key_id: str | None = typer.Option(
        None, "--accessKeyId", help="Voluum access key ID (alias of --accessId)"
    ),
    access_key: str | None = typer.Option(None, "--accessKey", help="Voluum access key"),
) -> CliResult:
    resolved_access_id = access_id or access_key_id
    method = validate_login_options(
        email=email, password=password, access_id=resolved_access_id, access_key=access_key
    )

    with get_command_context(ctx) as context:
        if method == "accessKeys":
            login_path = AUTH.access_login_path or AUTH.login_path
            payload: dict[str, Any] = {"accessId": resolved_access_id, "accessKey": access_key}
        else:
            login_path = AUTH.login_path
            payload = {"email": email, "password": password}

        # The session endpoint must not receive a stale token.
        with VoluumClient(
            context.base_url, lambda: None, auth_header_name=AUTH_HEADER_NAME
        ) as login_client:
            response = login_client.post(login_path, payload)

        token = extract_auth_token(response)
        if not token:
            raise OperationalError(
                "Login succeeded but no token was found in the response. "
                "Update the token field probes in voluum_cli/endpoints.py."
            )
        created_at = _utc_now_iso()
        expires_at = extract_token_expiry(response)

        context.store.save(
            replace(
                context.file_config,
                base_url=context.base_url,
                token=token,
                token_created_at=created_at,
                token_expires_at=expires_at,
                last_login_email=email or context.file_config.last_login_email,
            )
        )

    return success(
        {
            "tokenSaved": True,
            "tokenMasked": mask_token(token),
            "baseUrl": context.base_url,
            "tokenCreatedAt": created_at,
            "tokenExpiresAt": expires_at,
        }
    )


@app.command("whoami", help="Show the current identity or local token metadata")
@handle_cli_errors
def auth_whoami(ctx: typer.Context) -> CliResult:
    with get_command_context(ctx) as context:
        token = require_token(context.token)
        local_metadata = {
            "tokenMasked": mask_token(token),
            "tokenCreatedAt": context.file_config.token_created_at,
            "tokenExpiresAt": context.file_config.token_expires_at,
            "baseUrl": context.base_url,
        }

        if not AUTH.whoami_path:
            return success({"source": "local", **local_metadata})

        try:
            identity = context.client.get(AUTH.whoami_path)
        except ApiError as exc:
            if exc.status != 404:
                raise
            return success(
                {
                    "source": "local",
                    "note": "whoami endpoint not found; returning local token metadata.",
                    **local_metadata,
                }
            )
    return success({"source": "remote", "identity": identity, **local_metadata})


@app.command("logout", help="Remove the locally stored token")
@handle_cli_errors
def auth_logout(ctx: typer.Context) -> CliResult:
    store = get_state(ctx).store or ConfigStore()
    store.clear_token()
    return success(
        {
            "tokenRemoved": True,
            "note": "Environment token VOLUUM_TOKEN (if set) still takes precedence for runtime auth.",
        }
    )


__all__ = ["app", "auth_login", "auth_logout", "auth_whoami", "validate_login_options"]
