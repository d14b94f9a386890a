from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from functools import wraps
from pathlib import Path
from types import TracebackType
from typing import Any, ParamSpec

import typer

from ..config import ConfigStore, SessionConfig, resolve_runtime_config
from ..endpoints import AUTH_HEADER_NAME, ensure_leading_slash
from ..errors import UNEXPECTED, OperationalError, to_cli_error
from ..http_client import VoluumClient
from ..output import CliResult, OutputOptions, failure
from ..reports.query import parse_report_query_pairs

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(
    r"^(\d{4})(?:-(\d{2})(?:-(\d{2})"
    r"(?:[T ](\d{2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?)?)?$",
    re.IGNORECASE,
)


@dataclass
class GlobalOptions:
    base_url: str | None = None
    token: str | None = None
    output: OutputOptions = field(default_factory=OutputOptions)


@dataclass
class CliState:
    """Per-invocation state shared between the root callback and ``main``."""

    options: GlobalOptions = field(default_factory=GlobalOptions)
    store: ConfigStore | None = None


def get_state(ctx: typer.Context) -> CliState:
    return ctx.ensure_object(CliState)


@dataclass
class CommandContext:
    options: GlobalOptions
    base_url: str
    token: str | None
    client: VoluumClient
    file_config: SessionConfig
    store: ConfigStore

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> CommandContext:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def get_command_context(ctx: typer.Context) -> CommandContext:
    """Resolve runtime config and build a client for the current invocation."""

    state = get_state(ctx)
    store = state.store or ConfigStore()
    runtime = resolve_runtime_config(
        base_url=state.options.base_url, token=state.options.token, store=store
    )
    token = runtime.token
    client = VoluumClient(runtime.base_url, lambda: token, auth_header_name=AUTH_HEADER_NAME)
    return CommandContext(
        options=state.options,
        base_url=runtime.base_url,
        token=token,
        client=client,
        file_config=runtime.file_config,
        store=store,
    )


CommandParams = ParamSpec("CommandParams")


def handle_cli_errors(
    func: Callable[CommandParams, CliResult],
) -> Callable[CommandParams, CliResult]:
    """Convert anything a command raises into a failure envelope."""

    @wraps(func)
    def wrapper(*args: CommandParams.args, **kwargs: CommandParams.kwargs) -> CliResult:
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            error = to_cli_error(exc)
            if error.code == UNEXPECTED:
                logger.debug("Unexpected failure in %s", func.__name__, exc_info=True)
            return failure(error)

    return wrapper


def require_token(token: str | None) -> str:
    if not token:
        raise OperationalError("No auth token found. Run `voluum auth login` or set VOLUUM_TOKEN.")
    return token


def mask_token(token: str | None) -> str | None:
    if not token:
        return None
    if len(token) <= 8:
        return f"{token[:2]}…{token[-2:]}"
    return f"{token[:4]}…{token[-4:]}"


def parse_key_value_pairs(raw: str | None) -> dict[str, str] | None:
    """Parse ``--filters``/``--query`` style pairs; ``None`` when nothing was given."""

    pairs = parse_report_query_pairs(raw)
    return pairs or None


def parse_json_body(raw: str, option_name: str = "--body") -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise OperationalError(f"Invalid JSON for {option_name}.") from exc


def _is_iso_date(value: str) -> bool:
    match = _ISO_DATE.match((value or "").strip())
    if match is None:
        return False
    year, month, day, hour, minute, second = (
        int(part) if part else default
        for part, default in zip(match.groups()[:6], (0, 1, 1, 0, 0, 0))
    )
    try:
        datetime(year, month, day, hour, minute, second)
    except ValueError:
        return False
    return True


def assert_iso_date(value: str, option_name: str) -> None:
    """Accept ``YYYY[-MM[-DD[(T| )HH:MM[:SS[.fff]][Z|±HH:MM]]]]`` and nothing else."""

    if not _is_iso_date(value):
        raise OperationalError(f"Invalid {option_name}. Expected an ISO date/time string.")


def normalize_path(path: str) -> str:
    trimmed = path.strip()
    if trimmed.lower().startswith(("http://", "https://")):
        return trimmed
    return ensure_leading_slash(trimmed)


def read_data_file(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except ValueError as exc:
        raise OperationalError(f"Invalid JSON in file: {path}") from exc


def resolve_data_input(data: str | None, file: str | None) -> Any:
    """Return the request body from exactly one of ``--data`` or ``--file``."""

    if data and file:
        raise OperationalError("Use either --data or --file, not both.")
    if file:
        return read_data_file(file)
    if data:
        return parse_json_body(data, "--data")
    raise OperationalError("Either --data or --file is required.")


__all__ = [
    "CliState",
    "CommandContext",
    "GlobalOptions",
    "assert_iso_date",
    "get_command_context",
    "get_state",
    "handle_cli_errors",
    "mask_token",
    "normalize_path",
    "parse_json_body",
    "parse_key_value_pairs",
    "require_token",
    "resolve_data_input",
]
