from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer
import yaml

from .errors import UNEXPECTED, CliError

MAX_STDOUT_CHARS = 100_000


@dataclass(frozen=True)
class CliResult:
    """Success/failure envelope returned by every command."""

    ok: bool
    data: Any = None
    meta: dict[str, Any] | None = None
    error: CliError | None = None

    def to_dict(self) -> dict[str, Any]:
        if not self.ok:
            error = self.error or CliError("Unexpected error", code=UNEXPECTED)
            return {"ok": False, "error": error.to_dict()}
        payload: dict[str, Any] = {"ok": True, "data": self.data}
        if self.meta:
            payload["meta"] = self.meta
        return payload

    @property
    def exit_code(self) -> int:
        if self.ok:
            return 0
        if self.error is not None and self.error.code == UNEXPECTED:
            return 2
        return 1


def success(data: Any, meta: dict[str, Any] | None = None) -> CliResult:
    return CliResult(ok=True, data=data, meta=meta or None)


def failure(error: CliError) -> CliResult:
    return CliResult(ok=False, error=error)


@dataclass(frozen=True)
class OutputOptions:
    json: bool = False
    pretty: bool = False
    silent: bool = False
    out: str | None = None

    @property
    def as_json(self) -> bool:
        return self.json or self.pretty


def render(result: CliResult, options: OutputOptions) -> str:
    """Serialize ``result`` as compact JSON, indented JSON, or YAML."""

    document = result.to_dict()
    if options.pretty:
        return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    if options.as_json:
        return json.dumps(document, ensure_ascii=False, separators=(",", ":")) + "\n"
    return yaml.safe_dump(
        document, sort_keys=False, allow_unicode=True, default_flow_style=False
    )


def truncate_for_stdout(payload: str, limit: int = MAX_STDOUT_CHARS) -> str:
    if len(payload) <= limit:
        return payload
    notice = (
        f"\n... output truncated ({limit} of {len(payload)} characters shown). "
        "Re-run with --out <file> to save the full result.\n"
    )
    return payload[:limit] + notice


def emit(result: CliResult, options: OutputOptions) -> str:
    """Write the rendered envelope to ``--out`` (full) and stdout (bounded)."""

    payload = render(result, options)
    if options.out:
        target = Path(options.out)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(payload, encoding="utf-8")
    if not options.silent:
        typer.echo(truncate_for_stdout(payload), nl=False)
    return payload


__all__ = [
    "CliResult",
    "MAX_STDOUT_CHARS",
    "OutputOptions",
    "emit",
    "failure",
    "render",
    "success",
    "truncate_for_stdout",
]
