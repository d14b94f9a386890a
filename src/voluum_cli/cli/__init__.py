from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from dataclasses import replace

import click
import typer
from rich.console import Console
from rich.logging import RichHandler

from .. import __version__
from ..config import clean_string
from ..errors import OPERATIONAL_ERROR, CliError, to_cli_error
from ..output import CliResult, OutputOptions, emit, failure
from . import api, auth, reports, resources
from .common import CliState, GlobalOptions, get_state

logger = logging.getLogger(__name__)

DEBUG_ENV = "VOLUUM_DEBUG"

app = typer.Typer(help="Community CLI wrapper for public Voluum REST APIs (unofficial)")


def _register_sub_app(name: str, sub_app: typer.Typer) -> None:
    app.add_typer(sub_app, name=name)


_register_sub_app("auth", auth.app)
resources.register(app)
_register_sub_app("reports", reports.app)
_register_sub_app("api", api.app)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def root_callback(
    ctx: typer.Context,
    base_url: str | None = typer.Option(None, "--baseUrl", help="Override Voluum API base URL"),
    token: str | None = typer.Option(None, "--token", help="Override auth token for this command"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON instead of YAML"),
    pretty: bool = typer.Option(
        False, "--pretty", help="Output as pretty-printed JSON (implies --json)"
    ),
    silent: bool = typer.Option(False, "--silent", help="Suppress stdout output"),
    out: str | None = typer.Option(None, "--out", help="Write output to file"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version"
    ),
) -> None:
    """Capture global options shared by every subcommand."""

    state = get_state(ctx)
    state.options = GlobalOptions(
        base_url=clean_string(base_url),
        token=clean_string(token),
        output=OutputOptions(
            json=json_output or pretty,
            pretty=pretty,
            silent=silent,
            out=clean_string(out),
        ),
    )


_GLOBAL_VALUE_FLAGS = frozenset({"--baseUrl", "--token", "--out"})
_GLOBAL_BOOL_FLAGS = frozenset({"--json", "--pretty", "--silent"})


def hoist_global_options(argv: Sequence[str]) -> list[str]:
    """Move global flags given after a subcommand to the front of ``argv``."""

    hoisted: list[str] = []
    rest: list[str] = []
    index = 0
    while index < len(argv):
        arg = argv[index]
        if arg == "--":
            rest.extend(argv[index:])
            break
        name = arg.split("=", 1)[0]
        if arg in _GLOBAL_BOOL_FLAGS:
            hoisted.append(arg)
        elif name in _GLOBAL_VALUE_FLAGS and "=" in arg:
            hoisted.append(arg)
        elif arg in _GLOBAL_VALUE_FLAGS and index + 1 < len(argv):
            hoisted.extend(argv[index : index + 2])
            index += 1
        else:
            rest.append(arg)
        index += 1
    return hoisted + rest


def _scan_output_options(args: Sequence[str]) -> OutputOptions:
    """Best-effort output flags for failures raised before the root callback runs."""

    flags = list(args[: args.index("--")] if "--" in args else args)
    out: str | None = None
    for index, arg in enumerate(flags):
        if arg.startswith("--out="):
            out = arg.split("=", 1)[1]
        elif arg == "--out" and index + 1 < len(flags):
            out = flags[index + 1]
    pretty = "--pretty" in flags
    return OutputOptions(
        json="--json" in flags or pretty,
        pretty=pretty,
        silent="--silent" in flags,
        out=clean_string(out),
    )


def _configure_logging() -> None:
    if not os.getenv(DEBUG_ENV):
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI once, emit a single envelope and return the process exit code."""

    _configure_logging()
    args = hoist_global_options(list(sys.argv[1:] if argv is None else argv))
    state = CliState(options=GlobalOptions(output=_scan_output_options(args)))
    try:
        outcome = app(args=args, prog_name="voluum", obj=state, standalone_mode=False)
    except click.UsageError as exc:
        outcome = failure(to_cli_error(exc))
    except click.Abort:
        outcome = failure(CliError("Aborted.", code=OPERATIONAL_ERROR))
    except Exception as exc:
        logger.debug("Unhandled failure", exc_info=True)
        outcome = failure(to_cli_error(exc))

    if not isinstance(outcome, CliResult):
        # --help and --version exit through click with an integer code.
        return outcome if isinstance(outcome, int) else 0

    options = state.options.output
    try:
        emit(outcome, options)
    except OSError as exc:
        outcome = failure(CliError(f"Failed to write output file: {exc}", code=OPERATIONAL_ERROR))
        emit(outcome, replace(options, out=None))
    return outcome.exit_code


__all__ = ["app", "auth", "hoist_global_options", "main", "reports", "resources"]
