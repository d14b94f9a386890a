from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import click

NETWORK_ERROR = "NETWORK_ERROR"
USAGE_ERROR = "USAGE_ERROR"
OPERATIONAL_ERROR = "OPERATIONAL_ERROR"
UNEXPECTED = "UNEXPECTED"


class VoluumError(Exception):
    """Base error for the Voluum CLI."""


class OperationalError(VoluumError):
    """A local validation or precondition failure."""


class ApiError(VoluumError):
    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
        details: Any | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.details = details
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message}
        if self.code is not None:
            payload["code"] = self.code
        if self.status is not None:
            payload["status"] = self.status
        if self.details is not None:
            payload["details"] = self.details
        return payload


@dataclass(frozen=True)
class CliError:
    message: str
    code: str | None = None
    status: int | None = None
    details: Any | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message}
        if self.code is not None:
            payload["code"] = self.code
        if self.status is not None:
            payload["status"] = self.status
        if self.details is not None:
            payload["details"] = self.details
        return payload


def to_cli_error(exc: BaseException) -> CliError:
    """Map any raised value onto the CLI error taxonomy."""

    if isinstance(exc, ApiError):
        return CliError(exc.message, code=exc.code, status=exc.status, details=exc.details)
    if isinstance(exc, click.UsageError):
        return CliError(exc.format_message(), code=USAGE_ERROR)
    if isinstance(exc, (OperationalError, OSError)):
        return CliError(str(exc) or exc.__class__.__name__, code=OPERATIONAL_ERROR)
    return CliError(
        str(exc) or "Unexpected error",
        code=UNEXPECTED,
        details={"type": exc.__class__.__name__},
    )
