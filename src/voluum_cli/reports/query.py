from __future__ import annotations

import json
from typing import Any

from ..errors import OperationalError

ReportQuery = dict[str, Any]


def _has_text(value: str | None) -> bool:
    return isinstance(value, str) and bool(value.strip())


def parse_report_query_pairs(raw: str | None) -> ReportQuery:
    """Parse ``key=value,key=value`` into a dict, rejecting malformed pairs."""

    if not _has_text(raw):
        return {}
    output: ReportQuery = {}
    for pair in (part.strip() for part in str(raw).split(",")):
        if not pair:
            continue
        key, sep, value = pair.partition("=")
        key = key.strip()
        value = value.strip()
        if not sep or not key or not value:
            raise OperationalError(f'Invalid key=value pair: "{pair}"')
        output[key] = value
    return output


def parse_report_query_json(raw: str | None) -> ReportQuery:
    """Parse a JSON object string; arrays, scalars and ``null`` are rejected."""

    if not _has_text(raw):
        return {}
    try:
        parsed = json.loads(str(raw))
    except ValueError as exc:
        raise OperationalError("Invalid JSON for --query-json.") from exc
    if not isinstance(parsed, dict):
        raise OperationalError("--query-json must be a JSON object.")
    return parsed


def merge_report_query_inputs(query: str | None, query_json: str | None) -> ReportQuery:
    """Combine ``--query`` pairs with ``--query-json``; JSON keys win on overlap."""

    merged = parse_report_query_pairs(query)
    merged.update(parse_report_query_json(query_json))
    return merged


def _to_query_primitive(value: Any) -> str | int | float | bool | None:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return str(value)


def to_query_params(query: ReportQuery) -> dict[str, Any]:
    """Turn decoded JSON values into query primitives the HTTP client accepts."""

    params: dict[str, Any] = {}
    for key, value in query.items():
        if isinstance(value, list):
            params[key] = [_to_query_primitive(item) for item in value]
        else:
            params[key] = _to_query_primitive(value)
    return params


__all__ = [
    "ReportQuery",
    "merge_report_query_inputs",
    "parse_report_query_json",
    "parse_report_query_pairs",
    "to_query_params",
]
