from __future__ import annotations

from typing import Literal

NormalizedReportType = Literal[
    "text", "integer", "money", "percentage", "boolean", "duration_seconds", "unknown"
]

NORMALIZED_REPORT_TYPES: tuple[NormalizedReportType, ...] = (
    "text",
    "integer",
    "money",
    "percentage",
    "boolean",
    "duration_seconds",
    "unknown",
)

_EXACT_TYPES: dict[str, NormalizedReportType] = {
    "string": "text",
    "string-value": "text",
    "integer": "integer",
    "percentage": "percentage",
    "yesno": "boolean",
    "seconds-to-hhmmss": "duration_seconds",
}


def normalize_voluum_column_type(raw_type: str) -> NormalizedReportType:
    """Collapse a Voluum column type string onto the normalized report types."""

    normalized = (raw_type or "").strip().lower()
    if normalized in _EXACT_TYPES:
        return _EXACT_TYPES[normalized]
    if normalized.startswith("monetary"):
        return "money"
    return "unknown"
