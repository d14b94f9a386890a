from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import OperationalError
from .mapping import NORMALIZED_REPORT_TYPES, NormalizedReportType, normalize_voluum_column_type


class VoluumColumnMapping(BaseModel):
    """One ``columnMappings`` entry as returned by Voluum report endpoints."""

    key: str = ""
    label: str = ""
    type: str = ""
    can_group_by: bool = Field(default=False, alias="canGroupBy")
    can_be_restricted: bool = Field(default=False, alias="canBeRestricted")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("key", "label", "type", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("can_group_by", "can_be_restricted", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"true", "1", "yes"}
        return bool(value)


class ReportSchemaColumn(BaseModel):
    """Derived, read-only view of a report column."""

    key: str
    label: str
    voluum_type: str = Field(alias="voluumType")
    normalized_type: NormalizedReportType = Field(alias="normalizedType")
    can_group_by: bool = Field(alias="canGroupBy")
    can_be_restricted: bool = Field(alias="canBeRestricted")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def extract_report_schema(response: Any) -> list[ReportSchemaColumn]:
    """Build schema columns from a report response's ``columnMappings``."""

    if not isinstance(response, dict):
        return []
    mappings = response.get("columnMappings")
    if not isinstance(mappings, list):
        return []

    columns: list[ReportSchemaColumn] = []
    for item in mappings:
        if not isinstance(item, dict):
            continue
        mapping = VoluumColumnMapping.model_validate(item)
        columns.append(
            ReportSchemaColumn(
                key=mapping.key,
                label=mapping.label,
                voluumType=mapping.type,
                normalizedType=normalize_voluum_column_type(mapping.type),
                canGroupBy=mapping.can_group_by,
                canBeRestricted=mapping.can_be_restricted,
            )
        )
    return columns


def parse_schema_type(value: str | None) -> NormalizedReportType | None:
    if not value:
        return None
    normalized = value.strip().lower()
    for candidate in NORMALIZED_REPORT_TYPES:
        if candidate == normalized:
            return candidate
    raise OperationalError(
        f"Invalid --type value. Expected one of: {', '.join(NORMALIZED_REPORT_TYPES)}."
    )


@dataclass(frozen=True)
class SchemaFilter:
    groupable: bool = False
    restrictable: bool = False
    normalized_type: NormalizedReportType | None = None
    search: str | None = None

    def matches(self, column: ReportSchemaColumn) -> bool:
        if self.groupable and not column.can_group_by:
            return False
        if self.restrictable and not column.can_be_restricted:
            return False
        if self.normalized_type and column.normalized_type != self.normalized_type:
            return False
        needle = (self.search or "").strip().lower()
        if needle:
            haystack = (
                column.key,
                column.label,
                column.voluum_type,
                column.normalized_type,
            )
            if not any(needle in field.lower() for field in haystack):
                return False
        return True


def filter_schema_columns(
    columns: Iterable[ReportSchemaColumn], schema_filter: SchemaFilter
) -> list[ReportSchemaColumn]:
    return [column for column in columns if schema_filter.matches(column)]


__all__ = [
    "ReportSchemaColumn",
    "SchemaFilter",
    "VoluumColumnMapping",
    "extract_report_schema",
    "filter_schema_columns",
    "parse_schema_type",
]
