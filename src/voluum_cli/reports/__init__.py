from __future__ import annotations

from .mapping import NORMALIZED_REPORT_TYPES, NormalizedReportType, normalize_voluum_column_type
from .query import merge_report_query_inputs, parse_report_query_json, parse_report_query_pairs
from .schema import ReportSchemaColumn, SchemaFilter, extract_report_schema, filter_schema_columns

__all__ = [
    "NORMALIZED_REPORT_TYPES",
    "NormalizedReportType",
    "ReportSchemaColumn",
    "SchemaFilter",
    "extract_report_schema",
    "filter_schema_columns",
    "merge_report_query_inputs",
    "normalize_voluum_column_type",
    "parse_report_query_json",
    "parse_report_query_pairs",
]
