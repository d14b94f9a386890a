from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import typer

from ..endpoints import REPORTS
from ..errors import OperationalError
from ..normalize import strip_report_noise
from ..output import CliResult, success
from ..reports.query import merge_report_query_inputs, to_query_params
from ..reports.schema import (
    SchemaFilter,
    extract_report_schema,
    filter_schema_columns,
    parse_schema_type,
)
from .common import (
    assert_iso_date,
    get_command_context,
    handle_cli_errors,
    normalize_path,
    parse_key_value_pairs,
    require_token,
)

app = typer.Typer(help="Reporting operations")

REPORT_QUERY_PARAMETER_CATALOG: dict[str, Any] = {
    "required": ["from", "to"],
    "common": ["groupBy", "limit", "offset", "sort", "columns"],
    "passthrough": "Additional Voluum query parameters are forwarded as-is.",
}

REPORT_QUERY_HELP_TEXT = """\
Examples:

  voluum reports query --query from=2026-02-01,to=2026-02-18,groupBy=country,columns=visits,conversions

  voluum reports query --path /report/conversions --query from=2026-02-01,to=2026-02-18,limit=100,offset=100,sort=visits,direction=desc

  voluum reports query --path /report/conversions --query from=2026-02-01,to=2026-02-18,limit=100 --query-json '{"limit":25,"offset":50}'

--query-json overrides duplicate keys from --query.
"""

REPORT_SCHEMA_HELP_TEXT = """\
Examples:

  voluum reports schema --path /report/conversions --query from=2026-02-01,to=2026-02-18 --groupable --type money --search revenue

  voluum reports schema --path /report/conversions --query from=2026-02-01,to=2026-02-18 --restrictable --with-query-params
"""

REPORT_BREAKDOWN_HELP_TEXT = """\
Presets: offer | offer-by-campaign | flow | traffic-source | lander

Examples:

  voluum reports breakdown --by offer --from 2026-02-01T00:00:00.000Z --to 2026-02-08T00:00:00.000Z

  voluum reports breakdown --by offer-by-campaign --campaignId <id> --from 2026-02-01T00:00:00.000Z --to 2026-02-08T00:00:00.000Z

  voluum reports breakdown --by traffic-source --from 2026-02-01T00:00:00.000Z --to 2026-02-08T00:00:00.000Z --limit 200
"""

_METRIC_COLUMNS = "conversions,revenue,profit,roi,visits,cv,epc"


@dataclass(frozen=True)
class BreakdownPreset:
    group_by: str
    columns: str


BREAKDOWN_PRESETS: dict[str, BreakdownPreset] = {
    "offer": BreakdownPreset("offerId", f"offerId,offerName,{_METRIC_COLUMNS}"),
    "offer-by-campaign": BreakdownPreset(
        "campaignId,offerId",
        f"campaignId,campaignName,offerId,offerName,{_METRIC_COLUMNS}",
    ),
    "flow": BreakdownPreset("flowId", f"flowId,flowName,{_METRIC_COLUMNS}"),
    "traffic-source": BreakdownPreset(
        "trafficSourceId", f"trafficSourceId,trafficSourceName,{_METRIC_COLUMNS}"
    ),
    "lander": BreakdownPreset("landerId", f"landerId,landerName,{_METRIC_COLUMNS}"),
}


def parse_breakdown_preset(value: str) -> str:
    normalized = value.strip().lower()
    if normalized in BREAKDOWN_PRESETS:
        return normalized
    raise OperationalError(
        f"Invalid --by value. Expected one of: {', '.join(BREAKDOWN_PRESETS)}."
    )


def _check_limit(limit: int | None) -> None:
    if limit is not None and limit <= 0:
        raise OperationalError("--limit must be a positive integer.")


def _check_offset(offset: int | None) -> None:
    if offset is not None and offset < 0:
        raise OperationalError("--offset must be a non-negative integer.")


def _with_range(from_: str, to: str, response: Any, **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {"from": from_, "to": to, **extra}
    if isinstance(response, dict):
        data.update(response)
    else:
        data["result"] = response
    return data


FROM_OPTION = typer.Option(..., "--from", help="Start datetime (ISO string)")
TO_OPTION = typer.Option(..., "--to", help="End datetime (ISO string)")
PATH_OPTION = typer.Option(REPORTS.summary_path, "--path", help="Report endpoint path")
QUERY_OPTION = typer.Option(None, "--query", help="Comma-separated key=value query params")
QUERY_JSON_OPTION = typer.Option(
    None, "--query-json", help="JSON object for report query params"
)


@app.command("summary", help="Run summary report")
@handle_cli_errors
def reports_summary(
    ctx: typer.Context,
    from_: str = FROM_OPTION,
    to: str = TO_OPTION,
    group_by: str | None = typer.Option(None, "--groupBy", help="Grouping field"),
    filters: str | None = typer.Option(
        None, "--filters", help="Comma-separated key=value pairs"
    ),
) -> CliResult:
    assert_iso_date(from_, "--from")
    assert_iso_date(to, "--to")

    with get_command_context(ctx) as context:
        require_token(context.token)
        query: dict[str, Any] = {"from": from_, "to": to, "groupBy": group_by or "campaign"}
        query.update(parse_key_value_pairs(filters) or {})
        response = context.client.get(REPORTS.summary_path, query)

    cleaned = strip_report_noise(response)
    return success(_with_range(from_, to, cleaned, groupBy=query["groupBy"]))


@app.command("raw", help="Run raw conversions report")
@handle_cli_errors
def reports_raw(
    ctx: typer.Context,
    from_: str = FROM_OPTION,
    to: str = TO_OPTION,
    limit: int | None = typer.Option(None, "--limit", help="Maximum rows"),
) -> CliResult:
    assert_iso_date(from_, "--from")
    assert_iso_date(to, "--to")
    _check_limit(limit)

    with get_command_context(ctx) as context:
        require_token(context.token)
        query: dict[str, Any] = {"from": from_, "to": to}
        if limit is not None:
            query["limit"] = limit
        response = context.client.get(REPORTS.raw_path, query)

    return success(_with_range(from_, to, strip_report_noise(response)))


@app.command(
    "query", help="Run a report query against a selected report path", epilog=REPORT_QUERY_HELP_TEXT
)
@handle_cli_errors
def reports_query(
    ctx: typer.Context,
    path: str = PATH_OPTION,
    query: str | None = QUERY_OPTION,
    query_json: str | None = QUERY_JSON_OPTION,
) -> CliResult:
    with get_command_context(ctx) as context:
        require_token(context.token)
        report_path = normalize_path(path)
        merged = merge_report_query_inputs(query, query_json)
        response = context.client.get(report_path, to_query_params(merged))

    return success(
        {"path": report_path, "query": merged, "response": strip_report_noise(response)}
    )


@app.command(
    "schema", help="Inspect and filter report schema metadata", epilog=REPORT_SCHEMA_HELP_TEXT
)
@handle_cli_errors
def reports_schema(
    ctx: typer.Context,
    path: str = PATH_OPTION,
    query: str | None = QUERY_OPTION,
    query_json: str | None = QUERY_JSON_OPTION,
    groupable: bool = typer.Option(False, "--groupable", help="Only include groupable columns"),
    restrictable: bool = typer.Option(
        False, "--restrictable", help="Only include restrictable columns"
    ),
    normalized_type: str | None = typer.Option(
        None, "--type", help="Filter by normalized type"
    ),
    search: str | None = typer.Option(None, "--search", help="Search schema columns by text"),
    with_query_params: bool = typer.Option(
        False, "--with-query-params", help="Include the report query parameter catalog"
    ),
) -> CliResult:
    schema_filter = SchemaFilter(
        groupable=groupable,
        restrictable=restrictable,
        normalized_type=parse_schema_type(normalized_type),
        search=search,
    )

    with get_command_context(ctx) as context:
        require_token(context.token)
        report_path = normalize_path(path)
        merged = merge_report_query_inputs(query, query_json)
        response = context.client.get(report_path, to_query_params(merged))

    columns = filter_schema_columns(extract_report_schema(response), schema_filter)
    data: dict[str, Any] = {
        "path": report_path,
        "query": merged,
        "columns": [column.to_payload() for column in columns],
    }
    if with_query_params:
        data["queryParameters"] = REPORT_QUERY_PARAMETER_CATALOG
    return success(data)


@app.command(
    "breakdown",
    help="Run predefined report breakdowns by common entities",
    epilog=REPORT_BREAKDOWN_HELP_TEXT,
)
@handle_cli_errors
def reports_breakdown(
    ctx: typer.Context,
    by: str = typer.Option(
        ..., "--by", help=f"Breakdown preset: {' | '.join(BREAKDOWN_PRESETS)}"
    ),
    from_: str = FROM_OPTION,
    to: str = TO_OPTION,
    path: str = PATH_OPTION,
    campaign_id: str | None = typer.Option(None, "--campaignId", help="Campaign filter"),
    filters: str | None = typer.Option(
        None, "--filters", help="Comma-separated key=value filters"
    ),
    columns: str | None = typer.Option(None, "--columns", help="Override default columns"),
    limit: int | None = typer.Option(None, "--limit", help="Maximum rows"),
    offset: int | None = typer.Option(None, "--offset", help="Pagination offset"),
) -> CliResult:
    assert_iso_date(from_, "--from")
    assert_iso_date(to, "--to")
    _check_limit(limit)
    _check_offset(offset)
    preset_name = parse_breakdown_preset(by)
    preset = BREAKDOWN_PRESETS[preset_name]

    with get_command_context(ctx) as context:
        require_token(context.token)
        report_path = normalize_path(path)
        query: dict[str, Any] = {
            "from": from_,
            "to": to,
            "groupBy": preset.group_by,
            "columns": (columns or "").strip() or preset.columns,
        }
        if limit is not None:
            query["limit"] = limit
        if offset is not None:
            query["offset"] = offset
        if campaign_id and campaign_id.strip():
            query["campaignId"] = campaign_id.strip()
        query.update(parse_key_value_pairs(filters) or {})
        response = context.client.get(report_path, query)

    return success(
        {
            "preset": preset_name,
            "path": report_path,
            "query": query,
            "response": strip_report_noise(response),
        }
    )


__all__ = ["BREAKDOWN_PRESETS", "REPORT_QUERY_PARAMETER_CATALOG", "app", "parse_breakdown_preset"]
