"""Shape adapters for inconsistent list responses and noisy report payloads."""

from __future__ import annotations

from typing import Any

# Closed list tied to the Voluum report row schema.
REPORT_ROW_STRIP_KEYS = frozenset(
    {
        "columnMappings",
        "actions",
        "hour",
        "pixelUrl",
        "postbackUrl",
        "campaignUrl",
        "campaignUrlConfigured",
        "campaignIdMarker",
        "campaignNotes",
        "campaignTags",
        "campaignCountry",
        "campaignCurrencyCode",
        "campaignDailyBudget",
        "campaignWorkspaceId",
        "campaignWorkspaceName",
        "clickRedirectType",
        "costSources",
        "externalCampaignId",
        "externalStatus",
        "biddingStatus",
        "bidInfo",
        "bid",
        "type",
        "deleted",
        "created",
        "updated",
        "timeToInstallRange0",
        "timeToInstallRange1",
        "timeToInstallRange2",
    }
)


def unwrap_list(payload: Any, key: str) -> Any:
    """Return the list carried by ``payload`` either bare or under ``key``."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get(key), list):
        return payload[key]
    return payload


def _strip_row(row: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in row.items() if key not in REPORT_ROW_STRIP_KEYS}


def strip_report_noise(response: Any) -> Any:
    """Drop ``columnMappings`` and low-signal row metadata from a report response."""

    if not isinstance(response, dict):
        return response
    cleaned: dict[str, Any] = {}
    for key, value in response.items():
        if key == "columnMappings":
            continue
        if key == "rows" and isinstance(value, list):
            cleaned[key] = [_strip_row(row) if isinstance(row, dict) else row for row in value]
        else:
            cleaned[key] = value
    return cleaned


__all__ = ["REPORT_ROW_STRIP_KEYS", "strip_report_noise", "unwrap_list"]
