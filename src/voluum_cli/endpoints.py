"""Central mapping of Voluum routes and login-response field probes."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

DEFAULT_BASE_URL = "https://api.voluum.com"
AUTH_HEADER_NAME = "cwauth-token"


@dataclass(frozen=True)
class ResourceEndpoints:
    """Route templates for one CRUD resource family."""

    name: str
    base_path: str
    singular_key: str
    plural_key: str
    label: str

    @property
    def list_path(self) -> str:
        return self.base_path

    @property
    def create_path(self) -> str:
        return self.base_path

    def item_path(self, resource_id: str) -> str:
        return f"{self.base_path}/{quote(resource_id, safe='')}"

    def get_path(self, resource_id: str) -> str:
        return self.item_path(resource_id)

    def update_path(self, resource_id: str) -> str:
        return self.item_path(resource_id)

    def delete_path(self, resource_id: str) -> str:
        return self.item_path(resource_id)


@dataclass(frozen=True)
class AuthEndpoints:
    login_path: str = "/auth/session"
    access_login_path: str | None = "/auth/access/session"
    whoami_path: str | None = "/user/current"


@dataclass(frozen=True)
class ReportEndpoints:
    summary_path: str = "/report"
    raw_path: str = "/report/conversions"


AUTH = AuthEndpoints()
REPORTS = ReportEndpoints()

CAMPAIGNS = ResourceEndpoints("campaigns", "/campaign", "campaign", "campaigns", "Campaign")
OFFERS = ResourceEndpoints("offers", "/offer", "offer", "offers", "Offer")
LANDERS = ResourceEndpoints("landers", "/lander", "lander", "landers", "Lander")
FLOWS = ResourceEndpoints("flows", "/flow", "flow", "flows", "Flow")
TRAFFIC_SOURCES = ResourceEndpoints(
    "traffic-sources", "/traffic-source", "trafficSource", "trafficSources", "Traffic source"
)
AFFILIATE_NETWORKS = ResourceEndpoints(
    "affiliate-networks",
    "/affiliate-network",
    "affiliateNetwork",
    "affiliateNetworks",
    "Affiliate network",
)
TRACKER_DOMAINS = ResourceEndpoints(
    "tracker-domains", "/tracker-domain", "trackerDomain", "trackerDomains", "Tracker domain"
)

RESOURCES: tuple[ResourceEndpoints, ...] = (
    CAMPAIGNS,
    OFFERS,
    LANDERS,
    FLOWS,
    TRAFFIC_SOURCES,
    AFFILIATE_NETWORKS,
    TRACKER_DOMAINS,
)

# Login responses are undocumented and vary; probe known shapes in order.
TOKEN_PATHS: tuple[tuple[str, ...], ...] = (
    ("token",),
    ("sessionToken",),
    ("accessToken",),
    ("cwauthToken",),
    ("data", "token"),
    ("data", "sessionToken"),
    ("data", "accessToken"),
)

TOKEN_EXPIRY_PATHS: tuple[tuple[str, ...], ...] = (
    ("tokenExpiresAt",),
    ("expiresAt",),
    ("expirationDate",),
    ("expirationTimestamp",),
    ("data", "tokenExpiresAt"),
    ("data", "expiresAt"),
)


def _get_by_path(source: Any, segments: Sequence[str]) -> Any:
    current = source
    for segment in segments:
        if not isinstance(current, dict):
            return None
        current = current.get(segment)
    return current


def _first_string(payload: Any, paths: Sequence[Sequence[str]]) -> str | None:
    for path in paths:
        candidate = _get_by_path(payload, path)
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


def extract_auth_token(payload: Any) -> str | None:
    """Return the first non-empty session token found in ``payload``."""

    return _first_string(payload, TOKEN_PATHS)


def extract_token_expiry(payload: Any) -> str | None:
    """Return the first non-empty token expiry timestamp found in ``payload``."""

    return _first_string(payload, TOKEN_EXPIRY_PATHS)


def ensure_leading_slash(value: str) -> str:
    if value.startswith("/"):
        return value
    return f"/{value}"


__all__ = [
    "AFFILIATE_NETWORKS",
    "AUTH",
    "AUTH_HEADER_NAME",
    "AuthEndpoints",
    "CAMPAIGNS",
    "DEFAULT_BASE_URL",
    "FLOWS",
    "LANDERS",
    "OFFERS",
    "REPORTS",
    "RESOURCES",
    "ReportEndpoints",
    "ResourceEndpoints",
    "TRACKER_DOMAINS",
    "TRAFFIC_SOURCES",
    "ensure_leading_slash",
    "extract_auth_token",
    "extract_token_expiry",
]
