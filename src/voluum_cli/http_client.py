from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable, Mapping, Sequence
from types import TracebackType
from typing import Any, Union

import httpx

from .endpoints import AUTH_HEADER_NAME
from .errors import NETWORK_ERROR, ApiError

logger = logging.getLogger(__name__)

QueryScalar = Union[str, int, float, bool, None]
QueryValue = Union[QueryScalar, Sequence[QueryScalar]]
QueryParams = Mapping[str, QueryValue]
TokenGetter = Callable[[], "str | None"]

API_NAME = "Voluum API"
_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)
_MISSING: Any = object()


def _query_value_to_str(value: str | int | float | bool) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query_items(query: QueryParams | None) -> list[tuple[str, str]]:
    """Flatten ``query`` into ordered key/value pairs, dropping ``None`` entries."""

    items: list[tuple[str, str]] = []
    if not query:
        return items
    for key, raw in query.items():
        values = raw if isinstance(raw, (list, tuple)) else [raw]
        for value in values:
            if value is None:
                continue
            items.append((key, _query_value_to_str(value)))
    return items


def _string_field(obj: Mapping[str, Any], key: str) -> str | None:
    value = obj.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def extract_error_code(details: Any) -> str | None:
    """Return ``code`` or ``errorCode`` from the top two levels of ``details``."""

    if not isinstance(details, dict):
        return None
    code = _string_field(details, "code") or _string_field(details, "errorCode")
    if code:
        return code
    for nested in details.values():
        if isinstance(nested, dict):
            code = _string_field(nested, "code") or _string_field(nested, "errorCode")
            if code:
                return code
    return None


def parse_body(resp: httpx.Response) -> Any:
    """Parse a response body as JSON, tolerating empty and non-JSON payloads."""

    if resp.status_code == 204:
        return None
    text = resp.text
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        return {"raw": text}


class VoluumClient:
    """httpx wrapper that injects the session header, normalizes errors and retries."""

    def __init__(
        self,
        base_url: str,
        token_getter: TokenGetter | None = None,
        *,
        auth_header_name: str = AUTH_HEADER_NAME,
        max_retries: int = 2,
        initial_retry_delay_ms: int = 250,
        timeout: float = 60.0,
        http: httpx.Client | None = None,
    ) -> None:
        normalized = (base_url or "").strip()
        if not normalized:
            raise ValueError("Base URL is required.")
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative.")
        if initial_retry_delay_ms <= 0:
            raise ValueError("initial_retry_delay_ms must be positive.")
        self._base_url = normalized
        self._token_getter = token_getter
        self._auth_header_name = auth_header_name
        self._max_retries = max_retries
        self._initial_retry_delay_ms = initial_retry_delay_ms
        self._owns_client = http is None
        self._client = http if http is not None else httpx.Client(timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def initial_retry_delay_ms(self) -> int:
        return self._initial_retry_delay_ms

    def build_url(self, path: str) -> str:
        if _ABSOLUTE_URL.match(path):
            return path
        return f"{self._base_url.rstrip('/')}/{path.lstrip('/')}"

    def build_headers(
        self, custom: Mapping[str, str] | None = None, *, has_body: bool = False
    ) -> httpx.Headers:
        headers = httpx.Headers(custom or {})
        headers["accept"] = "application/json"
        if has_body and "content-type" not in headers:
            headers["content-type"] = "application/json"
        token = self._token_getter() if self._token_getter else None
        if token:
            headers[self._auth_header_name] = token
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        query: QueryParams | None = None,
        body: Any = _MISSING,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        has_body = body is not _MISSING
        attempt = 0
        while True:
            try:
                return self._send_once(method, path, query, body, has_body, headers)
            except Exception as exc:
                error = self._normalize_error(exc)
                if not self._should_retry(error, attempt):
                    if error is exc:
                        raise
                    raise error from exc
                delay_ms = self._initial_retry_delay_ms * (2**attempt)
                logger.debug(
                    "%s %s failed (%s); retrying in %sms (attempt %s of %s)",
                    method,
                    path,
                    error.status or error.code,
                    delay_ms,
                    attempt + 1,
                    self._max_retries,
                )
                time.sleep(delay_ms / 1000)
                attempt += 1

    def _send_once(
        self,
        method: str,
        path: str,
        query: QueryParams | None,
        body: Any,
        has_body: bool,
        headers: Mapping[str, str] | None,
    ) -> Any:
        url = self.build_url(path)
        params = build_query_items(query)
        if params and "?" in url:
            # httpx replaces shared keys when merging; keep the URL's own values first.
            params = httpx.URL(url).params.multi_items() + params
        request_kwargs: dict[str, Any] = {
            "params": params,
            "headers": self.build_headers(headers, has_body=has_body),
        }
        if has_body:
            request_kwargs["content"] = json.dumps(body).encode("utf-8")
        resp = self._client.request(method, url, **request_kwargs)
        if not resp.is_success:
            details = parse_body(resp)
            raise ApiError(
                f"{API_NAME} request failed ({resp.status_code})",
                code=extract_error_code(details),
                status=resp.status_code,
                details=details,
            )
        return parse_body(resp)

    @staticmethod
    def _normalize_error(exc: Exception) -> ApiError:
        if isinstance(exc, ApiError):
            return exc
        message = str(exc) or exc.__class__.__name__
        return ApiError(
            f"Network/request failure: {message}",
            code=NETWORK_ERROR,
            cause=exc,
        )

    def _should_retry(self, error: ApiError, attempt: int) -> bool:
        if attempt >= self._max_retries:
            return False
        if error.code == NETWORK_ERROR:
            return True
        status = error.status
        return status is not None and (status == 429 or status >= 500)

    def get(self, path: str, query: QueryParams | None = None) -> Any:
        return self.request("GET", path, query=query)

    def post(self, path: str, body: Any = _MISSING, query: QueryParams | None = None) -> Any:
        return self.request("POST", path, query=query, body=body)

    def put(self, path: str, body: Any = _MISSING, query: QueryParams | None = None) -> Any:
        return self.request("PUT", path, query=query, body=body)

    def delete(self, path: str, query: QueryParams | None = None) -> Any:
        return self.request("DELETE", path, query=query)

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client` when this instance created it."""

        if self._owns_client:
            self._client.close()

    def __enter__(self) -> VoluumClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = [
    "API_NAME",
    "QueryParams",
    "TokenGetter",
    "VoluumClient",
    "build_query_items",
    "extract_error_code",
    "parse_body",
]
