"""Shared helpers for API endpoint modules.

This module centralizes the most repeated patterns:
- mapping JSON-RPC error objects onto the exception hierarchy
- posting an authenticated ``Get``-style call
- building entity search parameters

It is internal to fuelwatch and may change at any time.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from fuelwatch._constants import FEED_VERSION_ERRORS, SESSION_EXPIRED_ERRORS
from fuelwatch._transport import Transport
from fuelwatch.exceptions import (
    AuthenticationError,
    FeedVersionError,
    SessionExpiredError,
    TelemetryApiError,
    TelemetryTransportError,
)
from fuelwatch.ingestion.normalize import format_api_datetime
from fuelwatch.session import GeotabSession


def _error_name(error: Mapping[str, Any]) -> str:
    """Most specific error name: the first inner error, else the outer name."""
    inner = error.get("errors")
    if isinstance(inner, list):
        for item in inner:
            if isinstance(item, Mapping) and item.get("name"):
                return str(item["name"])
    return str(error.get("name", ""))


def raise_for_error(*, method: str, error: Any) -> None:
    """Raise the exception matching a JSON-RPC ``error`` object."""
    if not isinstance(error, Mapping):
        raise TelemetryApiError(f"{method} failed: {error}", method=method)

    name = _error_name(error)
    message = str(error.get("message", "")) or name or "unknown error"
    text = f"{method} failed: {name}: {message}" if name else f"{method} failed: {message}"

    if name in SESSION_EXPIRED_ERRORS:
        raise SessionExpiredError(text, name=name, method=method)
    if name in FEED_VERSION_ERRORS or "version" in message.lower():
        raise FeedVersionError(text, name=name, method=method)
    if "authentication" in name.lower() or "authentication" in message.lower():
        raise AuthenticationError(text, name=name, method=method)
    raise TelemetryApiError(text, name=name, method=method)


def unwrap_result(method: str, response: Mapping[str, Any]) -> Any:
    """Return ``response["result"]`` or raise for an ``error`` member."""
    if response.get("error") is not None:
        raise_for_error(method=method, error=response["error"])
    if "result" not in response:
        raise TelemetryTransportError(f"Missing 'result' field from {method}", method=method)
    return response["result"]


async def call_json(
    *,
    method: str,
    session: GeotabSession,
    transport: Transport,
    params: Mapping[str, Any],
) -> Any:
    """Post an authenticated call and return its ``result``.

    This is a thin helper for endpoint modules; it returns `Any` since
    calls may return objects or lists.
    """
    full_params = {**params, "credentials": session.credentials()}
    response = await transport.call(session.server, method, full_params)
    return unwrap_result(method, response)


def build_search(
    *,
    vehicle_id: str | None = None,
    diagnostic_id: str | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
) -> dict[str, Any]:
    """Build a ``search`` object for ``Get`` calls."""
    search: dict[str, Any] = {}
    if vehicle_id is not None:
        search["deviceSearch"] = {"id": vehicle_id}
    if diagnostic_id is not None:
        search["diagnosticSearch"] = {"id": diagnostic_id}
    if from_date is not None:
        search["fromDate"] = format_api_datetime(from_date)
    if to_date is not None:
        search["toDate"] = format_api_datetime(to_date)
    return search


def as_list(result: Any) -> list[Any]:
    return result if isinstance(result, list) else []
