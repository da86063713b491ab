"""Normalization helpers.

Centralizes defensive parsing of telemetry payload values.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return float(value)
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def entity_id(value: Any) -> str | None:
    """Extract an id from an entity reference.

    The API references related entities either as ``{"id": "b1"}`` or,
    for some built-in entities, as a bare string.
    """
    if isinstance(value, dict):
        return safe_str(value.get("id"))
    return safe_str(value)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_api_datetime(value: datetime) -> str:
    """Format a datetime the way the API expects (ISO 8601, UTC, ``Z`` suffix)."""
    utc = ensure_utc(value)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"
