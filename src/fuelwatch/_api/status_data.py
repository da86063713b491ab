"""Status data endpoints.

Methods:
  - GetFeed (typeName=StatusData), incremental fuel-level feed
  - Get (typeName=StatusData), one vehicle and diagnostic over a date range
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fuelwatch._api._common import as_list, build_search, call_json
from fuelwatch._constants import DIAGNOSTIC_FUEL_LEVEL, FEED_RESULTS_LIMIT
from fuelwatch._transport import Transport
from fuelwatch.models.telemetry import FeedPage, StatusRecord
from fuelwatch.session import GeotabSession

_logger = logging.getLogger(__name__)


def build_feed_params(
    *,
    from_version: str | None = None,
    diagnostic_id: str = DIAGNOSTIC_FUEL_LEVEL,
    results_limit: int = FEED_RESULTS_LIMIT,
) -> dict[str, Any]:
    """Build ``GetFeed`` params; without *from_version* the feed starts over."""
    params: dict[str, Any] = {
        "typeName": "StatusData",
        "search": build_search(diagnostic_id=diagnostic_id),
        "resultsLimit": results_limit,
    }
    if from_version:
        params["fromVersion"] = from_version
    return params


def _parse_records(items: list[Any]) -> list[StatusRecord]:
    records: list[StatusRecord] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            records.append(StatusRecord.model_validate(item))
        except ValueError:
            _logger.debug("Skipping malformed status record: %r", item, exc_info=True)
    return records


async def fetch_fuel_feed(
    session: GeotabSession,
    transport: Transport,
    *,
    from_version: str | None = None,
    results_limit: int = FEED_RESULTS_LIMIT,
) -> FeedPage:
    """Fetch one page of fuel-level records changed since *from_version*."""
    decoded = await call_json(
        method="GetFeed",
        session=session,
        transport=transport,
        params=build_feed_params(from_version=from_version, results_limit=results_limit),
    )
    result = decoded if isinstance(decoded, dict) else {}
    records = _parse_records(as_list(result.get("data")))
    _logger.debug("Fuel feed page count=%d toVersion=%s", len(records), result.get("toVersion"))
    return FeedPage(to_version=result.get("toVersion"), records=records)


async def fetch_status_data(
    session: GeotabSession,
    transport: Transport,
    *,
    vehicle_id: str,
    diagnostic_id: str,
    from_date: datetime,
    to_date: datetime,
) -> list[StatusRecord]:
    """Fetch one vehicle's samples of one diagnostic, oldest first."""
    decoded = await call_json(
        method="Get",
        session=session,
        transport=transport,
        params={
            "typeName": "StatusData",
            "search": build_search(
                vehicle_id=vehicle_id,
                diagnostic_id=diagnostic_id,
                from_date=from_date,
                to_date=to_date,
            ),
        },
    )
    records = _parse_records(as_list(decoded))
    records.sort(key=lambda record: record.timestamp)
    return records
