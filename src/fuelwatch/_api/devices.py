"""Vehicle registry endpoint.

Method:
  - Get (typeName=Device)
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fuelwatch._api._common import as_list, build_search, call_json
from fuelwatch._transport import Transport
from fuelwatch.models.vehicle import Vehicle
from fuelwatch.session import GeotabSession

_logger = logging.getLogger(__name__)


async def fetch_vehicles(
    session: GeotabSession,
    transport: Transport,
    *,
    now: datetime | None = None,
) -> list[Vehicle]:
    """Fetch devices that are active now."""
    if now is None:
        now = datetime.now(UTC)
    decoded = await call_json(
        method="Get",
        session=session,
        transport=transport,
        params={"typeName": "Device", "search": build_search(from_date=now)},
    )
    items = as_list(decoded)
    _logger.debug("Device list response count=%d", len(items))
    vehicles: list[Vehicle] = []
    for item in items:
        if not isinstance(item, dict) or not item.get("id"):
            _logger.debug("Skipping device without id: %r", item)
            continue
        vehicles.append(Vehicle.model_validate(item))
    return vehicles
