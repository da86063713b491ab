"""Trip endpoint.

Method:
  - Get (typeName=Trip)
"""

from __future__ import annotations

from datetime import datetime

from fuelwatch._api._common import as_list, build_search, call_json
from fuelwatch._transport import Transport
from fuelwatch.models.telemetry import Trip
from fuelwatch.session import GeotabSession


async def fetch_trips(
    session: GeotabSession,
    transport: Transport,
    *,
    vehicle_id: str,
    from_date: datetime,
    to_date: datetime,
) -> list[Trip]:
    """Fetch trips of one vehicle overlapping ``[from_date, to_date]``."""
    decoded = await call_json(
        method="Get",
        session=session,
        transport=transport,
        params={
            "typeName": "Trip",
            "search": build_search(vehicle_id=vehicle_id, from_date=from_date, to_date=to_date),
        },
    )
    items = [item for item in as_list(decoded) if isinstance(item, dict)]
    return [Trip.model_validate({"device": {"id": vehicle_id}, **item}) for item in items]
