from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import pytest

from fuelwatch.models.alert import Alert
from fuelwatch.models.telemetry import FeedPage, StatusRecord, Trip
from fuelwatch.models.vehicle import Vehicle
from fuelwatch.sources import Diagnostic

OMITTED = object()


@dataclass
class FakeTelemetrySource:
    """In-memory telemetry source.

    ``feed`` entries are consumed one per poll; an exception entry is raised
    instead of returned. ``status`` maps ``(vehicle_id, diagnostic)`` to
    records or to an exception.
    """

    vehicles: list[Vehicle] = field(default_factory=list)
    vehicles_error: Exception | None = None
    vehicles_gate: asyncio.Event | None = None
    feed: list[FeedPage | Exception] = field(default_factory=list)
    feed_calls: list[Any] = field(default_factory=list)
    feed_gate: asyncio.Event | None = None
    status: dict[tuple[str, str], list[StatusRecord] | Exception] = field(default_factory=dict)
    status_calls: list[tuple[str, str, datetime, datetime]] = field(default_factory=list)
    trips: dict[str, list[Trip] | Exception] = field(default_factory=dict)
    trip_calls: list[tuple[str, datetime, datetime]] = field(default_factory=list)
    vehicle_calls: int = 0

    async def get_vehicles(self) -> list[Vehicle]:
        self.vehicle_calls += 1
        if self.vehicles_gate is not None:
            await self.vehicles_gate.wait()
        if self.vehicles_error is not None:
            raise self.vehicles_error
        return list(self.vehicles)

    async def get_fuel_feed(self, from_version: Any = OMITTED) -> FeedPage:
        self.feed_calls.append(from_version)
        if self.feed_gate is not None:
            await self.feed_gate.wait()
        if not self.feed:
            return FeedPage(to_version=str(from_version) if from_version is not OMITTED else None)
        item = self.feed.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def get_status_data(
        self,
        vehicle_id: str,
        diagnostic: Diagnostic,
        from_date: datetime,
        to_date: datetime,
    ) -> list[StatusRecord]:
        self.status_calls.append((vehicle_id, str(diagnostic), from_date, to_date))
        result = self.status.get((vehicle_id, str(diagnostic)), [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def get_trips(self, vehicle_id: str, from_date: datetime, to_date: datetime) -> list[Trip]:
        self.trip_calls.append((vehicle_id, from_date, to_date))
        result = self.trips.get(vehicle_id, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


def pending_poll_timers() -> list[asyncio.Task[Any]]:
    return [task for task in asyncio.all_tasks() if task.get_name() == "fuelwatch-poll-timer" and not task.done()]


@dataclass
class RecordingSink:
    alerts: list[Alert] = field(default_factory=list)
    fail: bool = False

    async def emit(self, alert: Alert) -> Alert:
        if self.fail:
            raise RuntimeError("sink unavailable")
        stored = alert.model_copy(update={"id": len(self.alerts) + 1})
        self.alerts.append(stored)
        return stored


@pytest.fixture
def source() -> FakeTelemetrySource:
    return FakeTelemetrySource(
        vehicles=[
            Vehicle.model_validate({"id": "b1", "name": "Truck 1", "serialNumber": "G9A"}),
            Vehicle.model_validate({"id": "b2", "name": "Truck 2", "serialNumber": "G9B"}),
        ]
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
