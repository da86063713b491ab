"""Collaborator interfaces consumed by the engine.

Having protocols here makes it easy to pass test doubles while keeping
the production implementations (:class:`fuelwatch.client.GeotabClient`,
:mod:`fuelwatch.alerts`, :mod:`fuelwatch.config_store`) concrete.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum
from typing import Any, Protocol

from fuelwatch._constants import DIAGNOSTIC_FUEL_LEVEL, DIAGNOSTIC_IGNITION
from fuelwatch.models.alert import Alert
from fuelwatch.models.telemetry import FeedPage, StatusRecord, Trip
from fuelwatch.models.vehicle import Vehicle


class Diagnostic(StrEnum):
    """Diagnostic kinds the engine queries."""

    FUEL_LEVEL = DIAGNOSTIC_FUEL_LEVEL
    IGNITION = DIAGNOSTIC_IGNITION


class TelemetrySource(Protocol):
    """Read access to fleet telemetry.

    Every method raises a :class:`fuelwatch.exceptions.TelemetryError`
    subclass on failure.
    """

    async def get_vehicles(self) -> list[Vehicle]: ...

    async def get_fuel_feed(self, from_version: str | None = None) -> FeedPage: ...

    async def get_status_data(
        self,
        vehicle_id: str,
        diagnostic: Diagnostic,
        from_date: datetime,
        to_date: datetime,
    ) -> list[StatusRecord]: ...

    async def get_trips(self, vehicle_id: str, from_date: datetime, to_date: datetime) -> list[Trip]: ...


class AlertSink(Protocol):
    """Receives accepted alerts (persistence, UI, notifications).

    Returns the stored alert, with its ``id`` assigned.
    """

    async def emit(self, alert: Alert) -> Alert: ...


class ConfigStore(Protocol):
    """Persistence for the monitor configuration blob."""

    def load(self) -> Mapping[str, Any] | None: ...

    def save(self, data: Mapping[str, Any]) -> None: ...
