"""Engine context: every piece of mutable engine state in one place."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from fuelwatch._constants import UNKNOWN_VEHICLE_NAME
from fuelwatch.config import MonitorConfig
from fuelwatch.detection.stationary import StationaryVerifier
from fuelwatch.models.vehicle import Vehicle
from fuelwatch.sources import AlertSink, TelemetrySource
from fuelwatch.state.dedup import DeduplicationGate
from fuelwatch.state.history import HistoryStore

_logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class EngineContext:
    """State owned exclusively by one engine instance.

    Constructed once and passed to the poller, the historical analyzer and
    the live pipeline; nothing here is shared across engine instances.
    """

    source: TelemetrySource
    sink: AlertSink
    verifier: StationaryVerifier
    config: MonitorConfig = field(default_factory=MonitorConfig)
    vehicles: dict[str, Vehicle] = field(default_factory=dict)
    history: HistoryStore = field(default_factory=HistoryStore)
    dedup: DeduplicationGate = field(default_factory=DeduplicationGate)
    cursor: str | None = None
    clock: Callable[[], datetime] = utcnow

    async def load_vehicles(self) -> dict[str, Vehicle]:
        """Reload the vehicle registry.

        Failures propagate unchanged; the previous registry stays in place.
        Cooldown entries and history windows of departed vehicles are
        dropped.
        """
        vehicles = await self.source.get_vehicles()
        self.vehicles = {vehicle.id: vehicle for vehicle in vehicles}
        self.dedup.retain(self.vehicles)
        self.history.retain(self.vehicles)
        _logger.info("Loaded %d vehicles", len(self.vehicles))
        return self.vehicles

    async def ensure_vehicles(self) -> dict[str, Vehicle]:
        """Return the cached registry, loading it first if empty."""
        if not self.vehicles:
            await self.load_vehicles()
        return self.vehicles

    def vehicle_name(self, vehicle_id: str) -> str:
        vehicle = self.vehicles.get(vehicle_id)
        if vehicle is None or not vehicle.name:
            return UNKNOWN_VEHICLE_NAME
        return vehicle.name
