"""Historical batch scans over an explicit date range."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from fuelwatch._constants import round_half_up
from fuelwatch.context import EngineContext
from fuelwatch.detection.pipeline import DetectionPipeline
from fuelwatch.exceptions import TelemetryError
from fuelwatch.models.telemetry import FuelReading
from fuelwatch.models.vehicle import Vehicle
from fuelwatch.sources import Diagnostic
from fuelwatch.state.dedup import DeduplicationGate
from fuelwatch.state.history import HistoryStore

_logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]
"""Called as ``on_progress(message, percent)`` after each vehicle."""


class HistoricalAnalyzer:
    """Replay past fuel-level data through the detection pipeline.

    Vehicles are scanned one after another. Each scan uses a fresh history
    window with a retention of twice the configured time window, and its
    alerts are tagged historical and stamped with the reading time.

    Once started a scan runs to completion; there is no cancellation token.
    The analyzer imposes no limit on the range; callers enforce one.
    """

    def __init__(self, context: EngineContext) -> None:
        self._context = context

    async def analyze(
        self,
        from_date: datetime,
        to_date: datetime,
        on_progress: ProgressCallback | None = None,
    ) -> int:
        """Scan ``[from_date, to_date]`` for every vehicle and return the alert count.

        Only a failure to load the vehicle registry is raised; a failed
        fetch for one vehicle is logged and the scan moves on.
        """
        vehicles = list((await self._context.ensure_vehicles()).values())
        total = len(vehicles)
        _logger.info(
            "Analyzing %d vehicles from %s to %s",
            total,
            from_date.isoformat(),
            to_date.isoformat(),
        )

        total_alerts = 0
        for processed, vehicle in enumerate(vehicles, start=1):
            total_alerts += await self._analyze_vehicle(vehicle, from_date, to_date)
            if on_progress is not None:
                percent = round_half_up(processed / total * 100)
                message = f"Analyzed {vehicle.name or vehicle.id} ({processed}/{total})"
                try:
                    on_progress(message, percent)
                except Exception:
                    _logger.debug("on_progress callback failed", exc_info=True)

        _logger.info("Analysis complete. Found %d potential theft events.", total_alerts)
        return total_alerts

    async def _analyze_vehicle(self, vehicle: Vehicle, from_date: datetime, to_date: datetime) -> int:
        try:
            records = await self._context.source.get_status_data(
                vehicle.id,
                Diagnostic.FUEL_LEVEL,
                from_date,
                to_date,
            )
        except TelemetryError as exc:
            _logger.warning("Error fetching fuel data for %s: %s", vehicle.name or vehicle.id, exc)
            return 0

        if len(records) < 2:
            _logger.debug("Not enough fuel data for %s (%d readings)", vehicle.id, len(records))
            return 0

        window = timedelta(minutes=self._context.config.time_window_minutes)
        pipeline = DetectionPipeline(
            self._context,
            history=HistoryStore(retention=2 * window),
            dedup=DeduplicationGate(),
            historical=True,
        )
        readings = [FuelReading.from_status(record) for record in records]
        alerts = await pipeline.process_batch(readings)
        return len(alerts)
