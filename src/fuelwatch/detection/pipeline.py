"""Detection pipeline.

history -> drop detector -> stationary verifier -> severity -> cooldown -> sink
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from fuelwatch._constants import round_half_up
from fuelwatch.context import EngineContext
from fuelwatch.detection.detector import DropEvent, detect_drop
from fuelwatch.detection.severity import classify_severity
from fuelwatch.models.alert import Alert, Severity
from fuelwatch.models.telemetry import FuelReading
from fuelwatch.state.dedup import DeduplicationGate
from fuelwatch.state.history import HistoryStore

_logger = logging.getLogger(__name__)


class DetectionPipeline:
    """Run readings through detection and hand accepted alerts to the sink.

    The live monitor uses the context's own history and cooldown state and
    measures the cooldown on the context clock. Historical scans pass
    run-local ones and measure it on reading time, so a replay never
    disturbs live detection.
    """

    def __init__(
        self,
        context: EngineContext,
        *,
        history: HistoryStore | None = None,
        dedup: DeduplicationGate | None = None,
        historical: bool = False,
    ) -> None:
        self._context = context
        self._history = history if history is not None else context.history
        self._dedup = dedup if dedup is not None else context.dedup
        self._historical = historical

    @property
    def history(self) -> HistoryStore:
        return self._history

    async def process(self, reading: FuelReading) -> Alert | None:
        """Feed one reading through the pipeline.

        Returns the alert when one was accepted by the cooldown gate (even
        if the sink later failed to store it), otherwise ``None``.
        """
        config = self._context.config
        vehicle_id = reading.vehicle_id

        self._history.append(vehicle_id, reading)
        event = detect_drop(
            self._history.window(vehicle_id),
            reading,
            threshold_percent=config.drop_threshold_percent,
            window_minutes=config.time_window_minutes,
        )
        if event is None:
            return None

        _logger.debug(
            "Drop of %.1f%% over %.1f min for vehicle=%s at %s",
            event.drop_percent,
            event.duration_minutes,
            vehicle_id,
            reading.timestamp.isoformat(),
        )

        if not await self._context.verifier.is_stationary(vehicle_id, reading.timestamp):
            return None

        severity = classify_severity(event.drop_percent, event.duration_minutes)

        at = reading.timestamp if self._historical else self._context.clock()
        if not self._dedup.accept(vehicle_id, at):
            return None

        alert = self._build_alert(event, severity, at)
        try:
            alert = await self._context.sink.emit(alert)
        except Exception:
            _logger.exception("Alert sink rejected alert for vehicle=%s", vehicle_id)
        else:
            _logger.info(
                "%s fuel drop alert: %s dropped %.1f%% (%.1f%% -> %.1f%%) in %d min",
                alert.severity.value.upper(),
                alert.vehicle_name,
                alert.fuel_drop_percent,
                alert.previous_level,
                alert.current_level,
                alert.duration_minutes,
            )
        return alert

    async def process_batch(self, readings: Iterable[FuelReading]) -> list[Alert]:
        """Process one vehicle's readings in ascending timestamp order."""
        alerts: list[Alert] = []
        for reading in sorted(readings, key=lambda r: r.timestamp):
            alert = await self.process(reading)
            if alert is not None:
                alerts.append(alert)
        return alerts

    def _build_alert(self, event: DropEvent, severity: Severity, timestamp: datetime) -> Alert:
        current = event.current_reading
        return Alert(
            vehicle_id=current.vehicle_id,
            vehicle_name=self._context.vehicle_name(current.vehicle_id),
            severity=severity,
            fuel_drop_percent=event.drop_percent,
            previous_level=event.previous_level,
            current_level=event.current_level,
            duration_minutes=round_half_up(event.duration_minutes),
            timestamp=timestamp,
            historical=self._historical,
        )
