"""High-level fuel theft detection engine."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from fuelwatch.config import MonitorConfig
from fuelwatch.context import EngineContext, utcnow
from fuelwatch.detection.stationary import (
    DEFAULT_FAILURE_POLICY,
    StationaryVerifier,
    VerificationFailurePolicy,
)
from fuelwatch.ingestion.historical import HistoricalAnalyzer, ProgressCallback
from fuelwatch.ingestion.poller import FeedPoller, MonitorState, MonitorStatus
from fuelwatch.models.vehicle import Vehicle
from fuelwatch.sources import AlertSink, ConfigStore, TelemetrySource

_logger = logging.getLogger(__name__)

__all__ = ["EngineContext", "FuelTheftEngine"]


class FuelTheftEngine:
    """Fuel theft detection over a telemetry source.

    Usage::

        async with GeotabClient(GeotabConfig.from_env()) as client:
            engine = FuelTheftEngine(client, MemoryAlertSink())
            async with engine:
                ...

    Entering the engine starts continuous monitoring; leaving it stops
    monitoring and waits for an in-flight poll.
    """

    def __init__(
        self,
        source: TelemetrySource,
        sink: AlertSink,
        *,
        config_store: ConfigStore | None = None,
        clock: Callable[[], datetime] = utcnow,
        on_status: Callable[[MonitorStatus], None] | None = None,
        failure_policy: VerificationFailurePolicy = DEFAULT_FAILURE_POLICY,
    ) -> None:
        self._config_store = config_store
        self._context = EngineContext(
            source=source,
            sink=sink,
            verifier=StationaryVerifier(source, failure_policy=failure_policy),
            config=self._load_config(),
            clock=clock,
        )
        self._poller = FeedPoller(self._context, on_status=on_status)
        self._analyzer = HistoricalAnalyzer(self._context)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FuelTheftEngine:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def context(self) -> EngineContext:
        return self._context

    @property
    def config(self) -> MonitorConfig:
        return self._context.config

    @property
    def vehicles(self) -> dict[str, Vehicle]:
        return dict(self._context.vehicles)

    @property
    def status(self) -> MonitorStatus:
        return self._poller.status

    @property
    def state(self) -> MonitorState:
        return self._poller.state

    @property
    def is_active(self) -> bool:
        return self._poller.is_active

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start continuous monitoring. Registry failures propagate."""
        await self._poller.start()

    async def stop(self) -> None:
        await self._poller.stop()

    async def poll_once(self) -> bool:
        """Run a single feed poll pass outside the timer."""
        return await self._poller.poll_once()

    async def load_vehicles(self) -> dict[str, Vehicle]:
        return dict(await self._context.load_vehicles())

    async def analyze_history(
        self,
        from_date: datetime,
        to_date: datetime,
        on_progress: ProgressCallback | None = None,
    ) -> int:
        """Scan a past date range and return the number of alerts raised."""
        return await self._analyzer.analyze(from_date, to_date, on_progress)

    def update_config(self, **changes: Any) -> MonitorConfig:
        """Apply configuration changes.

        The whole new configuration is validated first; an invalid update
        raises :class:`fuelwatch.exceptions.FuelWatchConfigError` and
        leaves the engine untouched. A changed poll interval reschedules the
        timer of an active monitor. The new configuration is then saved to
        the config store; a failed save is logged.
        """
        new_config = self._context.config.replace(**changes)
        previous = self._context.config
        self._context.config = new_config
        if new_config.poll_interval_seconds != previous.poll_interval_seconds:
            self._poller.reschedule(new_config.poll_interval_seconds)
        _logger.info("Configuration updated: %s", new_config.to_mapping())

        if self._config_store is not None:
            try:
                self._config_store.save(new_config.to_mapping())
            except Exception:
                _logger.exception("Failed to save configuration")
        return new_config

    def _load_config(self) -> MonitorConfig:
        if self._config_store is None:
            return MonitorConfig()
        try:
            stored = self._config_store.load()
        except Exception:
            _logger.exception("Failed to load configuration; using defaults")
            return MonitorConfig()
        return MonitorConfig.from_mapping(stored)
