"""Continuous monitoring: incremental feed polling with a resumable cursor."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from fuelwatch.context import EngineContext
from fuelwatch.detection.pipeline import DetectionPipeline
from fuelwatch.exceptions import TelemetryError, is_version_mismatch
from fuelwatch.models.telemetry import FuelReading, StatusRecord

_logger = logging.getLogger(__name__)


class MonitorState(StrEnum):
    STOPPED = "stopped"
    STARTING = "starting"
    ACTIVE = "active"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class MonitorStatus:
    """Status indicator: a state plus human-readable text."""

    state: MonitorState
    message: str


class FeedPoller:
    """Poll the fuel-level feed on a fixed interval and run the live pipeline.

    Ticks fire on a fixed schedule regardless of how long the previous one
    took. A poll pass holds ``_poll_lock`` from fetch to the last pipeline
    dispatch; a tick that finds the lock held is skipped, so two passes
    never touch the cursor or a vehicle's history at the same time.
    """

    def __init__(
        self,
        context: EngineContext,
        *,
        pipeline: DetectionPipeline | None = None,
        on_status: Callable[[MonitorStatus], None] | None = None,
    ) -> None:
        self._context = context
        self._pipeline = pipeline if pipeline is not None else DetectionPipeline(context)
        self._on_status = on_status
        self._status = MonitorStatus(MonitorState.STOPPED, "Monitoring stopped")
        self._poll_lock = asyncio.Lock()
        self._timer: asyncio.Task[None] | None = None
        self._timer_interval: float | None = None
        self._ticks: set[asyncio.Task[bool]] = set()
        self._generation = 0

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def status(self) -> MonitorStatus:
        return self._status

    @property
    def state(self) -> MonitorState:
        return self._status.state

    @property
    def is_active(self) -> bool:
        return self._status.state in (MonitorState.ACTIVE, MonitorState.ERROR)

    @property
    def is_polling(self) -> bool:
        """Whether a poll pass is currently in flight."""
        return self._poll_lock.locked()

    def _set_status(self, state: MonitorState, message: str) -> None:
        self._status = MonitorStatus(state, message)
        if self._on_status is None:
            return
        try:
            self._on_status(self._status)
        except Exception:
            _logger.debug("on_status callback failed", exc_info=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load the registry, poll once, then schedule the repeating timer.

        A registry failure leaves the poller stopped and is re-raised. A
        :meth:`stop` issued while starting wins: the start is abandoned
        after whichever step it was waiting on.
        """
        if self._status.state is not MonitorState.STOPPED:
            _logger.info("Monitoring already active")
            return

        generation = self._generation
        self._set_status(MonitorState.STARTING, "Starting monitoring")
        try:
            await self._context.load_vehicles()
        except Exception as exc:
            _logger.error("Failed to start monitoring: %s", exc)
            if generation == self._generation:
                self._set_status(MonitorState.STOPPED, f"Failed to start: {exc}")
            raise

        if generation != self._generation:
            _logger.info("Monitoring stopped before the registry load completed")
            return

        self._set_status(MonitorState.ACTIVE, "Monitoring active")
        _logger.info("Fuel monitoring started")
        await self._spawn_tick()
        if generation != self._generation:
            return
        if self._timer is None:
            self._schedule(self._context.config.poll_interval_seconds)

    async def stop(self) -> None:
        """Cancel the timer and wait for an in-flight poll to finish. Idempotent.

        A start still waiting on the registry load is abandoned rather
        than awaited.
        """
        self._generation += 1
        timer = self._cancel_timer()
        if timer is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await timer
        if self._ticks:
            await asyncio.gather(*self._ticks, return_exceptions=True)
        if self._status.state is not MonitorState.STOPPED:
            self._set_status(MonitorState.STOPPED, "Monitoring stopped")
            _logger.info("Fuel monitoring stopped")

    def reschedule(self, interval_seconds: float) -> None:
        """Restart the timer at a new interval; an in-flight poll is left alone."""
        if not self.is_active or self._timer_interval == interval_seconds:
            return
        self._schedule(interval_seconds)
        _logger.info("Poll interval changed to %ss", interval_seconds)

    def _schedule(self, interval_seconds: float) -> None:
        self._cancel_timer()
        self._timer_interval = interval_seconds
        self._timer = asyncio.create_task(self._run_timer(interval_seconds), name="fuelwatch-poll-timer")

    def _cancel_timer(self) -> asyncio.Task[None] | None:
        timer = self._timer
        self._timer = None
        self._timer_interval = None
        if timer is not None and not timer.done():
            timer.cancel()
        return timer

    async def _run_timer(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            self._spawn_tick()

    def _spawn_tick(self) -> asyncio.Task[bool]:
        task = asyncio.create_task(self._tick(), name="fuelwatch-poll-tick")
        self._ticks.add(task)
        task.add_done_callback(self._ticks.discard)
        return task

    async def _tick(self) -> bool:
        try:
            return await self.poll_once()
        except Exception as exc:
            _logger.exception("Unexpected error during fuel feed poll")
            self._set_status(MonitorState.ERROR, f"Poll failed: {exc}")
            return False

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def poll_once(self) -> bool:
        """Run one poll pass unless one is already in flight.

        Returns False when the pass was skipped.
        """
        if self._poll_lock.locked():
            _logger.warning("Previous fuel feed poll still in flight; skipping tick")
            return False
        async with self._poll_lock:
            await self._poll()
        return True

    async def _poll(self) -> None:
        context = self._context
        try:
            if context.cursor is None:
                page = await context.source.get_fuel_feed()
            else:
                page = await context.source.get_fuel_feed(from_version=context.cursor)
        except TelemetryError as exc:
            if is_version_mismatch(exc):
                _logger.warning("Feed version rejected (%s); next poll performs a full resync", exc)
                context.cursor = None
            else:
                _logger.warning("Error polling fuel data: %s", exc)
            self._set_status(MonitorState.ERROR, f"Poll failed: {exc}")
            return

        context.cursor = page.to_version
        if page.records:
            await self._dispatch(page.records)

        if self._status.state is MonitorState.ERROR:
            self._set_status(MonitorState.ACTIVE, "Monitoring active")

    async def _dispatch(self, records: list[StatusRecord]) -> None:
        by_vehicle: dict[str, list[FuelReading]] = defaultdict(list)
        for record in records:
            by_vehicle[record.vehicle_id].append(FuelReading.from_status(record))

        _logger.debug("Dispatching %d readings for %d vehicles", len(records), len(by_vehicle))
        for readings in by_vehicle.values():
            await self._pipeline.process_batch(readings)

