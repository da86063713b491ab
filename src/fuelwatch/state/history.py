"""Bounded per-vehicle fuel reading history."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from datetime import timedelta

from fuelwatch._constants import HISTORY_MAX_ENTRIES, LIVE_HISTORY_RETENTION
from fuelwatch.models.telemetry import FuelReading


class HistoryStore:
    """Time-ordered reading windows, one per vehicle.

    Each window is bounded both by a retention horizon and by an entry
    cap, whichever is stricter. The horizon is measured back from the
    timestamp of the most recently appended reading, so replayed or
    delayed data is retained the same way as live data.
    """

    def __init__(
        self,
        *,
        retention: timedelta = LIVE_HISTORY_RETENTION,
        max_entries: int = HISTORY_MAX_ENTRIES,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._retention = retention
        self._max_entries = max_entries
        self._windows: dict[str, deque[FuelReading]] = {}

    @property
    def retention(self) -> timedelta:
        return self._retention

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def append(self, vehicle_id: str, reading: FuelReading) -> None:
        """Add *reading* to the vehicle's window and evict what falls out.

        Readings are expected in non-decreasing timestamp order per call.
        """
        window = self._windows.get(vehicle_id)
        if window is None:
            window = deque()
            self._windows[vehicle_id] = window
        window.append(reading)

        horizon = reading.timestamp - self._retention
        while window and window[0].timestamp < horizon:
            window.popleft()
        while len(window) > self._max_entries:
            window.popleft()

    def window(self, vehicle_id: str) -> list[FuelReading]:
        """Snapshot of the vehicle's window, oldest first."""
        return list(self._windows.get(vehicle_id, ()))

    def vehicle_ids(self) -> list[str]:
        return list(self._windows)

    def retain(self, vehicle_ids: Iterable[str]) -> None:
        """Drop windows for vehicles not in *vehicle_ids*."""
        keep = set(vehicle_ids)
        for vehicle_id in [vid for vid in self._windows if vid not in keep]:
            del self._windows[vehicle_id]

    def clear(self, vehicle_id: str | None = None) -> None:
        if vehicle_id is None:
            self._windows.clear()
        else:
            self._windows.pop(vehicle_id, None)

    def __len__(self) -> int:
        return sum(len(window) for window in self._windows.values())
