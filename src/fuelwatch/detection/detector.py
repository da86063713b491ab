"""Windowed fuel drop detection."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta

from fuelwatch.models.telemetry import FuelReading


@dataclass(frozen=True, slots=True)
class DropEvent:
    """A qualifying fuel drop. Transient; never persisted."""

    previous_reading: FuelReading
    current_reading: FuelReading
    drop_percent: float
    duration_minutes: float

    @property
    def previous_level(self) -> float:
        return self.previous_reading.level_percent

    @property
    def current_level(self) -> float:
        return self.current_reading.level_percent


def detect_drop(
    window: Iterable[FuelReading],
    candidate: FuelReading,
    *,
    threshold_percent: float,
    window_minutes: float,
) -> DropEvent | None:
    """Compare *candidate* against the highest reading in the preceding window.

    Only readings with ``candidate.timestamp - window_minutes <= ts <
    candidate.timestamp`` are considered. The peak is the first reading
    holding the maximum level, so ties resolve to the earliest one and the
    reported duration is the longest possible.
    """
    window_start = candidate.timestamp - timedelta(minutes=window_minutes)

    peak: FuelReading | None = None
    for reading in window:
        if not window_start <= reading.timestamp < candidate.timestamp:
            continue
        if peak is None or reading.level_percent > peak.level_percent:
            peak = reading

    if peak is None:
        return None

    drop_percent = peak.level_percent - candidate.level_percent
    duration_minutes = (candidate.timestamp - peak.timestamp).total_seconds() / 60.0

    if drop_percent >= threshold_percent and duration_minutes <= window_minutes:
        return DropEvent(
            previous_reading=peak,
            current_reading=candidate,
            drop_percent=drop_percent,
            duration_minutes=duration_minutes,
        )
    return None
