from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from conftest import FakeTelemetrySource, RecordingSink

from fuelwatch.context import EngineContext
from fuelwatch.detection.pipeline import DetectionPipeline
from fuelwatch.detection.stationary import StationaryVerifier
from fuelwatch.models.alert import Severity
from fuelwatch.models.telemetry import FuelReading, Trip
from fuelwatch.state.dedup import DeduplicationGate
from fuelwatch.state.history import HistoryStore

T0 = datetime(2026, 1, 1, tzinfo=UTC)
NOW = datetime(2026, 1, 2, 12, 0, tzinfo=UTC)


def _reading(minutes: float, level: float, vehicle_id: str = "b1") -> FuelReading:
    return FuelReading(vehicle_id=vehicle_id, timestamp=T0 + timedelta(minutes=minutes), level_percent=level)


def _context(source: FakeTelemetrySource, sink: RecordingSink) -> EngineContext:
    context = EngineContext(source=source, sink=sink, verifier=StationaryVerifier(source), clock=lambda: NOW)
    context.vehicles = {vehicle.id: vehicle for vehicle in source.vehicles}
    return context


@pytest.mark.asyncio
async def test_live_alert_is_built_and_emitted(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    pipeline = DetectionPipeline(_context(source, sink))

    alerts = await pipeline.process_batch([_reading(0, 80), _reading(10, 55)])

    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.id == 1
    assert alert.vehicle_id == "b1"
    assert alert.vehicle_name == "Truck 1"
    assert alert.severity is Severity.HIGH
    assert alert.fuel_drop_percent == pytest.approx(25)
    assert alert.previous_level == 80
    assert alert.current_level == 55
    assert alert.duration_minutes == 10
    assert alert.timestamp == NOW
    assert alert.location == "Unknown"
    assert alert.historical is False
    assert sink.alerts == alerts


@pytest.mark.asyncio
async def test_historical_alert_uses_reading_time(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    pipeline = DetectionPipeline(
        _context(source, sink),
        history=HistoryStore(retention=timedelta(minutes=60)),
        dedup=DeduplicationGate(),
        historical=True,
    )

    alerts = await pipeline.process_batch([_reading(0, 90), _reading(5, 60)])

    assert len(alerts) == 1
    assert alerts[0].historical is True
    assert alerts[0].timestamp == T0 + timedelta(minutes=5)
    assert alerts[0].severity is Severity.CRITICAL


@pytest.mark.asyncio
async def test_batch_is_processed_in_timestamp_order(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    pipeline = DetectionPipeline(_context(source, sink))

    alerts = await pipeline.process_batch([_reading(10, 55), _reading(0, 80)])

    assert len(alerts) == 1
    assert alerts[0].previous_level == 80


@pytest.mark.asyncio
async def test_moving_vehicle_produces_no_alert(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    source.trips["b1"] = [Trip.model_validate({"device": {"id": "b1"}})]
    pipeline = DetectionPipeline(_context(source, sink))

    alerts = await pipeline.process_batch([_reading(0, 80), _reading(10, 55)])

    assert alerts == []
    assert sink.alerts == []


@pytest.mark.asyncio
async def test_live_cooldown_uses_clock(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    now = [NOW]
    context = _context(source, sink)
    context.clock = lambda: now[0]
    pipeline = DetectionPipeline(context)

    # A backlog delivered in one poll: each reading qualifies against the peak.
    alerts = await pipeline.process_batch([_reading(0, 80), _reading(10, 60), _reading(20, 40)])
    assert [alert.fuel_drop_percent for alert in alerts] == pytest.approx([20])
    assert context.dedup.last_accepted("b1") == NOW

    now[0] = NOW + timedelta(minutes=4)
    assert await pipeline.process(_reading(22, 35)) is None

    now[0] = NOW + timedelta(minutes=5)
    alert = await pipeline.process(_reading(24, 30))
    assert alert is not None
    assert alert.timestamp == NOW + timedelta(minutes=5)
    assert len(sink.alerts) == 2


@pytest.mark.asyncio
async def test_historical_cooldown_uses_reading_time(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    pipeline = DetectionPipeline(
        _context(source, sink),
        history=HistoryStore(retention=timedelta(minutes=60)),
        dedup=DeduplicationGate(),
        historical=True,
    )

    # Peak 90 stays in the window; both later readings qualify.
    alerts = await pipeline.process_batch([_reading(0, 90), _reading(5, 70), _reading(7, 60)])
    assert len(alerts) == 1

    later = await pipeline.process_batch([_reading(13, 40)])
    assert len(later) == 1


@pytest.mark.asyncio
async def test_duration_is_rounded_half_up(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    pipeline = DetectionPipeline(_context(source, sink))

    alerts = await pipeline.process_batch([_reading(0, 80), _reading(2.5, 60)])

    assert alerts[0].duration_minutes == 3


@pytest.mark.asyncio
async def test_unknown_vehicle_name(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    pipeline = DetectionPipeline(_context(source, sink))

    alerts = await pipeline.process_batch([_reading(0, 80, "b9"), _reading(10, 55, "b9")])

    assert alerts[0].vehicle_name == "Unknown Vehicle"


@pytest.mark.asyncio
async def test_sink_failure_is_logged_not_raised(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    sink.fail = True
    pipeline = DetectionPipeline(_context(source, sink))

    alerts = await pipeline.process_batch([_reading(0, 80), _reading(10, 55)])

    assert len(alerts) == 1
    assert alerts[0].id is None


@pytest.mark.asyncio
async def test_threshold_change_applies_to_next_reading(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    context = _context(source, sink)
    pipeline = DetectionPipeline(context)

    assert await pipeline.process(_reading(0, 80)) is None
    assert await pipeline.process(_reading(10, 72)) is None

    context.config = context.config.replace(drop_threshold_percent=5)
    alert = await pipeline.process(_reading(12, 74))

    assert alert is not None
    assert alert.fuel_drop_percent == pytest.approx(6)
