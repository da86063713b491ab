from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from conftest import FakeTelemetrySource, RecordingSink

from fuelwatch.context import EngineContext
from fuelwatch.detection.stationary import StationaryVerifier
from fuelwatch.exceptions import TelemetryTransportError
from fuelwatch.ingestion.historical import HistoricalAnalyzer
from fuelwatch.models.telemetry import StatusRecord
from fuelwatch.sources import Diagnostic

T0 = datetime(2026, 1, 1, tzinfo=UTC)
FROM = T0 - timedelta(days=1)
TO = T0 + timedelta(days=1)
FUEL = str(Diagnostic.FUEL_LEVEL)


def _records(vehicle_id: str, *points: tuple[float, float]) -> list[StatusRecord]:
    return [
        StatusRecord.model_validate(
            {
                "device": {"id": vehicle_id},
                "dateTime": (T0 + timedelta(minutes=minutes)).isoformat(),
                "data": fraction,
            }
        )
        for minutes, fraction in points
    ]


def _analyzer(source: FakeTelemetrySource, sink: RecordingSink) -> tuple[HistoricalAnalyzer, EngineContext]:
    context = EngineContext(source=source, sink=sink, verifier=StationaryVerifier(source))
    return HistoricalAnalyzer(context), context


@pytest.fixture
def two_vehicle_source(source: FakeTelemetrySource) -> FakeTelemetrySource:
    source.status[("b1", FUEL)] = _records("b1", (0, 0.80), (5, 0.79), (10, 0.55), (60, 0.54))
    source.status[("b2", FUEL)] = _records("b2", (0, 0.60), (10, 0.58), (20, 0.57))
    return source


@pytest.mark.asyncio
async def test_two_vehicle_aggregate(two_vehicle_source: FakeTelemetrySource, sink: RecordingSink) -> None:
    analyzer, _ = _analyzer(two_vehicle_source, sink)
    progress: list[tuple[str, int]] = []

    count = await analyzer.analyze(FROM, TO, lambda message, percent: progress.append((message, percent)))

    assert count == 1
    assert progress == [("Analyzed Truck 1 (1/2)", 50), ("Analyzed Truck 2 (2/2)", 100)]
    alert = sink.alerts[0]
    assert alert.vehicle_id == "b1"
    assert alert.historical is True
    assert alert.timestamp == T0 + timedelta(minutes=10)


@pytest.mark.asyncio
async def test_fetches_fuel_level_over_the_range(two_vehicle_source: FakeTelemetrySource, sink: RecordingSink) -> None:
    analyzer, _ = _analyzer(two_vehicle_source, sink)

    await analyzer.analyze(FROM, TO)

    fuel_calls = [call for call in two_vehicle_source.status_calls if call[1] == FUEL]
    assert fuel_calls == [("b1", FUEL, FROM, TO), ("b2", FUEL, FROM, TO)]


@pytest.mark.asyncio
async def test_fetch_failure_skips_vehicle(two_vehicle_source: FakeTelemetrySource, sink: RecordingSink) -> None:
    two_vehicle_source.status[("b1", FUEL)] = TelemetryTransportError("HTTP 500", status_code=500, method="Get")
    analyzer, _ = _analyzer(two_vehicle_source, sink)
    progress: list[int] = []

    count = await analyzer.analyze(FROM, TO, lambda _message, percent: progress.append(percent))

    assert count == 0
    assert progress == [50, 100]


@pytest.mark.asyncio
async def test_single_reading_is_skipped(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    source.status[("b1", FUEL)] = _records("b1", (0, 0.9))
    analyzer, _ = _analyzer(source, sink)

    assert await analyzer.analyze(FROM, TO) == 0


@pytest.mark.asyncio
async def test_unsorted_records_are_replayed_in_order(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    source.status[("b1", FUEL)] = _records("b1", (5, 0.60), (0, 0.90))
    analyzer, _ = _analyzer(source, sink)

    assert await analyzer.analyze(FROM, TO) == 1
    assert sink.alerts[0].previous_level == pytest.approx(90)


@pytest.mark.asyncio
async def test_cooldown_applies_within_a_run(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    source.status[("b1", FUEL)] = _records("b1", (0, 0.90), (2, 0.70), (4, 0.50), (30, 0.95), (40, 0.60))
    analyzer, _ = _analyzer(source, sink)

    assert await analyzer.analyze(FROM, TO) == 2


@pytest.mark.asyncio
async def test_run_leaves_live_state_untouched(two_vehicle_source: FakeTelemetrySource, sink: RecordingSink) -> None:
    analyzer, context = _analyzer(two_vehicle_source, sink)

    await analyzer.analyze(FROM, TO)

    assert len(context.history) == 0
    assert len(context.dedup) == 0


@pytest.mark.asyncio
async def test_cached_registry_is_reused(two_vehicle_source: FakeTelemetrySource, sink: RecordingSink) -> None:
    analyzer, _ = _analyzer(two_vehicle_source, sink)

    await analyzer.analyze(FROM, TO)
    await analyzer.analyze(FROM, TO)

    assert two_vehicle_source.vehicle_calls == 1


@pytest.mark.asyncio
async def test_registry_failure_propagates(source: FakeTelemetrySource, sink: RecordingSink) -> None:
    source.vehicles_error = TelemetryTransportError("HTTP 500", status_code=500, method="Get")
    analyzer, _ = _analyzer(source, sink)

    with pytest.raises(TelemetryTransportError):
        await analyzer.analyze(FROM, TO)


@pytest.mark.asyncio
async def test_progress_callback_errors_are_ignored(
    two_vehicle_source: FakeTelemetrySource, sink: RecordingSink
) -> None:
    analyzer, _ = _analyzer(two_vehicle_source, sink)

    def _boom(_message: str, _percent: int) -> None:
        raise RuntimeError("ui gone")

    assert await analyzer.analyze(FROM, TO, _boom) == 1
