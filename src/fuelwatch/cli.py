"""Command-line interface.

Usage
-----
Set environment variables and run::

    export GEOTAB_USERNAME="you@example.com"
    export GEOTAB_PASSWORD="your-password"
    export GEOTAB_DATABASE="your-database"
    fuelwatch monitor
    fuelwatch analyze --from 2026-01-01 --to 2026-01-08

Options::

    --config FILE        Load and save detection settings in FILE (JSON)
    --threshold PCT      Minimum fuel drop in percent (1-50)
    --window MIN         Detection time window in minutes (5-120)
    --interval SEC       Poll interval in seconds (10-300)
    --verbose            Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from fuelwatch._constants import MAX_HISTORICAL_SPAN
from fuelwatch.alerts import MemoryAlertSink
from fuelwatch.client import GeotabClient
from fuelwatch.config import GeotabConfig
from fuelwatch.config_store import JsonConfigStore
from fuelwatch.engine import FuelTheftEngine
from fuelwatch.exceptions import FuelWatchConfigError, FuelWatchError
from fuelwatch.ingestion.normalize import ensure_utc
from fuelwatch.ingestion.poller import MonitorStatus
from fuelwatch.models.alert import Alert
from fuelwatch.sources import TelemetrySource

_logger = logging.getLogger(__name__)


def parse_datetime(value: str) -> datetime:
    """Parse an ISO 8601 date or datetime; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r}") from exc
    return ensure_utc(parsed)


def check_analysis_range(from_date: datetime, to_date: datetime) -> None:
    """Reject empty, inverted or too long analysis ranges."""
    if from_date >= to_date:
        raise FuelWatchConfigError("Start date must be before end date")
    if to_date - from_date > MAX_HISTORICAL_SPAN:
        raise FuelWatchConfigError(f"Date range cannot exceed {MAX_HISTORICAL_SPAN.days} days")


def format_alert(alert: Alert) -> str:
    tag = " (historical)" if alert.historical else ""
    return (
        f"[{alert.severity.value.upper()}]{tag} {alert.vehicle_name}: fuel dropped "
        f"{alert.fuel_drop_percent:.1f}% ({alert.previous_level:.1f}% -> {alert.current_level:.1f}%) "
        f"in {alert.duration_minutes} min at {alert.timestamp.isoformat()}"
    )


def _print_alert(alert: Alert) -> None:
    print(format_alert(alert), flush=True)


def _print_status(status: MonitorStatus) -> None:
    print(f"* {status.message}", file=sys.stderr, flush=True)


def _print_progress(message: str, percent: int) -> None:
    print(f"{percent:3d}% {message}", file=sys.stderr, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fuelwatch",
        description="Detect suspicious fuel-level drops in a Geotab fleet.",
    )
    parser.add_argument("--config", help="JSON file holding detection settings")
    parser.add_argument("--threshold", type=float, help="Minimum fuel drop in percent (1-50)")
    parser.add_argument("--window", type=int, help="Detection time window in minutes (5-120)")
    parser.add_argument("--interval", type=int, help="Poll interval in seconds (10-300)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("monitor", help="Poll the fuel-level feed continuously until interrupted")
    analyze = commands.add_parser("analyze", help="Scan a past date range (at most 30 days)")
    analyze.add_argument("--from", dest="from_date", type=parse_datetime, required=True, help="Start (ISO 8601)")
    analyze.add_argument("--to", dest="to_date", type=parse_datetime, required=True, help="End (ISO 8601)")
    return parser


def _config_changes(args: argparse.Namespace) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    if args.threshold is not None:
        changes["drop_threshold_percent"] = args.threshold
    if args.window is not None:
        changes["time_window_minutes"] = args.window
    if args.interval is not None:
        changes["poll_interval_seconds"] = args.interval
    return changes


async def _monitor(engine: FuelTheftEngine) -> None:
    async with engine:
        await asyncio.Event().wait()


async def _analyze(engine: FuelTheftEngine, from_date: datetime, to_date: datetime) -> int:
    count = await engine.analyze_history(from_date, to_date, _print_progress)
    print(f"Analysis complete. Found {count} potential theft events.")
    return count


async def run(args: argparse.Namespace, source: TelemetrySource | None = None) -> int:
    """Run the selected command; *source* replaces the Geotab client when given."""
    if args.command == "analyze":
        check_analysis_range(args.from_date, args.to_date)

    store = JsonConfigStore(args.config) if args.config else None
    sink = MemoryAlertSink(on_alert=_print_alert)

    async def _run_with(telemetry: TelemetrySource) -> int:
        engine = FuelTheftEngine(telemetry, sink, config_store=store, on_status=_print_status)
        changes = _config_changes(args)
        if changes:
            engine.update_config(**changes)
        if args.command == "monitor":
            await _monitor(engine)
        else:
            await _analyze(engine, args.from_date, args.to_date)
        return 0

    if source is not None:
        return await _run_with(source)
    async with GeotabClient(GeotabConfig.from_env()) as client:
        return await _run_with(client)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        return asyncio.run(run(args))
    except FuelWatchConfigError as exc:
        parser.error(str(exc))
    except FuelWatchError as exc:
        _logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
