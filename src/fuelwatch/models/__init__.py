"""Data models for telemetry records and theft alerts."""

from fuelwatch.models._base import TelemetryModel, UtcDatetime
from fuelwatch.models.alert import Alert, Severity
from fuelwatch.models.telemetry import FeedPage, FuelReading, StatusRecord, Trip
from fuelwatch.models.vehicle import Vehicle

__all__ = [
    "Alert",
    "FeedPage",
    "FuelReading",
    "Severity",
    "StatusRecord",
    "TelemetryModel",
    "Trip",
    "UtcDatetime",
    "Vehicle",
]
