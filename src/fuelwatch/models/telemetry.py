"""Telemetry record models: status data, trips, feed pages and fuel readings."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from fuelwatch.ingestion.normalize import entity_id, safe_float
from fuelwatch.models._base import TelemetryModel, UtcDatetime


class StatusRecord(TelemetryModel):
    """A single diagnostic sample (``typeName="StatusData"``).

    For fuel level ``value`` is a fraction (``0.8`` = 80 %); for ignition
    it is ``0`` (off) or non-zero (on).
    """

    vehicle_id: str = Field(validation_alias=AliasChoices("device", "vehicleId", "vehicle_id"))
    timestamp: UtcDatetime = Field(validation_alias=AliasChoices("dateTime", "timestamp"))
    value: float = Field(default=0.0, validation_alias=AliasChoices("data", "value", "rawValue"))
    diagnostic_id: str | None = Field(default=None, validation_alias=AliasChoices("diagnostic", "diagnostic_id"))

    @field_validator("vehicle_id", "diagnostic_id", mode="before")
    @classmethod
    def _flatten_reference(cls, value: Any) -> str | None:
        return entity_id(value)

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> float:
        parsed = safe_float(value)
        return 0.0 if parsed is None else parsed


class Trip(TelemetryModel):
    """A movement record (``typeName="Trip"``)."""

    vehicle_id: str = Field(validation_alias=AliasChoices("device", "vehicle_id"))
    start: UtcDatetime | None = None
    stop: UtcDatetime | None = None

    @field_validator("vehicle_id", mode="before")
    @classmethod
    def _flatten_reference(cls, value: Any) -> str | None:
        return entity_id(value)


class FeedPage(BaseModel):
    """One incremental feed response."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    to_version: str | None = Field(default=None, validation_alias=AliasChoices("toVersion", "to_version"))
    """Resumption token for the next request."""
    records: list[StatusRecord] = Field(default_factory=list, validation_alias=AliasChoices("data", "records"))


class FuelReading(BaseModel):
    """A fuel-level reading in percent.

    ``level_percent`` is not clamped to 0-100; source data is trusted.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    vehicle_id: str
    timestamp: UtcDatetime
    level_percent: float

    @classmethod
    def from_status(cls, record: StatusRecord) -> FuelReading:
        """Convert a raw fractional fuel-level sample into a percentage reading."""
        return cls(
            vehicle_id=record.vehicle_id,
            timestamp=record.timestamp,
            level_percent=record.value * 100,
        )
