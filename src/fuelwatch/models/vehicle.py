"""Vehicle registry model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from fuelwatch.ingestion.normalize import safe_str
from fuelwatch.models._base import TelemetryModel


class Vehicle(TelemetryModel):
    """A telematics device registered to the fleet.

    Fields are mapped from ``Get`` calls with ``typeName="Device"``.
    """

    id: str = Field(validation_alias=AliasChoices("id", "vehicle_id"))
    """Device identifier used by every other telemetry query."""
    name: str = Field(default="", validation_alias=AliasChoices("name"))
    """Human-readable vehicle name."""
    serial_number: str = Field(default="", validation_alias=AliasChoices("serialNumber", "serial_number"))
    """Hardware serial number."""

    @field_validator("id")
    @classmethod
    def _require_id(cls, value: str) -> str:
        vehicle_id = value.strip()
        if not vehicle_id:
            raise ValueError("vehicle id must be non-empty")
        return vehicle_id

    @field_validator("name", "serial_number", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return safe_str(value) or ""
