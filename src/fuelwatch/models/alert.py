"""Theft alert model."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from fuelwatch._constants import UNKNOWN_LOCATION
from fuelwatch.models._base import UtcDatetime


class Severity(StrEnum):
    """Alert severity tiers, most severe first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class Alert(BaseModel):
    """A suspected theft, built by the engine and handed to an alert sink.

    ``id`` is ``None`` until the sink that persists the alert assigns one.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int | None = None
    vehicle_id: str
    vehicle_name: str
    severity: Severity
    fuel_drop_percent: float
    previous_level: float
    current_level: float
    duration_minutes: int = Field(ge=0)
    timestamp: UtcDatetime
    location: str = UNKNOWN_LOCATION
    historical: bool = False
