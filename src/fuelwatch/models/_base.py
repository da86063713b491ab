"""Shared building blocks for telemetry models.

Every API-facing model inherits from :class:`TelemetryModel`, which
provides:

* frozen, extra-ignoring pydantic config so unknown API keys are dropped
* a ``raw`` dict that captures the original payload

Timestamps use :data:`UtcDatetime`, which accepts ISO strings or
datetimes and always yields a timezone-aware UTC value.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from fuelwatch.ingestion.normalize import ensure_utc

UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]
"""Datetime coerced to timezone-aware UTC (naive values are taken as UTC)."""


class TelemetryModel(BaseModel):
    """Base for telemetry API response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original API response dict."""

    @model_validator(mode="before")
    @classmethod
    def _ensure_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged.setdefault("raw", values)
        return merged
