"""Stationary-state verification.

A fuel drop only matters while the vehicle is parked: a drop with the
ignition on or during a trip is ordinary consumption. The verifier asks
the telemetry source about the few minutes leading up to the drop.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import StrEnum

from fuelwatch._constants import STATIONARY_LOOKBACK
from fuelwatch.exceptions import TelemetryError
from fuelwatch.sources import Diagnostic, TelemetrySource

_logger = logging.getLogger(__name__)


class VerificationFailurePolicy(StrEnum):
    """What to conclude when the verification queries fail."""

    FAIL_OPEN = "fail_open"
    """Treat the vehicle as stationary and keep the alert."""
    FAIL_CLOSED = "fail_closed"
    """Treat the vehicle as moving and drop the alert."""


DEFAULT_FAILURE_POLICY = VerificationFailurePolicy.FAIL_OPEN
"""Verification failures keep the alert."""


class StationaryVerifier:
    """Confirm a vehicle was parked with the ignition off around an instant."""

    def __init__(
        self,
        source: TelemetrySource,
        *,
        failure_policy: VerificationFailurePolicy = DEFAULT_FAILURE_POLICY,
        lookback: timedelta = STATIONARY_LOOKBACK,
    ) -> None:
        self._source = source
        self._failure_policy = failure_policy
        self._lookback = lookback

    @property
    def failure_policy(self) -> VerificationFailurePolicy:
        return self._failure_policy

    async def is_stationary(self, vehicle_id: str, at: datetime) -> bool:
        """Return False when the ignition was on or a trip overlaps ``[at - lookback, at]``."""
        from_date = at - self._lookback
        try:
            ignition = await self._source.get_status_data(vehicle_id, Diagnostic.IGNITION, from_date, at)
            if ignition and ignition[-1].value != 0:
                _logger.debug("Vehicle %s ignition on at %s", vehicle_id, at.isoformat())
                return False

            trips = await self._source.get_trips(vehicle_id, from_date, at)
            if trips:
                _logger.debug("Vehicle %s had %d trip(s) before %s", vehicle_id, len(trips), at.isoformat())
                return False
        except TelemetryError as exc:
            stationary = self._failure_policy is VerificationFailurePolicy.FAIL_OPEN
            _logger.warning(
                "State check failed for vehicle %s (%s); assuming %s",
                vehicle_id,
                exc,
                "stationary" if stationary else "moving",
            )
            return stationary

        return True
