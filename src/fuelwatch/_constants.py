"""Internal constants shared across the library."""

from __future__ import annotations

import math
from datetime import timedelta

DEFAULT_SERVER = "my.geotab.com"
API_PATH = "/apiv1"
USER_AGENT = "fuelwatch"

DIAGNOSTIC_FUEL_LEVEL = "DiagnosticFuelLevelId"
DIAGNOSTIC_IGNITION = "DiagnosticIgnitionId"

FEED_RESULTS_LIMIT = 1000

# Geotab error names that mean the session id is no longer accepted.
SESSION_EXPIRED_ERRORS: frozenset[str] = frozenset({"InvalidUserException", "DbUnavailableException"})
FEED_VERSION_ERRORS: frozenset[str] = frozenset({"InvalidFeedVersionException"})

# ------------------------------------------------------------------
# Detection tuning
# ------------------------------------------------------------------

LIVE_HISTORY_RETENTION = timedelta(hours=2)
HISTORY_MAX_ENTRIES = 500
DEDUP_COOLDOWN = timedelta(minutes=5)
STATIONARY_LOOKBACK = timedelta(minutes=5)
MAX_HISTORICAL_SPAN = timedelta(days=30)

UNKNOWN_VEHICLE_NAME = "Unknown Vehicle"
UNKNOWN_LOCATION = "Unknown"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves going up (``2.5 -> 3``)."""
    return math.floor(value + 0.5)
