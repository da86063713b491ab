"""Configuration for fuelwatch.

Two frozen dataclasses live here:

* :class:`GeotabConfig` describes how to reach the telemetry service.
* :class:`MonitorConfig` holds the detection tuning that users may change
  at runtime through :meth:`fuelwatch.engine.FuelTheftEngine.update_config`.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Mapping
from typing import Any

from fuelwatch._constants import DEFAULT_SERVER, FEED_RESULTS_LIMIT
from fuelwatch.exceptions import FuelWatchConfigError
from fuelwatch.ingestion.normalize import safe_float

_logger = logging.getLogger(__name__)

# (minimum, maximum) inclusive, per tunable field.
THRESHOLD_RANGE: tuple[float, float] = (1, 50)
TIME_WINDOW_RANGE: tuple[float, float] = (5, 120)
POLL_INTERVAL_RANGE: tuple[float, float] = (10, 300)

# Keys used by previously stored configuration blobs.
_LEGACY_KEYS: dict[str, str] = {
    "dropThreshold": "drop_threshold_percent",
    "dropThresholdPercent": "drop_threshold_percent",
    "timeWindowMinutes": "time_window_minutes",
    "pollIntervalSeconds": "poll_interval_seconds",
}


@dataclasses.dataclass(frozen=True)
class MonitorConfig:
    """Detection tuning.

    Parameters
    ----------
    drop_threshold_percent : float
        Minimum fuel-level drop (percentage points) that counts as a
        suspicious drop. Allowed range 1-50.
    time_window_minutes : int
        Look-back window for the drop detector. Allowed range 5-120.
    poll_interval_seconds : int
        Delay between continuous-mode feed polls. Allowed range 10-300.
    """

    drop_threshold_percent: float = 10
    time_window_minutes: int = 30
    poll_interval_seconds: int = 30

    def __post_init__(self) -> None:
        _check_range("drop_threshold_percent", self.drop_threshold_percent, THRESHOLD_RANGE)
        _check_range("time_window_minutes", self.time_window_minutes, TIME_WINDOW_RANGE)
        _check_range("poll_interval_seconds", self.poll_interval_seconds, POLL_INTERVAL_RANGE)

    def replace(self, **changes: Any) -> MonitorConfig:
        """Return a validated copy with *changes* applied.

        Raises :class:`FuelWatchConfigError` for unknown fields or
        out-of-range values; ``self`` is never modified.
        """
        known = {f.name for f in dataclasses.fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise FuelWatchConfigError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **changes)

    def to_mapping(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> MonitorConfig:
        """Build a configuration from a stored blob, tolerating bad data.

        Missing, non-numeric or out-of-range values fall back to the
        field default. Both snake_case and the legacy camelCase keys are
        recognised.
        """
        if not isinstance(data, Mapping):
            if data is not None:
                _logger.warning("Ignoring malformed stored configuration: %r", data)
            return cls()

        normalized: dict[str, Any] = {}
        for key, value in data.items():
            field_name = _LEGACY_KEYS.get(str(key), str(key))
            normalized[field_name] = value

        defaults = cls()
        kwargs: dict[str, Any] = {}
        for name, bounds, cast in (
            ("drop_threshold_percent", THRESHOLD_RANGE, float),
            ("time_window_minutes", TIME_WINDOW_RANGE, int),
            ("poll_interval_seconds", POLL_INTERVAL_RANGE, int),
        ):
            if name not in normalized:
                continue
            parsed = safe_float(normalized[name])
            if parsed is None or not bounds[0] <= parsed <= bounds[1]:
                _logger.warning(
                    "Stored %s=%r is invalid; using default %s",
                    name,
                    normalized[name],
                    getattr(defaults, name),
                )
                continue
            kwargs[name] = cast(parsed)
        return cls(**kwargs)


def _check_range(name: str, value: Any, bounds: tuple[float, float]) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FuelWatchConfigError(f"{name} must be a number, got {value!r}")
    low, high = bounds
    if not low <= value <= high:
        raise FuelWatchConfigError(f"{name} must be between {low:g} and {high:g}, got {value!r}")


@dataclasses.dataclass(frozen=True)
class GeotabConfig:
    """Telemetry service connection settings.

    Parameters
    ----------
    username : str
        Account user name (usually an email address).
    password : str
        Account password.
    database : str
        Database (company) name.
    server : str
        Host to authenticate against. The server may redirect the session
        to another host after authentication.
    results_limit : int
        Maximum records per feed request.
    request_timeout : float
        Per-request timeout in seconds.
    """

    username: str
    password: str
    database: str
    server: str = DEFAULT_SERVER
    results_limit: int = FEED_RESULTS_LIMIT
    request_timeout: float = 30.0

    @classmethod
    def from_env(cls, **overrides: Any) -> GeotabConfig:
        """Create configuration from ``GEOTAB_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "GEOTAB_USERNAME": "username",
            "GEOTAB_PASSWORD": "password",
            "GEOTAB_DATABASE": "database",
            "GEOTAB_SERVER": "server",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        limit_env = env.get("GEOTAB_RESULTS_LIMIT")
        if limit_env is not None and "results_limit" not in overrides:
            config_kwargs["results_limit"] = int(limit_env)

        timeout_env = env.get("GEOTAB_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        config_kwargs.update(overrides)

        missing = [name for name in ("username", "password", "database") if not config_kwargs.get(name)]
        if missing:
            raise FuelWatchConfigError(f"Missing telemetry credentials: {', '.join(missing)}")

        return cls(**config_kwargs)
