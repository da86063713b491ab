"""Custom exception hierarchy for fuelwatch."""

from __future__ import annotations


class FuelWatchError(Exception):
    """Base exception for all fuelwatch errors."""


class FuelWatchConfigError(FuelWatchError):
    """Invalid or out-of-range configuration."""


class TelemetryError(FuelWatchError):
    """Any failure talking to the telemetry source."""


class TelemetryTransportError(TelemetryError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        method: str = "",
    ) -> None:
        self.status_code = status_code
        self.method = method
        super().__init__(message)


class TelemetryApiError(TelemetryError):
    """The JSON-RPC endpoint returned an error object."""

    def __init__(
        self,
        message: str,
        *,
        name: str = "",
        method: str = "",
    ) -> None:
        self.name = name
        self.method = method
        super().__init__(message)


class AuthenticationError(TelemetryApiError):
    """Authentication failed."""


class SessionExpiredError(AuthenticationError):
    """Session id rejected by the server.

    The client catches this internally to re-authenticate once before
    surfacing the failure.
    """


class FeedVersionError(TelemetryApiError):
    """The feed rejected the supplied ``fromVersion`` token.

    Continuing with the same token cannot recover; callers reset their
    cursor so the next request performs a full resync.
    """


def is_version_mismatch(exc: BaseException) -> bool:
    """Whether *exc* signals that the feed cursor must be discarded."""
    if isinstance(exc, FeedVersionError):
        return True
    return "version" in str(exc).lower()
