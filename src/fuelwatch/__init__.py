"""fuelwatch - Fuel theft detection for Geotab fleets."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fuelwatch")
except PackageNotFoundError:
    __version__ = "0+local"
from fuelwatch.alerts import MemoryAlertSink
from fuelwatch.client import GeotabClient
from fuelwatch.config import GeotabConfig, MonitorConfig
from fuelwatch.config_store import JsonConfigStore, MemoryConfigStore
from fuelwatch.context import EngineContext
from fuelwatch.detection.stationary import DEFAULT_FAILURE_POLICY, VerificationFailurePolicy
from fuelwatch.engine import FuelTheftEngine
from fuelwatch.exceptions import (
    AuthenticationError,
    FeedVersionError,
    FuelWatchConfigError,
    FuelWatchError,
    SessionExpiredError,
    TelemetryApiError,
    TelemetryError,
    TelemetryTransportError,
)
from fuelwatch.ingestion.poller import MonitorState, MonitorStatus
from fuelwatch.models import (
    Alert,
    FeedPage,
    FuelReading,
    Severity,
    StatusRecord,
    Trip,
    Vehicle,
)
from fuelwatch.sources import AlertSink, ConfigStore, Diagnostic, TelemetrySource

__all__ = [
    "__version__",
    "DEFAULT_FAILURE_POLICY",
    "Alert",
    "AlertSink",
    "AuthenticationError",
    "ConfigStore",
    "Diagnostic",
    "EngineContext",
    "FeedPage",
    "FeedVersionError",
    "FuelReading",
    "FuelTheftEngine",
    "FuelWatchConfigError",
    "FuelWatchError",
    "GeotabClient",
    "GeotabConfig",
    "JsonConfigStore",
    "MemoryAlertSink",
    "MemoryConfigStore",
    "MonitorConfig",
    "MonitorState",
    "MonitorStatus",
    "SessionExpiredError",
    "Severity",
    "StatusRecord",
    "TelemetryApiError",
    "TelemetryError",
    "TelemetrySource",
    "TelemetryTransportError",
    "Trip",
    "Vehicle",
    "VerificationFailurePolicy",
]
