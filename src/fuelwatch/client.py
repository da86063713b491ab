"""High-level async client for the Geotab telemetry API."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

import aiohttp

from fuelwatch._api import devices as _devices_api
from fuelwatch._api import status_data as _status_api
from fuelwatch._api import trips as _trips_api
from fuelwatch._api.login import authenticate
from fuelwatch._transport import JsonRpcTransport, Transport
from fuelwatch.config import GeotabConfig
from fuelwatch.exceptions import FuelWatchError, SessionExpiredError
from fuelwatch.models.telemetry import FeedPage, StatusRecord, Trip
from fuelwatch.models.vehicle import Vehicle
from fuelwatch.session import GeotabSession
from fuelwatch.sources import Diagnostic

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class GeotabClient:
    """Async client for the Geotab JSON-RPC API.

    Implements :class:`fuelwatch.sources.TelemetrySource`.

    Usage::

        async with GeotabClient(config) as client:
            await client.login()
            vehicles = await client.get_vehicles()

    Calls authenticate lazily, so an explicit :meth:`login` is optional.
    """

    def __init__(
        self,
        config: GeotabConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._injected_transport = transport
        self._transport: Transport | None = transport
        self._session: GeotabSession | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> GeotabClient:
        if self._injected_transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = JsonRpcTransport(self._http_session, timeout=self._config.request_timeout)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = self._injected_transport

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @property
    def session(self) -> GeotabSession | None:
        return self._session

    async def login(self) -> None:
        """Authenticate and store the session, following any server redirect."""
        transport = self._require_transport()
        self._session = await authenticate(self._config, transport)
        _logger.info("Authenticated as %s on %s", self._session.user_name, self._session.server)

    async def ensure_session(self) -> GeotabSession:
        """Return an active session, re-authenticating if expired."""
        if self._session is not None and not self._session.is_expired:
            return self._session
        await self.login()
        assert self._session is not None  # noqa: S101
        return self._session

    def invalidate_session(self) -> None:
        """Force session invalidation (next call will re-authenticate)."""
        self._session = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise FuelWatchError("Client not initialized. Use 'async with GeotabClient(...) as client:'")
        return self._transport

    async def _call_with_reauth(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run an API call, retrying once on session expiry."""
        try:
            return await fn()
        except SessionExpiredError:
            _logger.info("Session expired; re-authenticating")
            self.invalidate_session()
            await self.ensure_session()
            return await fn()

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------

    async def get_vehicles(self) -> list[Vehicle]:
        """Fetch the active vehicles of the database."""

        async def _fetch() -> list[Vehicle]:
            session = await self.ensure_session()
            return await _devices_api.fetch_vehicles(session, self._require_transport())

        return await self._call_with_reauth(_fetch)

    async def get_fuel_feed(self, from_version: str | None = None) -> FeedPage:
        """Fetch fuel-level records changed since *from_version*.

        Without a version the feed starts from the beginning.
        """

        async def _fetch() -> FeedPage:
            session = await self.ensure_session()
            return await _status_api.fetch_fuel_feed(
                session,
                self._require_transport(),
                from_version=from_version,
                results_limit=self._config.results_limit,
            )

        return await self._call_with_reauth(_fetch)

    async def get_status_data(
        self,
        vehicle_id: str,
        diagnostic: Diagnostic,
        from_date: datetime,
        to_date: datetime,
    ) -> list[StatusRecord]:
        async def _fetch() -> list[StatusRecord]:
            session = await self.ensure_session()
            return await _status_api.fetch_status_data(
                session,
                self._require_transport(),
                vehicle_id=vehicle_id,
                diagnostic_id=str(diagnostic),
                from_date=from_date,
                to_date=to_date,
            )

        return await self._call_with_reauth(_fetch)

    async def get_trips(self, vehicle_id: str, from_date: datetime, to_date: datetime) -> list[Trip]:
        async def _fetch() -> list[Trip]:
            session = await self.ensure_session()
            return await _trips_api.fetch_trips(
                session,
                self._require_transport(),
                vehicle_id=vehicle_id,
                from_date=from_date,
                to_date=to_date,
            )

        return await self._call_with_reauth(_fetch)
