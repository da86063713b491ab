"""Per-vehicle alert cooldown."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from fuelwatch._constants import DEDUP_COOLDOWN

_logger = logging.getLogger(__name__)


class DeduplicationGate:
    """Suppress repeat alerts for a vehicle within a cooldown period.

    This is the only place where an otherwise-qualifying drop is dropped
    purely on recency; severity plays no part.
    """

    def __init__(self, *, cooldown: timedelta = DEDUP_COOLDOWN) -> None:
        self._cooldown = cooldown
        self._last_accepted: dict[str, datetime] = {}

    @property
    def cooldown(self) -> timedelta:
        return self._cooldown

    def accept(self, vehicle_id: str, at: datetime) -> bool:
        """Return True and record *at* unless the vehicle is still cooling down.

        A rejection leaves the recorded instant untouched, so the cooldown
        is always counted from the last *accepted* alert.
        """
        last = self._last_accepted.get(vehicle_id)
        if last is not None and abs(at - last) < self._cooldown:
            _logger.debug("Alert for vehicle=%s suppressed; last accepted at %s", vehicle_id, last.isoformat())
            return False
        self._last_accepted[vehicle_id] = at
        return True

    def last_accepted(self, vehicle_id: str) -> datetime | None:
        return self._last_accepted.get(vehicle_id)

    def retain(self, vehicle_ids: Iterable[str]) -> None:
        """Forget vehicles that are no longer in the registry."""
        keep = set(vehicle_ids)
        stale = [vid for vid in self._last_accepted if vid not in keep]
        for vehicle_id in stale:
            del self._last_accepted[vehicle_id]
        if stale:
            _logger.debug("Pruned cooldown entries for %d departed vehicles", len(stale))

    def __len__(self) -> int:
        return len(self._last_accepted)
