"""In-memory alert sink."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from fuelwatch.models.alert import Alert, Severity

_logger = logging.getLogger(__name__)

DEFAULT_MAX_ALERTS = 100


class MemoryAlertSink:
    """Keep the most recent alerts, newest first, and assign their ids.

    Ids increase monotonically and continue from the highest id among
    the alerts the sink was seeded with.
    """

    def __init__(
        self,
        alerts: Iterable[Alert] = (),
        *,
        max_alerts: int = DEFAULT_MAX_ALERTS,
        on_alert: Callable[[Alert], None] | None = None,
    ) -> None:
        self._max_alerts = max_alerts
        self._on_alert = on_alert
        self._alerts: list[Alert] = sorted(alerts, key=lambda a: a.id or 0, reverse=True)[:max_alerts]
        self._last_id = max((a.id or 0 for a in self._alerts), default=0)

    async def emit(self, alert: Alert) -> Alert:
        self._last_id += 1
        stored = alert.model_copy(update={"id": self._last_id})
        self._alerts.insert(0, stored)
        del self._alerts[self._max_alerts :]

        if self._on_alert is not None:
            try:
                self._on_alert(stored)
            except Exception:
                _logger.debug("on_alert callback failed", exc_info=True)
        return stored

    @property
    def alerts(self) -> list[Alert]:
        """Stored alerts, newest first."""
        return list(self._alerts)

    def dismiss(self, alert_id: int) -> bool:
        """Remove one alert; returns False when no alert has that id."""
        before = len(self._alerts)
        self._alerts = [a for a in self._alerts if a.id != alert_id]
        return len(self._alerts) != before

    def clear(self) -> None:
        self._alerts.clear()

    def counts(self) -> dict[str, int]:
        """Alert totals per severity, plus ``"total"``."""
        result = {severity.value: 0 for severity in Severity}
        for alert in self._alerts:
            result[alert.severity.value] += 1
        result["total"] = len(self._alerts)
        return result
