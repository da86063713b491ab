"""Severity classification.

Tiers are an ordered rule table; the first matching rule wins. The
bands are fixed and do not scale with the configured drop threshold, so
any drop that passed detection is at least :attr:`Severity.MEDIUM`.
"""

from __future__ import annotations

from collections.abc import Callable

from fuelwatch.models.alert import Severity

SeverityPredicate = Callable[[float, float], bool]

SEVERITY_RULES: tuple[tuple[SeverityPredicate, Severity], ...] = (
    (lambda drop, minutes: drop > 25 and minutes < 10, Severity.CRITICAL),
    (lambda drop, minutes: drop > 15 and minutes < 20, Severity.HIGH),
)

FALLBACK_SEVERITY = Severity.MEDIUM


def classify_severity(
    drop_percent: float,
    duration_minutes: float,
    *,
    rules: tuple[tuple[SeverityPredicate, Severity], ...] = SEVERITY_RULES,
) -> Severity:
    for predicate, severity in rules:
        if predicate(drop_percent, duration_minutes):
            return severity
    return FALLBACK_SEVERITY
