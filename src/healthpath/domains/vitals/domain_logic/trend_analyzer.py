"""Per-vital trends and summary statistics from stored history.

Direction compares the two most recent history entries carrying a value;
summary statistics cover every entry in the window.
"""

from __future__ import annotations

import logging
import statistics
from dataclasses import dataclass
from typing import Any, Literal

from healthpath.core.storage.models import VitalRecord
from healthpath.core.storage.repository import VitalsRepository
from healthpath.domains.vitals.domain_logic.vital_types import (
    DASHBOARD_ORDER,
    VITAL_DISPLAY,
    VitalType,
)

logger = logging.getLogger(__name__)

# Changes within 1% of the previous reading count as stable.
STABLE_TOLERANCE = 0.01

TrendDirection = Literal["up", "down", "stable"]


@dataclass
class VitalTrend:
    """Direction and size of the latest change for one vital."""

    direction: TrendDirection
    change: float
    trend_value: str  # signed, e.g. "+4" or "-0.3"


def _format_change(change: float, decimals: int | None) -> str:
    if decimals is not None:
        return f"{change:+.{decimals}f}"
    if float(change).is_integer():
        return f"{int(change):+d}"
    return f"{round(change, 2):+g}"


def compute_vital_trend(
    history: list[VitalRecord],
    field: str,
    decimals: int | None = None,
) -> VitalTrend | None:
    """Compare the two most recent values of ``field`` (history is newest first).

    Returns:
        The trend, or None when fewer than two entries carry the field.
    """
    values = [getattr(r, field) for r in history if getattr(r, field) is not None]
    if len(values) < 2:
        return None
    latest, previous = float(values[0]), float(values[1])
    change = latest - previous
    if previous and abs(change) <= abs(previous) * STABLE_TOLERANCE:
        direction: TrendDirection = "stable"
    elif change > 0:
        direction = "up"
    elif change < 0:
        direction = "down"
    else:
        direction = "stable"
    return VitalTrend(direction=direction, change=change, trend_value=_format_change(change, decimals))


def compute_trends(history: list[VitalRecord]) -> dict[VitalType, VitalTrend]:
    """Trends for every dashboard vital that has at least two readings.

    Blood pressure trends follow the systolic value.
    """
    trends: dict[VitalType, VitalTrend] = {}
    for vital_type in DASHBOARD_ORDER:
        display = VITAL_DISPLAY[vital_type]
        trend = compute_vital_trend(history, display.fields[0], display.decimals)
        if trend is not None:
            trends[vital_type] = trend
    return trends


class VitalTrendAnalyzer:
    """Summary statistics over a user's stored history.

    Usage::

        analyzer = VitalTrendAnalyzer(repository)
        summary = analyzer.summarize("uid-1", limit=30)
    """

    def __init__(self, repository: VitalsRepository) -> None:
        self._repo = repository

    def summarize(self, user_id: str, *, limit: int = 30) -> dict[str, Any]:
        """Per-vital count, latest, mean, min, max and trend over recent history."""
        history = self._repo.get_vitals_history(user_id, limit=limit)
        if not history:
            return {"entries": 0, "status": "no_data", "vitals": {}}

        trends = compute_trends(history)
        vitals: dict[str, Any] = {}
        for vital_type in DASHBOARD_ORDER:
            display = VITAL_DISPLAY[vital_type]
            field = display.fields[0]
            values = [float(getattr(r, field)) for r in history if getattr(r, field) is not None]
            if not values:
                continue
            stats: dict[str, Any] = {
                "count": len(values),
                "latest": values[0],
                "mean": round(statistics.mean(values), 2),
                "min": min(values),
                "max": max(values),
                "unit": display.unit,
            }
            if len(values) >= 2:
                stats["std_dev"] = round(statistics.stdev(values), 2)
            trend = trends.get(vital_type)
            if trend is not None:
                stats["trend"] = trend.direction
                stats["trend_value"] = trend.trend_value
            vitals[vital_type.value] = stats

        return {
            "entries": len(history),
            "status": "ok",
            "period_start": history[-1].date,
            "period_end": history[0].date,
            "vitals": vitals,
        }
