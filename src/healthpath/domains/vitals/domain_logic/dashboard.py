"""Dashboard view model built from the latest-vitals snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from healthpath.core.storage.models import VitalRecord
from healthpath.domains.vitals.domain_logic.recency import time_since
from healthpath.domains.vitals.domain_logic.status_evaluator import evaluate_status
from healthpath.domains.vitals.domain_logic.trend_analyzer import VitalTrend
from healthpath.domains.vitals.domain_logic.vital_types import (
    DASHBOARD_ORDER,
    VITAL_DISPLAY,
    VitalStatus,
    VitalType,
)

PLACEHOLDER = "--"
PAIR_PLACEHOLDER = "--/--"


@dataclass
class VitalCardData:
    """One dashboard card. Derived on every render, never persisted."""

    id: VitalType
    title: str
    icon: str
    latest_value: str
    unit: str
    status: VitalStatus
    last_updated: str | None = None  # ISO date of the snapshot
    recency: str | None = None
    trend: str | None = None
    trend_value: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id.value,
            "title": self.title,
            "icon": self.icon,
            "latestValue": self.latest_value,
            "unit": self.unit,
            "status": self.status.value,
            "lastUpdated": self.last_updated,
            "recency": self.recency,
        }
        if self.trend is not None:
            data["trend"] = self.trend
            data["trendValue"] = self.trend_value
        return data


def format_value(value: float | None, decimals: int | None = None) -> str:
    """Render a reading: fixed precision if given, integers without a decimal point."""
    if value is None:
        return PLACEHOLDER
    number = float(value)
    if decimals is not None:
        return f"{number:.{decimals}f}"
    if number.is_integer():
        return str(int(number))
    return str(number)


def _card_value_and_status(
    vital_type: VitalType, snapshot: VitalRecord
) -> tuple[str, VitalStatus]:
    display = VITAL_DISPLAY[vital_type]
    if vital_type is VitalType.BLOOD_PRESSURE:
        systolic = snapshot.blood_pressure_systolic
        diastolic = snapshot.blood_pressure_diastolic
        if systolic is None or diastolic is None:
            return PAIR_PLACEHOLDER, VitalStatus.NORMAL
        value = f"{format_value(systolic)}/{format_value(diastolic)}"
        return value, evaluate_status(vital_type, systolic, diastolic)

    reading = getattr(snapshot, display.fields[0])
    value = format_value(reading, display.decimals)
    if reading is None:
        return value, VitalStatus.NORMAL
    return value, evaluate_status(vital_type, reading)


def build_dashboard(
    snapshot: VitalRecord,
    *,
    now: datetime | None = None,
    trends: dict[VitalType, VitalTrend] | None = None,
) -> list[VitalCardData]:
    """Build the six dashboard cards in fixed order.

    Every card shares the snapshot's single ``date`` for its recency string.
    """
    recency = time_since(snapshot.date, now=now) if snapshot.date else None
    cards: list[VitalCardData] = []
    for vital_type in DASHBOARD_ORDER:
        display = VITAL_DISPLAY[vital_type]
        value, status = _card_value_and_status(vital_type, snapshot)
        trend = (trends or {}).get(vital_type)
        cards.append(
            VitalCardData(
                id=vital_type,
                title=display.label,
                icon=display.icon,
                latest_value=value,
                unit=display.unit,
                status=status,
                last_updated=snapshot.date or None,
                recency=recency,
                trend=trend.direction if trend else None,
                trend_value=trend.trend_value if trend else None,
            )
        )
    return cards
