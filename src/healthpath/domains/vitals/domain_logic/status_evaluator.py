"""Fixed-threshold status evaluation for vital signs.

Pure and deterministic. Missing or non-numeric input evaluates to
``normal``; there is no separate "unknown" tier.
"""

from __future__ import annotations

import math
from typing import Any

from healthpath.domains.vitals.domain_logic.vital_types import VitalStatus, VitalType

NORMAL = VitalStatus.NORMAL
ALERT = VitalStatus.ALERT
CRITICAL = VitalStatus.CRITICAL


def _as_number(value: Any) -> float | None:
    """Float value of ``value``, or None if missing, boolean, or NaN."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def _blood_pressure(systolic: float, diastolic: float | None) -> VitalStatus:
    if diastolic is None:
        return NORMAL
    # First match wins: hypotensive, hypertensive, elevated.
    if systolic < 90 or diastolic < 60:
        return ALERT
    if systolic >= 140 or diastolic >= 90:
        return CRITICAL
    if systolic >= 121 or diastolic >= 81:
        return ALERT
    return NORMAL


def _blood_sugar(fasting: float) -> VitalStatus:
    if fasting < 70:
        return ALERT
    if fasting >= 126:
        return CRITICAL
    if fasting >= 100:
        return ALERT
    return NORMAL


def _heart_rate(bpm: float) -> VitalStatus:
    return ALERT if bpm < 60 or bpm > 100 else NORMAL


def _oxygen_saturation(pct: float) -> VitalStatus:
    if pct < 92:
        return CRITICAL
    if pct < 95:
        return ALERT
    return NORMAL


def _temperature(celsius: float) -> VitalStatus:
    if celsius < 35:
        return ALERT
    if celsius >= 38:
        return CRITICAL
    if celsius > 37.2:
        return ALERT
    return NORMAL


def evaluate_status(
    vital_type: VitalType | str,
    primary: Any,
    secondary: Any = None,
) -> VitalStatus:
    """Map a reading to a status tier.

    Args:
        vital_type: A ``VitalType`` or its string tag. Unknown tags are normal.
        primary: The reading (systolic for blood pressure, fasting value for
            blood sugar).
        secondary: Diastolic value; used for blood pressure only.
    """
    value = _as_number(primary)
    if value is None:
        return NORMAL

    kind = VitalType.coerce(vital_type)
    if kind is VitalType.BLOOD_PRESSURE:
        return _blood_pressure(value, _as_number(secondary))
    if kind is VitalType.BLOOD_SUGAR:
        return _blood_sugar(value)
    if kind in (VitalType.HEART_RATE, VitalType.PULSE_RATE):
        return _heart_rate(value)
    if kind is VitalType.OXYGEN_SATURATION:
        return _oxygen_saturation(value)
    if kind is VitalType.TEMPERATURE:
        return _temperature(value)
    # Weight has no thresholds; unknown tags fall through too.
    return NORMAL
