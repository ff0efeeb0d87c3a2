"""Vital-type tags, status tiers, and display metadata."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class VitalType(str, Enum):
    """Closed set of vital-type tags used by the evaluator and the dashboard."""

    BLOOD_PRESSURE = "bloodPressure"
    HEART_RATE = "heartRate"
    PULSE_RATE = "pulseRate"
    BLOOD_SUGAR = "bloodSugar"
    TEMPERATURE = "temperature"
    OXYGEN_SATURATION = "oxygenSaturation"
    WEIGHT = "weight"

    @classmethod
    def coerce(cls, value: VitalType | str) -> VitalType | None:
        """Return the matching tag, or None for an unknown string."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class VitalStatus(str, Enum):
    """Coarse clinical-risk tier."""

    NORMAL = "normal"
    ALERT = "alert"
    CRITICAL = "critical"


@dataclass(frozen=True)
class VitalDisplay:
    """How a vital type is labelled on a dashboard card."""

    label: str
    unit: str
    icon: str
    fields: tuple[str, ...]  # VitalRecord attributes feeding the card
    decimals: int | None = None  # fixed precision; None = as recorded


VITAL_DISPLAY: dict[VitalType, VitalDisplay] = {
    VitalType.BLOOD_PRESSURE: VitalDisplay(
        "Blood Pressure", "mmHg", "heart-circle",
        ("blood_pressure_systolic", "blood_pressure_diastolic"),
    ),
    VitalType.HEART_RATE: VitalDisplay("Heart Rate", "bpm", "pulse", ("heart_rate",)),
    VitalType.PULSE_RATE: VitalDisplay("Pulse Rate", "bpm", "pulse", ("pulse_rate",)),
    VitalType.BLOOD_SUGAR: VitalDisplay("Blood Sugar", "mg/dL", "water", ("blood_sugar_fasting",)),
    VitalType.TEMPERATURE: VitalDisplay(
        "Temperature", "°C", "thermometer", ("temperature",), decimals=1
    ),
    VitalType.OXYGEN_SATURATION: VitalDisplay(
        "Oxygen Level", "%", "fitness", ("oxygen_saturation",)
    ),
    VitalType.WEIGHT: VitalDisplay("Weight", "kg", "scale", ("weight_kg",), decimals=1),
}

# Card order on the dashboard.
DASHBOARD_ORDER: tuple[VitalType, ...] = (
    VitalType.BLOOD_PRESSURE,
    VitalType.HEART_RATE,
    VitalType.BLOOD_SUGAR,
    VitalType.TEMPERATURE,
    VitalType.OXYGEN_SATURATION,
    VitalType.WEIGHT,
)
