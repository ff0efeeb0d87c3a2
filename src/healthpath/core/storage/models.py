"""Data models for the vitals persistence layer."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from typing import Any, Literal

VitalSource = Literal["manual", "device", "imported"]

VITAL_SOURCES: tuple[str, ...] = ("manual", "device", "imported")
DEFAULT_SOURCE = "manual"

# Measurement attribute -> wire (camelCase) name used by exports and the AI model.
MEASUREMENT_FIELDS: dict[str, str] = {
    "blood_pressure_systolic": "bloodPressureSystolic",
    "blood_pressure_diastolic": "bloodPressureDiastolic",
    "blood_sugar_fasting": "bloodSugarFasting",
    "blood_sugar_post_meal": "bloodSugarPostMeal",
    "heart_rate": "heartRate",
    "pulse_rate": "pulseRate",
    "temperature": "temperature",
    "oxygen_saturation": "oxygenSaturation",
    "respiration_rate": "respirationRate",
    "weight_kg": "weightKg",
    "height_cm": "heightCm",
    "bmi": "bmi",
}

_META_FIELDS: dict[str, str] = {
    "id": "id",
    "user_id": "userId",
    "date": "date",
    "source": "source",
    "notes": "notes",
}

_WIRE_TO_ATTR: dict[str, str] = {
    wire: attr for attr, wire in {**MEASUREMENT_FIELDS, **_META_FIELDS}.items()
}


def attr_name(key: str) -> str | None:
    """Resolve a camelCase or snake_case key to a VitalRecord attribute name."""
    if key in MEASUREMENT_FIELDS or key in _META_FIELDS:
        return key
    return _WIRE_TO_ATTR.get(key)


def now_iso() -> str:
    """Current instant as a canonical ISO 8601 string."""
    return normalize_date(datetime.now(timezone.utc))


def normalize_date(value: str | datetime) -> str:
    """Normalize an ISO 8601 string or datetime to ``YYYY-MM-DDTHH:MM:SS.mmmZ``.

    Naive datetimes are taken as UTC. A fixed width keeps stored dates
    lexically ordered.

    Raises:
        ValueError: If ``value`` is not a parseable ISO 8601 instant.
    """
    if isinstance(value, datetime):
        dt = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    else:
        dt = parse_date(value)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_date(value: str) -> datetime:
    """Parse an ISO 8601 string into an aware datetime (naive = UTC)."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass
class VitalRecord:
    """One measurement snapshot.

    Every measurement is optional; a record with none populated is empty
    and is rejected by the write paths.
    """

    id: str = ""
    user_id: str = ""
    date: str = ""  # ISO 8601, see normalize_date()
    source: str = ""  # 'manual' | 'device' | 'imported'

    # Blood pressure (mmHg)
    blood_pressure_systolic: float | None = None
    blood_pressure_diastolic: float | None = None

    # Blood sugar (mg/dL)
    blood_sugar_fasting: float | None = None
    blood_sugar_post_meal: float | None = None

    # Basic vitals
    heart_rate: float | None = None  # bpm
    pulse_rate: float | None = None  # bpm
    temperature: float | None = None  # Celsius
    oxygen_saturation: float | None = None  # %
    respiration_rate: float | None = None  # breaths/min

    # Body
    weight_kg: float | None = None
    height_cm: float | None = None
    bmi: float | None = None

    notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VitalRecord:
        """Build a record from camelCase or snake_case keys. Unknown keys are ignored."""
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = attr_name(key)
            if name is None or value is None:
                continue
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting absent fields."""
        out: dict[str, Any] = {}
        for name, wire in _META_FIELDS.items():
            value = getattr(self, name)
            if value not in (None, ""):
                out[wire] = value
        for name, wire in MEASUREMENT_FIELDS.items():
            value = getattr(self, name)
            if value is not None:
                out[wire] = value
        return out

    def measurements(self) -> dict[str, float]:
        """Populated measurement fields keyed by attribute name."""
        return {
            name: getattr(self, name)
            for name in MEASUREMENT_FIELDS
            if getattr(self, name) is not None
        }

    def payload(self) -> dict[str, Any]:
        """Measurements plus notes: the part of the record stored encrypted."""
        data: dict[str, Any] = dict(self.measurements())
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    def is_empty(self) -> bool:
        return not self.measurements()

    def merged_with(self, partial: VitalRecord) -> VitalRecord:
        """Return a copy where every field set on ``partial`` overrides this one."""
        updates = {
            f.name: getattr(partial, f.name)
            for f in fields(partial)
            if getattr(partial, f.name) not in (None, "")
        }
        return replace(self, **updates)


@dataclass
class UserProfile:
    """Account profile kept alongside the identity provider record."""

    uid: str
    email: str
    display_name: str
    created_at: str = ""
    photo_url: str | None = None
