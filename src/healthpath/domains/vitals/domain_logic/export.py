"""CSV and JSON export of vitals history."""

from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime, timezone

from healthpath.core.storage.models import VitalRecord, now_iso

CSV_HEADERS: tuple[str, ...] = (
    "Date",
    "Blood Pressure (Systolic)",
    "Blood Pressure (Diastolic)",
    "Heart Rate (bpm)",
    "Temperature (°C)",
    "Oxygen Saturation (%)",
    "Blood Sugar (mg/dL)",
    "Weight (kg)",
    "Source",
)

_CSV_FIELDS: tuple[str, ...] = (
    "date",
    "blood_pressure_systolic",
    "blood_pressure_diastolic",
    "heart_rate",
    "temperature",
    "oxygen_saturation",
    "blood_sugar_fasting",
    "weight_kg",
    "source",
)


def _cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def export_csv(records: list[VitalRecord]) -> str:
    """Render history as CSV: fixed 9-column header, every value quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    buffer.write(",".join(CSV_HEADERS) + "\n")
    for record in records:
        writer.writerow([_cell(getattr(record, name)) for name in _CSV_FIELDS])
    return buffer.getvalue().rstrip("\n")


def export_json(records: list[VitalRecord], export_date: str | None = None) -> str:
    """Render history as ``{exportDate, totalRecords, vitals}`` JSON."""
    document = {
        "exportDate": export_date or now_iso(),
        "totalRecords": len(records),
        "vitals": [record.to_dict() for record in records],
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


def export_file_name(fmt: str, today: date | None = None) -> str:
    """File name such as ``HealthPath_Vitals_2026-10-17.csv``."""
    if fmt not in ("csv", "json"):
        raise ValueError(f"Unsupported export format: {fmt!r}")
    day = today or datetime.now(timezone.utc).date()
    return f"HealthPath_Vitals_{day.isoformat()}.{fmt}"
