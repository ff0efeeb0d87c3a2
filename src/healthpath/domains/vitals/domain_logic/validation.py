"""Client-side validation of manual vitals entry, run before any write."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from healthpath.core.storage.models import MEASUREMENT_FIELDS, VitalRecord, attr_name
from healthpath.core.storage.repository import EmptyRecordError, ValidationError


def _parse_number(name: str, raw: Any) -> float:
    if isinstance(raw, bool):
        raise ValidationError(f"{name} must be a number")
    if isinstance(raw, (int, float)):
        number = float(raw)
    else:
        try:
            number = float(str(raw).strip())
        except ValueError as exc:
            raise ValidationError(f"{name} must be a number") from exc
    if not math.isfinite(number) or number <= 0:
        raise ValidationError(f"{name} must be a positive number")
    return number


def validate_vitals_form(fields: Mapping[str, Any]) -> VitalRecord:
    """Turn raw form input into a record.

    Blank values are ignored. Keys may be camelCase or snake_case; unknown
    keys are rejected so a typo cannot silently drop a reading.

    Raises:
        ValidationError: A field is unknown, non-numeric, or not positive.
        EmptyRecordError: No vital sign was entered.
    """
    values: dict[str, Any] = {}
    for key, raw in fields.items():
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            continue
        name = attr_name(key)
        if name == "notes":
            values["notes"] = str(raw).strip()
            continue
        if name not in MEASUREMENT_FIELDS:
            raise ValidationError(f"Unknown field: {key}")
        values[name] = _parse_number(MEASUREMENT_FIELDS[name], raw)

    record = VitalRecord(**values)
    if record.is_empty():
        raise EmptyRecordError("Please enter at least one vital sign.")
    return record
