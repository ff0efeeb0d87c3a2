"""Tests for VitalRecord and date normalization."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from healthpath.core.storage.models import VitalRecord, attr_name, normalize_date


class TestNormalizeDate:
    def test_zulu_string(self):
        assert normalize_date("2026-03-01T08:30:00Z") == "2026-03-01T08:30:00.000Z"

    def test_offset_converted_to_utc(self):
        assert normalize_date("2026-03-01T10:30:00+02:00") == "2026-03-01T08:30:00.000Z"

    def test_naive_datetime_taken_as_utc(self):
        assert normalize_date(datetime(2026, 3, 1, 8, 30)) == "2026-03-01T08:30:00.000Z"

    def test_aware_datetime(self):
        tz = timezone(timedelta(hours=-5))
        assert normalize_date(datetime(2026, 3, 1, 3, 30, tzinfo=tz)) == "2026-03-01T08:30:00.000Z"

    def test_date_only_string(self):
        assert normalize_date("2026-03-01") == "2026-03-01T00:00:00.000Z"

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            normalize_date("yesterday")


class TestAttrName:
    def test_camel_case(self):
        assert attr_name("bloodPressureSystolic") == "blood_pressure_systolic"

    def test_snake_case(self):
        assert attr_name("heart_rate") == "heart_rate"

    def test_unknown(self):
        assert attr_name("cholesterol") is None


class TestVitalRecord:
    def test_empty_by_default(self):
        assert VitalRecord().is_empty()

    def test_notes_alone_is_empty(self):
        assert VitalRecord(notes="felt dizzy").is_empty()

    def test_from_dict_accepts_both_casings_and_ignores_unknown(self):
        record = VitalRecord.from_dict(
            {"heartRate": 72, "oxygen_saturation": 98, "cholesterol": 180}
        )
        assert record.heart_rate == 72
        assert record.oxygen_saturation == 98

    def test_to_dict_is_camel_case_and_omits_absent(self):
        record = VitalRecord(user_id="u1", heart_rate=72, weight_kg=70.5)
        assert record.to_dict() == {"userId": "u1", "heartRate": 72, "weightKg": 70.5}

    def test_payload_contains_measurements_and_notes_only(self):
        record = VitalRecord(id="x", user_id="u1", date="d", heart_rate=72, notes="ok")
        assert record.payload() == {"heart_rate": 72, "notes": "ok"}

    def test_merged_with_overrides_only_set_fields(self):
        base = VitalRecord(heart_rate=70, temperature=36.6)
        merged = base.merged_with(VitalRecord(heart_rate=80))
        assert merged.heart_rate == 80
        assert merged.temperature == 36.6
