"""Tests for CSV and JSON export."""

from __future__ import annotations

import json
from datetime import date

import pytest

from healthpath.core.storage.models import VitalRecord
from healthpath.domains.vitals.domain_logic.export import (
    CSV_HEADERS,
    export_csv,
    export_file_name,
    export_json,
)


@pytest.fixture
def records():
    return [
        VitalRecord(
            id="e2",
            date="2026-03-02T08:00:00.000Z",
            source="device",
            heart_rate=72.0,
        ),
        VitalRecord(
            id="e1",
            date="2026-03-01T08:00:00.000Z",
            source="manual",
            blood_pressure_systolic=120,
            blood_pressure_diastolic=80,
            temperature=36.6,
        ),
    ]


class TestCsv:
    def test_header_and_rows(self, records):
        lines = export_csv(records).split("\n")
        assert lines[0] == ",".join(CSV_HEADERS)
        assert len(lines) == 3
        assert lines[1] == '"2026-03-02T08:00:00.000Z","","","72","","","","","device"'
        assert lines[2] == '"2026-03-01T08:00:00.000Z","120","80","","36.6","","","","manual"'

    def test_nine_columns(self):
        assert len(CSV_HEADERS) == 9

    def test_empty_history_is_header_only(self):
        assert export_csv([]) == ",".join(CSV_HEADERS)


class TestJson:
    def test_document_shape(self, records):
        document = json.loads(export_json(records, export_date="2026-03-03T00:00:00.000Z"))
        assert document["exportDate"] == "2026-03-03T00:00:00.000Z"
        assert document["totalRecords"] == 2
        assert document["vitals"][0]["heartRate"] == 72.0
        assert document["vitals"][1]["source"] == "manual"


class TestFileName:
    def test_csv(self):
        assert export_file_name("csv", date(2026, 10, 17)) == "HealthPath_Vitals_2026-10-17.csv"

    def test_json(self):
        assert export_file_name("json", date(2026, 10, 17)).endswith(".json")

    def test_unsupported(self):
        with pytest.raises(ValueError):
            export_file_name("xlsx")
