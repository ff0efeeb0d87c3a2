"""Tests for the fixed-threshold vital status evaluator."""

from __future__ import annotations

import pytest

from healthpath.domains.vitals.domain_logic.status_evaluator import evaluate_status
from healthpath.domains.vitals.domain_logic.vital_types import VitalStatus, VitalType

N, A, C = VitalStatus.NORMAL, VitalStatus.ALERT, VitalStatus.CRITICAL


class TestBloodPressure:
    @pytest.mark.parametrize(
        "systolic, diastolic, expected",
        [
            (120, 80, N),
            (121, 80, A),
            (120, 81, A),
            (139, 89, A),
            (140, 80, C),
            (120, 90, C),
            (89, 70, A),
            (110, 59, A),
            (150, 95, C),
        ],
    )
    def test_thresholds(self, systolic, diastolic, expected):
        assert evaluate_status(VitalType.BLOOD_PRESSURE, systolic, diastolic) == expected

    def test_hypotension_checked_before_hypertension(self):
        # Low diastolic wins even with a critical systolic.
        assert evaluate_status("bloodPressure", 150, 55) == A

    def test_missing_diastolic_is_normal(self):
        assert evaluate_status("bloodPressure", 180) == N


class TestScalars:
    @pytest.mark.parametrize(
        "value, expected",
        [(69, A), (70, N), (99, N), (100, A), (125, A), (126, C)],
    )
    def test_blood_sugar(self, value, expected):
        assert evaluate_status("bloodSugar", value) == expected

    @pytest.mark.parametrize("value, expected", [(59, A), (60, N), (100, N), (101, A)])
    def test_heart_rate(self, value, expected):
        assert evaluate_status("heartRate", value) == expected

    def test_pulse_rate_uses_heart_rate_rule(self):
        assert evaluate_status("pulseRate", 110) == A

    @pytest.mark.parametrize("value, expected", [(91, C), (92, A), (94, A), (95, N), (100, N)])
    def test_oxygen_saturation(self, value, expected):
        assert evaluate_status("oxygenSaturation", value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [(34.9, A), (35, N), (37.2, N), (37.3, A), (37.9, A), (38, C), (38.1, C)],
    )
    def test_temperature_boundaries(self, value, expected):
        assert evaluate_status("temperature", value) == expected

    def test_weight_is_always_normal(self):
        assert evaluate_status("weight", 300) == N


class TestMissingInput:
    @pytest.mark.parametrize("value", [None, float("nan"), True, "abc"])
    def test_missing_or_non_numeric_is_normal(self, value):
        assert evaluate_status("heartRate", value) == N

    def test_unknown_type_is_normal(self):
        assert evaluate_status("cholesterol", 400) == N
