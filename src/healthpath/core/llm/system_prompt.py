"""Fixed prompts for document extraction and vitals insights."""

from __future__ import annotations

import json
from typing import Any

EXTRACTION_SYSTEM_PROMPT = """\
You are a medical vitals extraction assistant. You read a single medical \
document (photo or PDF) and report only the vital signs it contains, as JSON.\
"""

EXTRACTION_PROMPT = """\
Analyze this document and extract ONLY VITAL SIGNS (NOT lab test values).

VITAL SIGNS TO EXTRACT (if present):
- Blood Pressure (systolic/diastolic in mmHg)
- Heart Rate or Pulse (in bpm)
- Body Temperature (in Celsius)
- Oxygen Saturation / SpO2 (percentage)
- Respiration Rate (breaths per minute)
- Weight (in kg)
- Height (in cm)
- BMI (if calculated)

DO NOT EXTRACT:
- Lab test results (CBC, blood glucose panels, cholesterol, etc.)
- Imaging reports
- Medication lists
- Diagnoses

RESPONSE FORMAT:
Return ONLY a valid JSON object using these keys: bloodPressureSystolic, \
bloodPressureDiastolic, heartRate, pulseRate, temperature, oxygenSaturation, \
respirationRate, weightKg, heightCm, bmi, notes. Example:
{
  "bloodPressureSystolic": 120,
  "bloodPressureDiastolic": 80,
  "heartRate": 72,
  "temperature": 37.0,
  "oxygenSaturation": 98,
  "weightKg": 70.5
}

IMPORTANT RULES:
1. Return {} if NO vital signs found
2. Only include fields with actual values
3. Use numeric values only (no units in numbers)
4. If BP is "120/80", extract systolic=120, diastolic=80
5. NO markdown, NO explanations, ONLY valid JSON"""

INSIGHTS_SYSTEM_PROMPT = """\
You are a health analytics assistant for a personal vitals tracker. Your \
audience is non-technical. Ground every statement in the readings provided, \
use standard units (mmHg, bpm, mg/dL, °C, %), be encouraging and professional, \
and never diagnose, prescribe, or predict disease outcomes.\
"""


def build_trends_prompt(history: list[dict[str, Any]]) -> str:
    """Prompt for a narrative analysis of a vitals history."""
    return f"""Analyze this vitals history data and provide brief, actionable health insights.

Vitals Data:
{json.dumps(history, indent=2)}

Provide a concise analysis covering:
1. Overall trends (improving, stable, or concerning)
2. Any patterns or anomalies
3. 2-3 actionable recommendations

Keep response under 200 words."""


def build_recommendations_prompt(latest: dict[str, Any]) -> str:
    """Prompt for personalized recommendations from the latest snapshot."""
    return f"""Based on these vital signs, provide 3-4 brief, personalized health recommendations.

Current Vitals:
{json.dumps(latest, indent=2)}

Provide:
- Specific lifestyle tips based on these readings
- Any areas that need attention (if values are abnormal)
- Positive reinforcement for normal values

Keep response under 150 words. Focus on actionable advice."""
