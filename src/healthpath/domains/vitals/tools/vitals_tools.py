"""MCP tools for recording, viewing and deleting vital signs.

Every reading goes through ``VitalsRepository.record_vitals`` so the
latest snapshot and the history log stay in step.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from healthpath.core.storage.repository import PersistenceError, ValidationError
from healthpath.domains.vitals.domain_logic.dashboard import build_dashboard
from healthpath.domains.vitals.domain_logic.trend_analyzer import compute_trends
from healthpath.domains.vitals.domain_logic.validation import validate_vitals_form

if TYPE_CHECKING:
    from healthpath.core.storage.repository import VitalsRepository

logger = logging.getLogger(__name__)


def _error(message: str) -> str:
    return json.dumps({"status": "error", "message": message})


def register_vitals_tools(
    mcp: FastMCP,
    repository: VitalsRepository,
    history_default_limit: int = 20,
) -> None:
    """Register vitals entry, dashboard and history tools on the MCP server."""

    @mcp.tool
    async def record_vitals(
        ctx: Context,
        user_id: str,
        blood_pressure_systolic: str = "",
        blood_pressure_diastolic: str = "",
        heart_rate: str = "",
        pulse_rate: str = "",
        blood_sugar_fasting: str = "",
        blood_sugar_post_meal: str = "",
        temperature: str = "",
        oxygen_saturation: str = "",
        respiration_rate: str = "",
        weight_kg: str = "",
        height_cm: str = "",
        bmi: str = "",
        notes: str = "",
    ) -> str:
        """Record a set of vital-sign readings.

        Blank fields are ignored; the new readings are merged into your
        latest snapshot and appended to your history.

        Args:
            user_id: Account id returned by sign_in.
            blood_pressure_systolic: Systolic pressure in mmHg.
            blood_pressure_diastolic: Diastolic pressure in mmHg.
            heart_rate: Heart rate in bpm.
            pulse_rate: Pulse rate in bpm.
            blood_sugar_fasting: Fasting blood sugar in mg/dL.
            blood_sugar_post_meal: Post-meal blood sugar in mg/dL.
            temperature: Body temperature in °C.
            oxygen_saturation: SpO2 in percent.
            respiration_rate: Breaths per minute.
            weight_kg: Body weight in kilograms.
            height_cm: Height in centimetres.
            bmi: Body-mass index.
            notes: Free-text notes.
        """
        form = {
            "blood_pressure_systolic": blood_pressure_systolic,
            "blood_pressure_diastolic": blood_pressure_diastolic,
            "heart_rate": heart_rate,
            "pulse_rate": pulse_rate,
            "blood_sugar_fasting": blood_sugar_fasting,
            "blood_sugar_post_meal": blood_sugar_post_meal,
            "temperature": temperature,
            "oxygen_saturation": oxygen_saturation,
            "respiration_rate": respiration_rate,
            "weight_kg": weight_kg,
            "height_cm": height_cm,
            "bmi": bmi,
            "notes": notes,
        }
        try:
            partial = validate_vitals_form(form)
            latest, entry_id = repository.record_vitals(user_id, partial, source="manual")
        except ValidationError as exc:
            return json.dumps({"status": "invalid", "message": str(exc)})
        except PersistenceError as exc:
            return _error(str(exc))

        logger.info("Manual vitals recorded for %s (entry %s)", user_id, entry_id)
        return json.dumps({
            "status": "saved",
            "entry_id": entry_id,
            "recorded": sorted(partial.measurements()),
            "latest": latest.to_dict(),
        })

    @mcp.tool
    async def get_vitals_dashboard(ctx: Context, user_id: str) -> str:
        """Show the six vital-sign cards for your latest snapshot.

        Each card has the formatted value, unit, status (normal, alert or
        critical), how long ago it was recorded and the recent trend.

        Args:
            user_id: Account id returned by sign_in.
        """
        try:
            latest = repository.get_latest_vitals(user_id)
        except PersistenceError as exc:
            return _error(str(exc))

        history = repository.get_vitals_history(user_id, limit=history_default_limit)
        cards = build_dashboard(latest, trends=compute_trends(history))
        return json.dumps({
            "status": "ok" if latest.date else "no_data",
            "last_updated": latest.date or None,
            "cards": [card.to_dict() for card in cards],
        }, indent=2)

    @mcp.tool
    async def get_vitals_history(
        ctx: Context,
        user_id: str,
        limit: int = 0,
    ) -> str:
        """List your recorded vitals, newest first.

        Args:
            user_id: Account id returned by sign_in.
            limit: Maximum entries to return (default: 20).
        """
        history = repository.get_vitals_history(user_id, limit=limit or history_default_limit)
        return json.dumps({
            "status": "ok",
            "count": len(history),
            "entries": [record.to_dict() for record in history],
        }, indent=2)

    @mcp.tool
    async def get_vitals_in_range(
        ctx: Context,
        user_id: str,
        start_date: str,
        end_date: str,
    ) -> str:
        """List recorded vitals between two dates (inclusive), newest first.

        Args:
            user_id: Account id returned by sign_in.
            start_date: Range start (ISO 8601).
            end_date: Range end (ISO 8601).
        """
        entries = repository.get_vitals_in_range(user_id, start_date, end_date)
        return json.dumps({
            "status": "ok",
            "start_date": start_date,
            "end_date": end_date,
            "count": len(entries),
            "entries": [record.to_dict() for record in entries],
        }, indent=2)

    @mcp.tool
    async def delete_latest_vitals(ctx: Context, user_id: str) -> str:
        """Clear your latest vitals snapshot. History is kept.

        Args:
            user_id: Account id returned by sign_in.
        """
        try:
            deleted = repository.delete_latest_vitals(user_id)
        except PersistenceError as exc:
            return _error(str(exc))
        return json.dumps({"status": "deleted" if deleted else "not_found"})

    @mcp.tool
    async def delete_history_entry(ctx: Context, user_id: str, entry_id: str) -> str:
        """Delete one entry from your vitals history.

        Args:
            user_id: Account id returned by sign_in.
            entry_id: Id of the history entry.
        """
        try:
            deleted = repository.delete_history_entry(user_id, entry_id)
        except PersistenceError as exc:
            return _error(str(exc))
        if not deleted:
            return json.dumps({
                "status": "not_found",
                "entry_id": entry_id,
                "message": "No history entry found with that ID.",
            })
        logger.info("Deleted history entry %s for %s", entry_id, user_id)
        return json.dumps({"status": "deleted", "entry_id": entry_id})
