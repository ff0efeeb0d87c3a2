"""MCP tool for exporting vitals history as CSV or JSON."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from healthpath.domains.vitals.domain_logic.export import (
    export_csv,
    export_file_name,
    export_json,
)

if TYPE_CHECKING:
    from healthpath.core.storage.repository import VitalsRepository

logger = logging.getLogger(__name__)


def register_export_tools(
    mcp: FastMCP,
    repository: VitalsRepository,
    export_limit: int = 100,
) -> None:
    """Register export tools on the MCP server."""

    @mcp.tool
    async def export_vitals(ctx: Context, user_id: str, format: str = "csv") -> str:
        """Export your recent vitals history.

        Args:
            user_id: Account id returned by sign_in.
            format: 'csv' or 'json'.
        """
        fmt = format.lower()
        if fmt not in ("csv", "json"):
            return json.dumps({
                "status": "error",
                "message": "format must be 'csv' or 'json'.",
            })

        records = repository.get_vitals_history(user_id, limit=export_limit)
        if not records:
            return json.dumps({"status": "no_data", "message": "No data to export"})

        content = export_csv(records) if fmt == "csv" else export_json(records)
        logger.info("Exported %d vitals records as %s for %s", len(records), fmt, user_id)
        return json.dumps({
            "status": "ok",
            "format": fmt,
            "file_name": export_file_name(fmt),
            "record_count": len(records),
            "content": content,
        })
