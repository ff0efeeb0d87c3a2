"""MCP tools for AI-generated vitals insights."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from healthpath.core.storage.repository import PersistenceError

if TYPE_CHECKING:
    from healthpath.core.storage.repository import VitalsRepository
    from healthpath.domains.vitals.domain_logic.insights import InsightsService
    from healthpath.domains.vitals.domain_logic.trend_analyzer import VitalTrendAnalyzer

logger = logging.getLogger(__name__)


def register_insights_tools(
    mcp: FastMCP,
    insights: InsightsService,
    repository: VitalsRepository,
    trend_analyzer: VitalTrendAnalyzer,
    history_limit: int = 20,
) -> None:
    """Register insights tools on the MCP server."""

    @mcp.tool
    async def vitals_trend_insights(ctx: Context, user_id: str, limit: int = 0) -> str:
        """Plain-language analysis of how your vitals have changed.

        Combines per-vital statistics with an AI-written narrative. The
        narrative falls back to a fixed message when the AI service is
        unavailable.

        Args:
            user_id: Account id returned by sign_in.
            limit: Number of recent entries to analyze (default: 20).
        """
        window = limit or history_limit
        history = repository.get_vitals_history(user_id, limit=window)
        summary = trend_analyzer.summarize(user_id, limit=window)
        result = await insights.analyze_trends(history)
        return json.dumps({
            "status": summary["status"],
            "summary": summary,
            "insights": result.content,
            "generated": result.generated,
        }, indent=2)

    @mcp.tool
    async def vitals_recommendations(ctx: Context, user_id: str) -> str:
        """Personalized wellness recommendations from your latest vitals.

        Args:
            user_id: Account id returned by sign_in.
        """
        try:
            latest = repository.get_latest_vitals(user_id)
        except PersistenceError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        result = await insights.recommendations(latest)
        return json.dumps({
            "status": "ok" if result.generated else "fallback",
            "recommendations": result.content,
            "generated": result.generated,
        }, indent=2)
