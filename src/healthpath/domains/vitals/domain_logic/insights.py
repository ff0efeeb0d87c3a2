"""AI-generated narrative insights over a user's vitals.

Insights are best-effort: any provider failure yields a fixed fallback
message rather than an error, so the insights panel never blocks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from healthpath.core.llm.client import LLMClient
from healthpath.core.llm.provider import LLMServiceError
from healthpath.core.llm.response import (
    check_guardrails,
    enforce_disclaimer,
    sanitize_content,
)
from healthpath.core.llm.system_prompt import (
    INSIGHTS_SYSTEM_PROMPT,
    build_recommendations_prompt,
    build_trends_prompt,
)
from healthpath.core.storage.models import VitalRecord

logger = logging.getLogger(__name__)

TRENDS_FALLBACK = "Unable to generate insights at this time. Please try again later."
RECOMMENDATIONS_FALLBACK = "Unable to generate recommendations at this time."


@dataclass
class InsightResult:
    """Narrative text plus whether it came from the model."""

    content: str
    generated: bool
    guardrail_flags: list[str] = field(default_factory=list)


def _history_for_prompt(history: list[VitalRecord]) -> list[dict]:
    # Ids and owner are irrelevant to the model.
    rows = []
    for record in history:
        row = record.to_dict()
        row.pop("id", None)
        row.pop("userId", None)
        rows.append(row)
    return rows


class InsightsService:
    """Trend analysis and recommendations from the configured LLM.

    Usage::

        insights = InsightsService(llm_client, timeout_s=30)
        result = await insights.analyze_trends(history)
    """

    def __init__(self, llm_client: LLMClient, timeout_s: float = 30.0) -> None:
        self._llm = llm_client
        self._timeout_s = timeout_s

    async def _generate(self, prompt: str, fallback: str, purpose: str) -> InsightResult:
        try:
            response = await self._llm.complete(
                INSIGHTS_SYSTEM_PROMPT,
                prompt,
                timeout_s=self._timeout_s,
                max_tokens=600,
                temperature=0.4,
                purpose=purpose,
            )
        except LLMServiceError as exc:
            logger.error("Error generating %s: %s", purpose, exc.detail or exc)
            return InsightResult(content=fallback, generated=False)

        if not response.content.strip():
            return InsightResult(content=fallback, generated=False)

        check = check_guardrails(response.content)
        content = enforce_disclaimer(sanitize_content(response.content, check))
        return InsightResult(content=content, generated=True, guardrail_flags=check.flags)

    async def analyze_trends(self, history: list[VitalRecord]) -> InsightResult:
        """Narrative analysis of a history window (newest first)."""
        if not history:
            return InsightResult(content=TRENDS_FALLBACK, generated=False)
        prompt = build_trends_prompt(_history_for_prompt(history))
        return await self._generate(prompt, TRENDS_FALLBACK, "trend_insights")

    async def recommendations(self, latest: VitalRecord) -> InsightResult:
        """Personalized recommendations from the latest snapshot."""
        if latest.is_empty():
            return InsightResult(content=RECOMMENDATIONS_FALLBACK, generated=False)
        prompt = build_recommendations_prompt(latest.payload())
        return await self._generate(prompt, RECOMMENDATIONS_FALLBACK, "recommendations")
