"""Response cleanup and guardrail enforcement for LLM output."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DISCLAIMER = (
    "This is general wellness information, not medical advice. "
    "Consult a healthcare provider about your readings."
)

# Unsafe phrasing grouped by the guidance it would amount to.
PROHIBITED_INDICATORS: dict[str, tuple[str, ...]] = {
    "making medical diagnoses": (
        "you have been diagnosed",
        "you are suffering from",
        "you have a condition",
    ),
    "prescribing treatments": (
        "take this medication",
        "stop taking your medication",
        "i prescribe",
        "increase your dose",
    ),
    "making disease predictions": (
        "you will develop",
        "you are at high risk of dying",
        "guaranteed to cure",
    ),
}

_CODE_FENCE = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)


@dataclass
class GuardrailCheck:
    """Result of checking a response against the prohibited patterns."""

    passed: bool
    flags: list[str] = field(default_factory=list)


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers (```json / ```) and surrounding whitespace."""
    return _CODE_FENCE.sub("", text.strip()).strip()


def check_guardrails(content: str) -> GuardrailCheck:
    """Flag prohibited diagnosis/prescription/prediction phrasing."""
    flags: list[str] = []
    content_lower = content.lower()

    for action, patterns in PROHIBITED_INDICATORS.items():
        for pattern in patterns:
            if pattern in content_lower:
                flags.append(f"prohibited_pattern_detected: {action} ('{pattern}')")

    if flags:
        logger.warning("Guardrail flags: %s", flags)
    return GuardrailCheck(passed=not flags, flags=flags)


def sanitize_content(content: str, guardrail_check: GuardrailCheck) -> str:
    """Redact sentences containing detected prohibited phrases."""
    if guardrail_check.passed:
        return content

    phrases: list[str] = []
    for flag in guardrail_check.flags:
        match = re.search(r"\('([^']+)'\)", flag)
        if match:
            phrases.append(match.group(1))

    sanitized = content
    for phrase in phrases:
        pattern = re.compile(
            r"[^.!?\n]*" + re.escape(phrase) + r"[^.!?\n]*[.!?]?",
            re.IGNORECASE,
        )
        sanitized = pattern.sub("[Removed: contains prohibited health guidance]", sanitized)
    return sanitized


def enforce_disclaimer(content: str, disclaimer: str = DISCLAIMER) -> str:
    """Append the disclaimer unless it already appears (whitespace/case-insensitive)."""

    def _norm(s: str) -> str:
        return " ".join(s.lower().split())

    if _norm(disclaimer) in _norm(content):
        return content
    return f"{content.rstrip()}\n\n---\n{disclaimer}"
