"""LLM client — timeouts, logging and error normalization around a provider."""

from __future__ import annotations

import asyncio
import logging

from healthpath.core.llm.provider import (
    DocumentAttachment,
    LLMProvider,
    LLMServiceError,
    ProviderResponse,
)

logger = logging.getLogger(__name__)


class LLMClient:
    """Invokes the configured provider with an explicit timeout.

    Every failure reaching the caller is an ``LLMServiceError``; a hung call
    becomes ``kind="timeout"`` instead of blocking the user action.
    """

    def __init__(self, provider: LLMProvider, default_timeout_s: float = 60.0) -> None:
        self.provider = provider
        self.default_timeout_s = default_timeout_s

    async def complete(
        self,
        system_message: str,
        user_message: str,
        *,
        attachment: DocumentAttachment | None = None,
        timeout_s: float | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
        purpose: str = "completion",
    ) -> ProviderResponse:
        """Run one provider call and return its response.

        Raises:
            LLMServiceError: On timeout or any provider failure.
        """
        timeout = timeout_s if timeout_s is not None else self.default_timeout_s
        try:
            response = await asyncio.wait_for(
                self.provider.generate(
                    system_message=system_message,
                    user_message=user_message,
                    attachment=attachment,
                    max_tokens=max_tokens,
                    temperature=temperature,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("LLM call timed out after %.1fs (purpose=%s)", timeout, purpose)
            raise LLMServiceError("timeout", f"no response within {timeout}s") from exc
        except LLMServiceError as exc:
            logger.warning("LLM call failed (purpose=%s, kind=%s): %s", purpose, exc.kind, exc.detail)
            raise

        logger.info(
            "LLM call: purpose=%s, model=%s, tokens=%d+%d, latency=%.0fms, attachment=%s",
            purpose,
            response.model,
            response.input_tokens,
            response.output_tokens,
            response.latency_ms,
            attachment.mime_type if attachment else None,
        )
        return response
