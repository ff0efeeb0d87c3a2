"""Mock LLM provider for testing."""

from __future__ import annotations

import asyncio

from healthpath.core.llm.provider import (
    DocumentAttachment,
    LLMServiceError,
    ProviderResponse,
)


class MockProvider:
    """Mock provider for testing — returns a canned response.

    ``error`` makes every call fail with that ``LLMServiceError`` and
    ``delay_s`` makes calls sleep first, for timeout tests.
    """

    def __init__(
        self,
        response_content: str = "Mock LLM response.",
        *,
        error: LLMServiceError | None = None,
        delay_s: float = 0.0,
    ) -> None:
        self.response_content = response_content
        self.error = error
        self.delay_s = delay_s
        self.last_system_message: str = ""
        self.last_user_message: str = ""
        self.last_attachment: DocumentAttachment | None = None
        self.call_count: int = 0

    async def generate(
        self,
        system_message: str,
        user_message: str,
        attachment: DocumentAttachment | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        self.last_system_message = system_message
        self.last_user_message = user_message
        self.last_attachment = attachment
        self.call_count += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        return ProviderResponse(
            content=self.response_content,
            input_tokens=len(system_message.split()) + len(user_message.split()),
            output_tokens=len(self.response_content.split()),
            model="mock",
            latency_ms=0.0,
        )
