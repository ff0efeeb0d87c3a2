"""Anthropic Claude provider."""

from __future__ import annotations

import time
from typing import Any

from healthpath.core.llm.provider import (
    DocumentAttachment,
    LLMServiceError,
    ProviderResponse,
)


class AnthropicProvider:
    """Claude provider using the Anthropic SDK. Accepts image and PDF attachments."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-5-20250929") -> None:
        import anthropic

        self._sdk = anthropic
        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    @staticmethod
    def _content(user_message: str, attachment: DocumentAttachment | None) -> Any:
        if attachment is None:
            return user_message
        block_type = "document" if attachment.is_pdf else "image"
        return [
            {
                "type": block_type,
                "source": {
                    "type": "base64",
                    "media_type": attachment.mime_type,
                    "data": attachment.b64(),
                },
            },
            {"type": "text", "text": user_message},
        ]

    async def generate(
        self,
        system_message: str,
        user_message: str,
        attachment: DocumentAttachment | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        sdk = self._sdk
        start = time.monotonic()
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system_message,
                messages=[
                    {"role": "user", "content": self._content(user_message, attachment)}
                ],
            )
        except sdk.AuthenticationError as exc:
            raise LLMServiceError("auth", str(exc)) from exc
        except sdk.APITimeoutError as exc:
            raise LLMServiceError("timeout", str(exc)) from exc
        except sdk.APIConnectionError as exc:
            raise LLMServiceError("network", str(exc)) from exc
        except sdk.APIError as exc:
            raise LLMServiceError("unknown", str(exc)) from exc
        elapsed_ms = (time.monotonic() - start) * 1000

        content = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        return ProviderResponse(
            content=content,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=self.model,
            latency_ms=elapsed_ms,
        )
