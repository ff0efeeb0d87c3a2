"""OpenAI GPT provider."""

from __future__ import annotations

import time
from typing import Any

from healthpath.core.llm.provider import (
    DocumentAttachment,
    LLMServiceError,
    ProviderResponse,
)


class OpenAIProvider:
    """OpenAI provider using the OpenAI SDK. Images go as data URLs, PDFs as file parts."""

    def __init__(self, api_key: str, model: str = "gpt-4o") -> None:
        import openai

        self._sdk = openai
        self.client = openai.AsyncOpenAI(api_key=api_key)
        self.model = model

    @staticmethod
    def _content(user_message: str, attachment: DocumentAttachment | None) -> Any:
        if attachment is None:
            return user_message
        data_url = f"data:{attachment.mime_type};base64,{attachment.b64()}"
        if attachment.is_pdf:
            part = {
                "type": "file",
                "file": {"filename": attachment.filename, "file_data": data_url},
            }
        else:
            part = {"type": "image_url", "image_url": {"url": data_url}}
        return [{"type": "text", "text": user_message}, part]

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
            response = await self.client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system_message},
                    {"role": "user", "content": self._content(user_message, attachment)},
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

        choice = response.choices[0] if response.choices else None
        content = choice.message.content or "" if choice else ""
        usage = response.usage
        return ProviderResponse(
            content=content,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=self.model,
            latency_ms=elapsed_ms,
        )
