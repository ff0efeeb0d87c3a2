"""LLM provider protocol — abstract interface for text and vision calls."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

ErrorKind = Literal["network", "auth", "timeout", "unknown"]

_ERROR_MESSAGES: dict[str, str] = {
    "network": "Network error. Please check your internet connection.",
    "auth": "AI service configuration error. Please check your API key.",
    "timeout": "The AI service took too long to respond. Please try again.",
    "unknown": "Failed to reach the AI service. Please try again.",
}


class LLMServiceError(Exception):
    """Raised when a provider call fails for transport or account reasons.

    ``kind`` lets callers tell a connectivity problem from a bad key.
    """

    def __init__(self, kind: ErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(_ERROR_MESSAGES[kind])

    @property
    def user_message(self) -> str:
        return _ERROR_MESSAGES[self.kind]


@dataclass
class DocumentAttachment:
    """An inline document (image or PDF) sent alongside the prompt."""

    data: bytes
    mime_type: str
    filename: str = "document"

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == "application/pdf"

    def b64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass
class ProviderResponse:
    """Response from an LLM provider."""

    content: str
    input_tokens: int
    output_tokens: int
    model: str
    latency_ms: float


@runtime_checkable
class LLMProvider(Protocol):
    """Abstract interface for LLM calls, optionally with one attached document."""

    async def generate(
        self,
        system_message: str,
        user_message: str,
        attachment: DocumentAttachment | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse: ...


def create_provider(
    provider_name: str,
    api_key: str = "",
    model: str = "",
) -> LLMProvider:
    """Factory function to create an LLM provider by name.

    Args:
        provider_name: "anthropic", "openai", or "mock"
        api_key: API key for the provider.
        model: Model identifier override.
    """
    if provider_name == "anthropic":
        from healthpath.core.llm.providers.anthropic import AnthropicProvider

        return AnthropicProvider(api_key=api_key, model=model or "claude-sonnet-4-5-20250929")
    elif provider_name == "openai":
        from healthpath.core.llm.providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=api_key, model=model or "gpt-4o")
    elif provider_name == "mock":
        from healthpath.core.llm.providers.mock import MockProvider

        return MockProvider()
    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
