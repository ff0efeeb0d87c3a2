"""LLM provider implementations."""

from healthpath.core.llm.providers.anthropic import AnthropicProvider
from healthpath.core.llm.providers.mock import MockProvider
from healthpath.core.llm.providers.openai import OpenAIProvider

__all__ = ["AnthropicProvider", "MockProvider", "OpenAIProvider"]
