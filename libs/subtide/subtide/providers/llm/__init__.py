"""LLM Provider implementations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from subtide.providers.llm.base import LLMCompletionResult, LLMProvider, LLMUsage, Message

if TYPE_CHECKING:
    from subtide.providers.llm.anthropic import AnthropicProvider
    from subtide.providers.llm.gemini import GeminiProvider
    from subtide.providers.llm.openai_compat import OpenAICompatProvider

__all__ = [
    "AnthropicProvider",
    "GeminiProvider",
    "LLMCompletionResult",
    "LLMProvider",
    "LLMUsage",
    "Message",
    "OpenAICompatProvider",
]


def __getattr__(name: str) -> Any:
    if name == "AnthropicProvider":
        from subtide.providers.llm.anthropic import AnthropicProvider

        return AnthropicProvider
    if name == "GeminiProvider":
        from subtide.providers.llm.gemini import GeminiProvider

        return GeminiProvider
    if name == "OpenAICompatProvider":
        from subtide.providers.llm.openai_compat import OpenAICompatProvider

        return OpenAICompatProvider
    raise AttributeError(name)
