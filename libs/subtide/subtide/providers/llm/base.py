"""Chat completion interface shared by the translation backends."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class Message:
    """A chat message."""

    role: str  # "system" | "user" | "assistant"
    content: str


@dataclass
class LLMUsage:
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None

    @classmethod
    def from_counts(
        cls,
        prompt_tokens: Any = None,
        completion_tokens: Any = None,
        total_tokens: Any = None,
    ) -> LLMUsage | None:
        """Build usage from whatever the provider reported; None if it reported nothing."""
        prompt = _as_count(prompt_tokens)
        completion = _as_count(completion_tokens)
        total = _as_count(total_tokens)
        if prompt is None and completion is None and total is None:
            return None
        if total is None and prompt is not None and completion is not None:
            total = prompt + completion
        return cls(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


@dataclass
class LLMCompletionResult:
    text: str
    usage: LLMUsage | None = None


def _as_count(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def split_system_messages(messages: list[Message]) -> tuple[str | None, list[Message]]:
    """Join system messages into one instruction string; return it with the rest."""
    system_chunks: list[str] = []
    rest: list[Message] = []
    for m in messages:
        if str(m.role or "").strip().lower() == "system":
            if m.content:
                system_chunks.append(str(m.content))
            continue
        rest.append(m)
    system = "\n\n".join(system_chunks).strip()
    return (system or None), rest


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    provider: str = "llm"
    model: str = ""

    @abstractmethod
    async def complete_with_usage(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMCompletionResult:
        """Generate a completion.

        Args:
            messages: List of chat messages.
            temperature: Sampling temperature (None keeps the provider default).
            max_tokens: Maximum tokens to generate (None keeps the provider default).

        Returns:
            Generated text plus token usage when the provider reports it.
        """
        ...

    async def complete(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        result = await self.complete_with_usage(
            messages, temperature=temperature, max_tokens=max_tokens
        )
        return result.text

    def log_call(self, logger: logging.Logger, latency_ms: int, usage: LLMUsage | None) -> None:
        logger.info(
            "llm call (provider=%s, model=%s, latency_ms=%s, prompt_tokens=%s, completion_tokens=%s, total_tokens=%s)",
            self.provider,
            self.model,
            int(latency_ms),
            getattr(usage, "prompt_tokens", None),
            getattr(usage, "completion_tokens", None),
            getattr(usage, "total_tokens", None),
        )

    async def close(self) -> None:
        """Close any underlying resources (optional)."""
        return None

    async def __aenter__(self) -> LLMProvider:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
