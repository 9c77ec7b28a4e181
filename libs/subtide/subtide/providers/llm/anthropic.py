"""Anthropic Messages API provider (official SDK, streamed)."""

from __future__ import annotations

import logging
import time

import anthropic

from subtide.error_codes import ErrorCode
from subtide.exceptions import ProviderError
from subtide.providers._retry import RetryableProviderError, is_retryable_status, provider_retry
from subtide.providers.llm.base import (
    LLMCompletionResult,
    LLMProvider,
    LLMUsage,
    Message,
    split_system_messages,
)

logger = logging.getLogger(__name__)

DEFAULT_ANTHROPIC_MODEL = "claude-haiku-4-5"
DEFAULT_MAX_TOKENS = 4096


def _to_anthropic_messages(messages: list[Message]) -> list[dict[str, str]]:
    out: list[dict[str, str]] = []
    for m in messages:
        role = str(m.role or "").strip().lower()
        out.append(
            {"role": role if role == "assistant" else "user", "content": str(m.content or "")}
        )
    return out


def _sdk_base_url(base_url: str | None) -> str | None:
    # the SDK appends /v1 itself
    resolved = str(base_url or "").strip().rstrip("/")
    if resolved.endswith("/v1"):
        resolved = resolved[: -len("/v1")]
    return resolved or None


class AnthropicProvider(LLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_ANTHROPIC_MODEL,
        base_url: str | None = None,
        timeout: float = 120.0,
    ) -> None:
        self.provider = "anthropic"
        self.api_key = str(api_key or "").strip()
        if not self.api_key:
            raise ValueError("AnthropicProvider requires api_key")
        self.model = str(model or "").strip() or DEFAULT_ANTHROPIC_MODEL
        self.base_url = _sdk_base_url(base_url)
        self._client = anthropic.AsyncAnthropic(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=timeout,
        )

    def _provider_error(self, exc: anthropic.APIError) -> ProviderError:
        """Map an SDK error onto the retryable/fatal split."""
        match exc:
            case anthropic.RateLimitError():
                return RetryableProviderError(
                    self.provider, str(exc), rate_limited=True, error_code=ErrorCode.LLM_FAILED
                )
            case anthropic.APIStatusError() if is_retryable_status(exc.status_code):
                return RetryableProviderError(self.provider, str(exc), error_code=ErrorCode.LLM_FAILED)
            case anthropic.APITimeoutError():
                return RetryableProviderError(self.provider, str(exc), error_code=ErrorCode.LLM_TIMEOUT)
            case anthropic.APIConnectionError():
                return RetryableProviderError(self.provider, str(exc), error_code=ErrorCode.LLM_FAILED)
            case _:
                return ProviderError(self.provider, str(exc), error_code=ErrorCode.LLM_FAILED)

    @provider_retry(logger)
    async def complete_with_usage(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMCompletionResult:
        system, conversation = split_system_messages(messages)
        started = time.perf_counter()
        chunks: list[str] = []
        usage: LLMUsage | None = None
        try:
            async with self._client.messages.stream(
                model=self.model,
                messages=_to_anthropic_messages(conversation),
                system=system or anthropic.NOT_GIVEN,
                temperature=float(temperature) if temperature is not None else anthropic.NOT_GIVEN,
                max_tokens=int(max_tokens) if max_tokens is not None else DEFAULT_MAX_TOKENS,
            ) as stream:
                async for text in stream.text_stream:
                    chunks.append(text)
                final = await stream.get_final_message()
        except anthropic.APIError as exc:
            logger.warning("llm request failed (provider=%s): %s", self.provider, exc)
            raise self._provider_error(exc) from exc

        if final is not None and final.usage is not None:
            usage = LLMUsage.from_counts(final.usage.input_tokens, final.usage.output_tokens)
        self.log_call(logger, int((time.perf_counter() - started) * 1000), usage)
        return LLMCompletionResult(text="".join(chunks), usage=usage)

    async def close(self) -> None:
        await self._client.close()
