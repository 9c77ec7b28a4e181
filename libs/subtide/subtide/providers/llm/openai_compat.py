"""OpenAI-compatible chat completions over streamed SSE (OpenAI, vLLM, LM Studio)."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import AsyncIterator
from typing import Any

import httpx

from subtide.error_codes import ErrorCode
from subtide.exceptions import ProviderError
from subtide.providers._retry import RetryableProviderError, is_retryable_status, provider_retry
from subtide.providers.llm.base import LLMCompletionResult, LLMProvider, LLMUsage, Message

logger = logging.getLogger(__name__)

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-5-mini"

_MAX_ERROR_DETAIL = 2000


async def iter_sse_data(response: httpx.Response) -> AsyncIterator[str]:
    """Yield the joined `data:` payload of each server-sent event."""
    pending: list[str] = []
    async for line in response.aiter_lines():
        if line.startswith("data:"):
            pending.append(line[5:].lstrip())
        elif not line and pending:
            yield "\n".join(pending)
            pending = []
    if pending:
        yield "\n".join(pending)


def format_http_error(response: httpx.Response, body: bytes | None) -> str:
    summary = f"HTTP {response.status_code} {response.reason_phrase}"
    detail = (body or b"").decode("utf-8", errors="replace").strip()
    if not detail:
        return summary
    if len(detail) > _MAX_ERROR_DETAIL:
        detail = detail[:_MAX_ERROR_DETAIL] + "…"
    return f"{summary}: {detail}"


def _usage_from_event(event: dict[str, Any]) -> LLMUsage | None:
    usage = event.get("usage")
    if not isinstance(usage, dict):
        return None
    return LLMUsage.from_counts(
        usage.get("prompt_tokens"),
        usage.get("completion_tokens"),
        usage.get("total_tokens"),
    )


def _delta_text(event: dict[str, Any]) -> str:
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    delta = choices[0].get("delta")
    content = delta.get("content") if isinstance(delta, dict) else None
    return content if isinstance(content, str) else ""


class OpenAICompatProvider(LLMProvider):
    """Chat completions client for any endpoint speaking the OpenAI protocol.

    Only `model`, `messages` and `stream` are always sent; `temperature` and
    `max_completion_tokens` are sent only when set, since reasoning models reject
    non-default values.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_OPENAI_MODEL,
        base_url: str | None = None,
        provider: str = "openai",
        timeout: float = 120.0,
    ) -> None:
        self.provider = provider
        self.base_url = (str(base_url or "").strip() or DEFAULT_OPENAI_BASE_URL).rstrip("/")
        self.api_key = api_key
        self.model = str(model or "").strip() or DEFAULT_OPENAI_MODEL
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _client_or_new(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def build_payload(
        self,
        messages: list[Message],
        temperature: float | None,
        max_tokens: int | None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "stream": True,
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_completion_tokens"] = max_tokens
        return payload

    async def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code < 400:
            return
        message = format_http_error(response, await response.aread())
        if is_retryable_status(response.status_code):
            raise RetryableProviderError(
                self.provider,
                message,
                rate_limited=response.status_code == 429,
                error_code=ErrorCode.LLM_FAILED,
            )
        raise ProviderError(self.provider, message, error_code=ErrorCode.LLM_FAILED)

    async def _read_stream(self, response: httpx.Response) -> LLMCompletionResult:
        chunks: list[str] = []
        usage: LLMUsage | None = None
        async for data in iter_sse_data(response):
            if data.strip() == "[DONE]":
                break
            try:
                event = json.loads(data)
            except json.JSONDecodeError:
                logger.debug("llm stream non-json data: %r", data[:200])
                continue
            if not isinstance(event, dict):
                continue
            error = event.get("error")
            if isinstance(error, dict):
                raise ProviderError(
                    self.provider,
                    str(error.get("message") or error),
                    error_code=ErrorCode.LLM_FAILED,
                )
            usage = _usage_from_event(event) or usage
            chunks.append(_delta_text(event))
        return LLMCompletionResult(text="".join(chunks), usage=usage)

    @provider_retry(logger)
    async def complete_with_usage(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMCompletionResult:
        client = self._client_or_new()
        started = time.perf_counter()
        try:
            async with client.stream(
                "POST",
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json=self.build_payload(messages, temperature, max_tokens),
            ) as response:
                await self._raise_for_status(response)
                result = await self._read_stream(response)
        except httpx.TimeoutException as exc:
            logger.warning("llm request timeout (provider=%s): %s", self.provider, exc)
            raise RetryableProviderError(
                self.provider, str(exc), error_code=ErrorCode.LLM_TIMEOUT
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("llm request failed (provider=%s): %s", self.provider, exc)
            raise RetryableProviderError(
                self.provider, str(exc), error_code=ErrorCode.LLM_FAILED
            ) from exc

        self.log_call(logger, int((time.perf_counter() - started) * 1000), result.usage)
        return result

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
