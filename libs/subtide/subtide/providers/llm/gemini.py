"""Google Gemini provider (google-generativeai SDK).

The SDK is synchronous, so calls run in a worker thread. `genai.configure`
sets process-wide state, so configure and model creation happen together under
`GENAI_LOCK`; the request itself runs outside the lock.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any

from subtide.error_codes import ErrorCode
from subtide.exceptions import ProviderError
from subtide.providers.llm.base import (
    LLMCompletionResult,
    LLMProvider,
    LLMUsage,
    Message,
    split_system_messages,
)

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

GENAI_LOCK = threading.Lock()


def configure_genai(api_key: str, base_url: str | None) -> Any:
    """Point the SDK at this key/endpoint and return the module. Hold GENAI_LOCK."""
    import google.generativeai as genai  # type: ignore[import-not-found]

    options: dict[str, Any] = {"api_key": api_key}
    if base_url:
        options["client_options"] = {"api_endpoint": base_url}
    genai.configure(**options)
    return genai


def usage_from_response(response: object) -> LLMUsage | None:
    meta = getattr(response, "usage_metadata", None)
    if meta is None:
        return None
    return LLMUsage.from_counts(
        getattr(meta, "prompt_token_count", None),
        getattr(meta, "candidates_token_count", None),
        getattr(meta, "total_token_count", None),
    )


def response_text(response: object) -> str:
    """The response text, or the first candidate part when `.text` is unavailable."""
    try:
        text = str(getattr(response, "text", "") or "")
    except ValueError:
        # raised when the candidate has no text parts (blocked or empty)
        text = ""
    if text.strip():
        return text
    for candidate in list(getattr(response, "candidates", None) or [])[:1]:
        parts = list(getattr(getattr(candidate, "content", None), "parts", None) or [])
        if parts:
            return str(getattr(parts[0], "text", "") or "")
    return ""


def to_gemini_contents(messages: list[Message]) -> list[dict[str, Any]]:
    return [
        {
            "role": "model" if str(m.role or "").strip().lower() in {"assistant", "model"} else "user",
            "parts": [{"text": str(m.content)}],
        }
        for m in messages
    ]


class GeminiProvider(LLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str | None = None,
    ) -> None:
        self.provider = "gemini"
        self.api_key = str(api_key or "")
        if not self.api_key:
            raise ValueError("GeminiProvider requires api_key")
        self.model = str(model or "").strip() or DEFAULT_GEMINI_MODEL
        self.base_url = str(base_url or "").strip() or None

    def model_options(
        self,
        system_instruction: str | None,
        temperature: float | None,
        max_tokens: int | None,
    ) -> dict[str, Any]:
        options: dict[str, Any] = {"model_name": self.model}
        if system_instruction:
            options["system_instruction"] = system_instruction
        generation: dict[str, Any] = {}
        if temperature is not None:
            generation["temperature"] = float(temperature)
        if max_tokens is not None:
            generation["max_output_tokens"] = int(max_tokens)
        if generation:
            options["generation_config"] = generation
        return options

    def _generate_sync(self, contents: list[dict[str, Any]], options: dict[str, Any]) -> object:
        with GENAI_LOCK:
            genai = configure_genai(self.api_key, self.base_url)
            model = genai.GenerativeModel(**options)
        return model.generate_content(contents)

    async def complete_with_usage(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMCompletionResult:
        system_instruction, conversation = split_system_messages(messages)
        options = self.model_options(system_instruction, temperature, max_tokens)
        started = time.perf_counter()
        try:
            response = await asyncio.to_thread(
                self._generate_sync, to_gemini_contents(conversation), options
            )
        except Exception as exc:
            # the SDK raises google.api_core exceptions and plain ValueErrors alike
            logger.warning("llm request failed (provider=%s): %s", self.provider, exc)
            raise ProviderError(self.provider, str(exc), error_code=ErrorCode.LLM_FAILED) from exc

        usage = usage_from_response(response)
        self.log_call(logger, int((time.perf_counter() - started) * 1000), usage)
        return LLMCompletionResult(text=response_text(response).strip(), usage=usage)
