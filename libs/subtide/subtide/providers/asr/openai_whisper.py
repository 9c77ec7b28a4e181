"""OpenAI Whisper transcription provider (verbose_json over HTTP)."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import httpx

from subtide.error_codes import ErrorCode
from subtide.exceptions import ProviderError
from subtide.models.segment import Segment
from subtide.providers.asr.base import ASRProvider
from subtide.providers._retry import RetryableProviderError, is_retryable_status, provider_retry
from subtide.providers.llm.openai_compat import DEFAULT_OPENAI_BASE_URL, format_http_error

logger = logging.getLogger(__name__)

DEFAULT_WHISPER_MODEL = "whisper-1"

DurationProbe = Callable[[str], Awaitable[float]]


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return 0.0


def parse_verbose_json(result: Any, fallback_duration: float) -> list[Segment]:
    """Convert a verbose_json payload into segments.

    Empty segments are dropped. A response without segments becomes a single
    segment spanning the whole file.
    """
    if not isinstance(result, dict):
        return []
    raw_segments = result.get("segments")
    if isinstance(raw_segments, list) and raw_segments:
        segments: list[Segment] = []
        for seg in raw_segments:
            if not isinstance(seg, dict):
                continue
            text = str(seg.get("text") or "").strip()
            if not text:
                continue
            segments.append(
                Segment(start=_as_float(seg.get("start")), end=_as_float(seg.get("end")), text=text)
            )
        return segments

    text = str(result.get("text") or "").strip()
    if not text:
        return []
    duration = _as_float(result.get("duration"))
    if duration <= 0:
        duration = fallback_duration
    return [Segment(start=0.0, end=duration, text=text)]


class OpenAIWhisperASRProvider(ASRProvider):
    """OpenAI audio API (transcriptions, or translations when the output is English)."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_WHISPER_MODEL,
        *,
        language: str = "",
        transcript_language: str = "native",
        prompt: str = "",
        base_url: str | None = None,
        timeout: float = 300.0,
        duration_probe: DurationProbe | None = None,
    ) -> None:
        self.provider = "openai"
        self.api_key = str(api_key or "").strip()
        if not self.api_key:
            raise ValueError("OpenAIWhisperASRProvider requires api_key")
        self.model = str(model or "").strip() or DEFAULT_WHISPER_MODEL
        self.base_url = (str(base_url or "").strip() or DEFAULT_OPENAI_BASE_URL).rstrip("/")
        self.language = language
        self.transcript_language = transcript_language
        self.prompt = prompt
        self.timeout = timeout
        self.duration_probe = duration_probe
        self._client: httpx.AsyncClient | None = None

    @property
    def uses_translation(self) -> bool:
        return self.transcript_language.strip().lower() in {"english", "en"}

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    def _form_data(self) -> dict[str, Any]:
        data: dict[str, Any] = {"model": self.model, "response_format": "verbose_json"}
        if not self.uses_translation:
            data["timestamp_granularities[]"] = "segment"
            if self.language:
                data["language"] = self.language
        if self.prompt:
            data["prompt"] = self.prompt
        return data

    @provider_retry(logger)
    async def _request(self, audio_path: str) -> Any:
        endpoint = "translations" if self.uses_translation else "transcriptions"
        client = await self._get_client()
        path = Path(audio_path)
        try:
            with path.open("rb") as f:
                response = await client.post(
                    f"{self.base_url}/audio/{endpoint}",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    files={"file": (path.name, f)},
                    data=self._form_data(),
                )
        except httpx.TimeoutException as exc:
            logger.warning("asr request timeout: %s", exc)
            raise RetryableProviderError(
                self.provider, str(exc), error_code=ErrorCode.ASR_FAILED
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("asr request failed: %s", exc)
            raise RetryableProviderError(
                self.provider, str(exc), error_code=ErrorCode.ASR_FAILED
            ) from exc

        if response.status_code >= 400:
            message = format_http_error(response, response.content)
            if is_retryable_status(response.status_code):
                raise RetryableProviderError(
                    self.provider,
                    message,
                    rate_limited=response.status_code == 429,
                    error_code=ErrorCode.ASR_FAILED,
                )
            raise ProviderError(self.provider, message, error_code=ErrorCode.ASR_FAILED)

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(
                self.provider,
                f"failed to parse verbose_json response: {exc}",
                error_code=ErrorCode.ASR_FAILED,
            ) from exc

    async def transcribe(self, audio_path: str) -> list[Segment]:
        if not Path(audio_path).is_file():
            raise ProviderError(
                self.provider,
                f"audio file not found: {audio_path}",
                error_code=ErrorCode.ASR_FAILED,
            )

        started = time.perf_counter()
        result = await self._request(audio_path)

        fallback_duration = 0.0
        if self.duration_probe is not None and not (
            isinstance(result, dict) and result.get("segments")
        ):
            fallback_duration = await self.duration_probe(audio_path)

        segments = parse_verbose_json(result, fallback_duration)
        if not segments:
            logger.warning("asr returned no text (path=%s)", audio_path)
        logger.info(
            "asr call (provider=%s, model=%s, latency_ms=%s, segments=%s)",
            self.provider,
            self.model,
            int((time.perf_counter() - started) * 1000),
            len(segments),
        )
        return segments

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
