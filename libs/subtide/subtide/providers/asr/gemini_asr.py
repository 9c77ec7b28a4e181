"""Gemini audio transcription via file upload + JSON prompt."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any

from subtide.error_codes import ErrorCode
from subtide.exceptions import NoValidJSONError, ProviderError
from subtide.models.segment import Segment
from subtide.providers.asr.base import ASRProvider
from subtide.providers.llm.gemini import (
    DEFAULT_GEMINI_MODEL,
    GENAI_LOCK,
    configure_genai,
    response_text,
)
from subtide.utils.llm_json import extract_transcript_segments

logger = logging.getLogger(__name__)


def build_transcription_prompt(
    *,
    language: str = "",
    transcript_language: str = "",
    prompt: str = "",
) -> str:
    parts = [
        "Generate a detailed transcript of this audio. ",
        "For each sentence or phrase, provide the start timestamp, end timestamp, "
        "and the exact text spoken. ",
        "Format your response as a JSON array with objects containing 'start', 'end', "
        "and 'text' fields, ",
        "where 'start' and 'end' are timestamps in seconds (as numbers). ",
    ]
    if language:
        parts.append(f"The audio is in {language}. ")
    if transcript_language and transcript_language != "native":
        parts.append(f"Output the transcript in {transcript_language}. ")
    if prompt:
        parts.append(f"{prompt} ")
    parts.append("Return ONLY the JSON array, no other text or markdown formatting.")
    return "".join(parts)


class GeminiASRProvider(ASRProvider):
    """Uploads each audio file to Gemini and asks for timestamped JSON."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        *,
        language: str = "",
        transcript_language: str = "native",
        prompt: str = "",
        base_url: str | None = None,
    ) -> None:
        self.provider = "gemini"
        self.api_key = str(api_key or "").strip()
        if not self.api_key:
            raise ValueError("GeminiASRProvider requires api_key")
        self.model = str(model or "").strip() or DEFAULT_GEMINI_MODEL
        self.base_url = str(base_url or "").strip() or None
        self.language = language
        self.transcript_language = transcript_language
        self.prompt = build_transcription_prompt(
            language=language,
            transcript_language=transcript_language,
            prompt=prompt,
        )

    def _transcribe_sync(self, audio_path: str) -> str:
        with GENAI_LOCK:
            genai = configure_genai(self.api_key, self.base_url)
            model = genai.GenerativeModel(model_name=self.model)

        uploaded: Any = genai.upload_file(path=audio_path)
        try:
            response = model.generate_content([self.prompt, uploaded])
            return response_text(response)
        finally:
            try:
                genai.delete_file(uploaded.name)
            except Exception as exc:
                logger.warning("failed to delete uploaded file (name=%s): %s", uploaded.name, exc)

    async def transcribe(self, audio_path: str) -> list[Segment]:
        if not Path(audio_path).is_file():
            raise ProviderError(
                self.provider,
                f"audio file not found: {audio_path}",
                error_code=ErrorCode.ASR_FAILED,
            )

        started = time.perf_counter()
        try:
            text = await asyncio.to_thread(self._transcribe_sync, audio_path)
        except Exception as exc:
            logger.warning("asr request failed (path=%s): %s", audio_path, exc)
            raise ProviderError(
                self.provider,
                f"transcription failed: {exc}",
                error_code=ErrorCode.ASR_FAILED,
            ) from exc

        if not text.strip():
            raise ProviderError(
                self.provider, "no text in Gemini response", error_code=ErrorCode.ASR_FAILED
            )

        try:
            segments = extract_transcript_segments(text)
        except NoValidJSONError as exc:
            raise ProviderError(
                self.provider,
                f"failed to parse transcription: {exc}",
                error_code=ErrorCode.ASR_FAILED,
            ) from exc

        logger.info(
            "asr call (provider=%s, model=%s, latency_ms=%s, segments=%s)",
            self.provider,
            self.model,
            int((time.perf_counter() - started) * 1000),
            len(segments),
        )
        return [Segment(start=s.start, end=s.end, text=s.text.strip()) for s in segments]
