"""Chunked transcription: each chunk's segments shifted onto the source timeline."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from subtide.models.segment import AudioChunk, Segment
from subtide.pipeline.concurrent import DEFAULT_CONCURRENCY, run_concurrent
from subtide.providers.asr.base import ASRProvider

logger = logging.getLogger(__name__)


class ChunkTranscriber:
    def __init__(self, asr: ASRProvider) -> None:
        self.asr = asr

    async def transcribe_chunk(self, chunk: AudioChunk) -> list[Segment]:
        segments = await self.asr.transcribe(chunk.path)
        logger.debug(
            "chunk transcribed (chunk=%s, start=%.3f, segments=%s)",
            chunk.index,
            chunk.start,
            len(segments),
        )
        return [seg.shifted(chunk.start) for seg in segments]

    async def transcribe_chunks(
        self,
        chunks: Sequence[AudioChunk],
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> list[Segment]:
        return await run_concurrent(
            chunks,
            self.transcribe_chunk,
            concurrency=concurrency,
            unit_label="chunk",
        )
