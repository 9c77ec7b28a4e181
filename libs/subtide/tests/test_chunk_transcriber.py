from __future__ import annotations

import pytest

from subtide.exceptions import UnitFailedError
from subtide.models.segment import AudioChunk, Segment
from subtide.pipeline.transcription import ChunkTranscriber

from _fakes import FakeASR


def _chunks() -> list[AudioChunk]:
    return [
        AudioChunk(path="a_chunk_000.mp3", index=0, start=0.0, end=60.0),
        AudioChunk(path="a_chunk_001.mp3", index=1, start=60.0, end=120.0),
        AudioChunk(path="a_chunk_002.mp3", index=2, start=120.0, end=150.0),
    ]


@pytest.mark.asyncio
async def test_segments_are_shifted_onto_the_source_timeline() -> None:
    asr = FakeASR(
        {
            "a_chunk_000.mp3": [Segment(0.5, 2.0, "first")],
            "a_chunk_001.mp3": [Segment(1.0, 3.0, "second"), Segment(3.0, 4.5, "third")],
            "a_chunk_002.mp3": [Segment(0.0, 1.0, "fourth")],
        }
    )

    segments = await ChunkTranscriber(asr).transcribe_chunks(_chunks(), concurrency=3)

    assert [(s.start, s.end, s.text) for s in segments] == [
        (0.5, 2.0, "first"),
        (61.0, 63.0, "second"),
        (63.0, 64.5, "third"),
        (120.0, 121.0, "fourth"),
    ]


@pytest.mark.asyncio
async def test_chunk_failure_names_the_chunk() -> None:
    asr = FakeASR(fail_on="_001.mp3")

    with pytest.raises(UnitFailedError) as exc_info:
        await ChunkTranscriber(asr).transcribe_chunks(_chunks(), concurrency=1)

    assert str(exc_info.value) == "chunk 1 failed: boom"
