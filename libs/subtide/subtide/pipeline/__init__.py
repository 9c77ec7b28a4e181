"""Concurrent transcription/translation pipeline and workflows."""

from subtide.pipeline.concurrent import run_concurrent
from subtide.pipeline.transcription import ChunkTranscriber
from subtide.pipeline.translation import BatchTranslator, make_batches
from subtide.pipeline.workflows import (
    GenerateReport,
    TranslateReport,
    generate_subtitles,
    translate_subtitles,
)

__all__ = [
    "BatchTranslator",
    "ChunkTranscriber",
    "GenerateReport",
    "TranslateReport",
    "generate_subtitles",
    "make_batches",
    "run_concurrent",
    "translate_subtitles",
]
