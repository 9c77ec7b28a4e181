"""Core data models."""

from subtide.models.segment import AudioChunk, Segment
from subtide.models.translation import TranslationBatch, TranslationItem, TranslationResult

__all__ = [
    "AudioChunk",
    "Segment",
    "TranslationBatch",
    "TranslationItem",
    "TranslationResult",
]
