"""Segment models for transcription and media chunking."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Segment:
    """A transcribed span of speech (provider-agnostic)."""

    start: float  # seconds
    end: float  # seconds
    text: str

    def shifted(self, offset: float) -> Segment:
        return Segment(start=self.start + offset, end=self.end + offset, text=self.text)


@dataclass(frozen=True)
class AudioChunk:
    """A slice of the source audio; `index` is its position on the original timeline."""

    path: str
    index: int
    start: float  # seconds
    end: float  # seconds

    @property
    def duration(self) -> float:
        return self.end - self.start
