"""Turn transcription segments into display-ready subtitle entries."""

from __future__ import annotations

from dataclasses import dataclass

from subtide.models.segment import Segment
from subtide.subtitles.base import SubtitleEntry


@dataclass
class SubtitleGenerator:
    max_chars_per_line: int = 42
    max_lines: int = 2
    max_duration_s: float = 7.0

    @property
    def max_chars(self) -> int:
        return self.max_chars_per_line * self.max_lines

    def generate(self, segments: list[Segment]) -> list[SubtitleEntry]:
        entries: list[SubtitleEntry] = []
        for seg in segments:
            text = seg.text.strip()
            if not text:
                continue
            if self._needs_split(text, seg.end - seg.start):
                pieces = self._split(seg.start, seg.end, text)
            else:
                pieces = [(seg.start, seg.end, text)]
            for start, end, piece in pieces:
                entries.append(
                    SubtitleEntry(
                        index=len(entries) + 1,
                        start=start,
                        end=end,
                        text=self.wrap(piece),
                    )
                )
        return entries

    def _needs_split(self, text: str, duration: float) -> bool:
        return len(text) > self.max_chars or duration > self.max_duration_s

    def _split(self, start: float, end: float, text: str) -> list[tuple[float, float, str]]:
        words = text.split()
        total = end - start
        num_splits = max(1, -(-len(text) // self.max_chars))
        num_splits = max(num_splits, int(total // self.max_duration_s) + 1)

        words_per_split = -(-len(words) // num_splits)
        step = total / num_splits

        pieces: list[tuple[float, float, str]] = []
        current = start
        for i in range(0, len(words), words_per_split):
            chunk = words[i : i + words_per_split]
            last = i + words_per_split >= len(words)
            piece_end = end if last else current + step
            pieces.append((current, piece_end, " ".join(chunk)))
            current = piece_end
        return pieces

    def wrap(self, text: str) -> str:
        """Break text longer than one line at the word boundary closest to the middle."""
        text = text.strip()
        if len(text) <= self.max_chars_per_line:
            return text
        words = text.split()
        if len(words) < 2:
            return text

        middle = len(text) // 2
        best_split = 0
        best_diff = len(text)
        length = 0
        for i, word in enumerate(words[:-1]):
            length += len(word) + (1 if i > 0 else 0)
            diff = abs(length - middle)
            if diff < best_diff:
                best_diff = diff
                best_split = i + 1

        if 0 < best_split < len(words):
            return " ".join(words[:best_split]) + "\n" + " ".join(words[best_split:])
        return text
