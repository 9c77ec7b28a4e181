"""Format dispatch: open, mutate and write subtitle documents."""

from __future__ import annotations

import os
from dataclasses import replace

from subtide.exceptions import EntryIndexError
from subtide.subtitles.ass import ASSDocument, render_generated_ass
from subtide.subtitles.base import (
    SubtitleDocument,
    SubtitleEntry,
    SubtitleFormat,
    read_source,
    write_text_file,
)
from subtide.subtitles.srt import parse_srt, render_srt
from subtide.subtitles.vtt import parse_vtt, render_vtt


class EntryDocument:
    """SRT/VTT document: a plain ordered list of entries, mutated by position."""

    def __init__(self, format: SubtitleFormat, entries: list[SubtitleEntry]) -> None:
        if format is SubtitleFormat.ASS:
            raise ValueError("ASS documents are represented by ASSDocument")
        self.format = format
        self._entries = list(entries)

    def entries(self) -> list[SubtitleEntry]:
        return list(self._entries)

    def set_text(self, position: int, text: str) -> None:
        if position < 0 or position >= len(self._entries):
            raise EntryIndexError(position, len(self._entries))
        self._entries[position] = replace(self._entries[position], text=text)

    def render(self) -> str:
        return render_entries(self._entries, self.format)

    def write(self, path: str | os.PathLike[str]) -> None:
        write_text_file(path, self.render())


def render_entries(entries: list[SubtitleEntry], fmt: SubtitleFormat) -> str:
    match fmt:
        case SubtitleFormat.SRT:
            return render_srt(entries)
        case SubtitleFormat.VTT:
            return render_vtt(entries)
        case SubtitleFormat.ASS:
            return render_generated_ass(entries)


def open_subtitle(path: str | os.PathLike[str]) -> EntryDocument | ASSDocument:
    """Parse a subtitle file; the format is chosen by extension."""
    fmt = SubtitleFormat.from_path(path)
    source = read_source(path)
    match fmt:
        case SubtitleFormat.SRT:
            return EntryDocument(fmt, parse_srt(source.lines))
        case SubtitleFormat.VTT:
            return EntryDocument(fmt, parse_vtt(source.lines))
        case SubtitleFormat.ASS:
            return ASSDocument.parse(source)


def write_entries(
    path: str | os.PathLike[str],
    entries: list[SubtitleEntry],
    fmt: SubtitleFormat,
) -> None:
    """Write freshly generated entries (indices are renumbered 1..n)."""
    write_text_file(path, render_entries(entries, fmt))


__all__ = [
    "EntryDocument",
    "SubtitleDocument",
    "open_subtitle",
    "render_entries",
    "write_entries",
]
