"""Shared subtitle types and file helpers."""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from subtide.exceptions import SubtitleParseError, UnsupportedFormatError

_BOM = "\ufeff"


class SubtitleFormat(Enum):
    SRT = "srt"
    VTT = "vtt"
    ASS = "ass"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> SubtitleFormat:
        ext = Path(path).suffix.lower()
        match ext:
            case ".srt":
                return cls.SRT
            case ".vtt":
                return cls.VTT
            case ".ass" | ".ssa":
                return cls.ASS
            case _:
                raise UnsupportedFormatError(ext)

    @classmethod
    def parse(cls, value: str) -> SubtitleFormat:
        normalized = str(value or "").strip().lower().lstrip(".")
        if normalized == "ssa":
            normalized = cls.ASS.value
        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedFormatError(f".{normalized}") from None


@dataclass(frozen=True)
class SubtitleEntry:
    """Single subtitle cue; `index` is 1-based display order."""

    index: int
    start: float  # seconds
    end: float  # seconds
    text: str


class SubtitleDocument(Protocol):
    """Read/mutate/write surface shared by every subtitle format."""

    format: SubtitleFormat

    def entries(self) -> list[SubtitleEntry]: ...

    def set_text(self, position: int, text: str) -> None: ...

    def write(self, path: str | os.PathLike[str]) -> None: ...


@dataclass(frozen=True)
class SourceText:
    """Decoded subtitle file split into lines.

    `terminators[i]` is the exact line ending read after `lines[i]` (`""` for a
    final line without one), so mixed CRLF/LF files render back unchanged.
    """

    lines: list[str]
    terminators: list[str] = field(default_factory=list)
    bom: bool = False

    @property
    def newline(self) -> str:
        """The first terminator seen; used for lines beyond the original ones."""
        return next((t for t in self.terminators if t), "\n")

    def render(self, lines: list[str]) -> str:
        parts: list[str] = [_BOM] if self.bom else []
        for i, line in enumerate(lines):
            parts.append(line)
            parts.append(self.terminators[i] if i < len(self.terminators) else self.newline)
        return "".join(parts)


def decode_source(raw: str) -> SourceText:
    bom = raw.startswith(_BOM)
    if bom:
        raw = raw[len(_BOM) :]
    lines: list[str] = []
    terminators: list[str] = []
    chunks = raw.split("\n")
    # the piece after the last "\n" has no terminator of its own
    tail = chunks.pop()
    for chunk in chunks:
        lines.append(chunk.removesuffix("\r"))
        terminators.append("\r\n" if chunk.endswith("\r") else "\n")
    if tail:
        lines.append(tail)
        terminators.append("")
    return SourceText(lines=lines, terminators=terminators, bom=bom)


def read_source(path: str | os.PathLike[str]) -> SourceText:
    with open(path, "rb") as f:
        data = f.read()
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SubtitleParseError(
            f"{os.fspath(path)} is not valid UTF-8 (byte 0x{data[exc.start]:02x} at offset {exc.start}); "
            "re-save the file as UTF-8"
        ) from exc
    return decode_source(text)


def write_text_file(path: str | os.PathLike[str], content: str) -> None:
    """Write `content` verbatim, creating parent directories as needed."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8", newline="") as f:
        f.write(content)


def iter_blocks(lines: list[str]) -> Iterator[tuple[int, list[str]]]:
    """Yield (first_line_number, lines) for each blank-line separated block.

    Lines are returned as read; only whitespace-only lines count as separators.
    """
    block: list[str] = []
    start = 0
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            if block:
                yield start, block
                block = []
            continue
        if not block:
            start = lineno
        block.append(line)
    if block:
        yield start, block
