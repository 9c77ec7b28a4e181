"""ASS/SSA documents that preserve everything except the dialogue text.

Only `Dialogue:` lines inside `[Events]` are parsed. Every other line (script
info, styles, comments, fonts, later sections) is kept verbatim and written
back in its original position.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field

from subtide.exceptions import EntryIndexError, SubtitleParseError
from subtide.subtitles.base import (
    SourceText,
    SubtitleEntry,
    SubtitleFormat,
    read_source,
    write_text_file,
)
from subtide.subtitles.timecodes import format_ass_timestamp, parse_ass_timestamp

_LEADING_TAGS_RE = re.compile(r"^(\{[^}]*\})+")

_DIALOGUE = "Dialogue:"
_FORMAT = "Format:"

GENERATED_EVENTS_FORMAT = "Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text"
_STYLES_FORMAT = (
    "Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, "
    "Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, Outline, "
    "Shadow, Alignment, MarginL, MarginR, MarginV, Encoding"
)


def split_ass_fields(content: str, num_fields: int) -> list[str]:
    """Split on the first `num_fields - 1` commas; the last field keeps the rest."""
    if num_fields <= 0:
        return []
    return content.split(",", num_fields - 1)


def extract_leading_tags(text: str) -> tuple[str, str]:
    """Return (leading override-tag run, remaining text)."""
    match = _LEADING_TAGS_RE.match(text)
    if match is None:
        return "", text
    return match.group(0), text[match.end() :]


def escape_ass_text(text: str) -> str:
    return text.replace("\n", "\\N")


def unescape_ass_text(text: str) -> str:
    return text.replace("\\N", "\n").replace("\\n", "\n")


@dataclass
class ASSDialogue:
    """One parsed Dialogue line.

    `prefix` is everything up to the first field (normally `"Dialogue: "`), so an
    unmodified record renders back to its source line exactly.
    """

    line_number: int
    prefix: str
    fields_before: list[str]
    text: str
    fields_after: list[str] = field(default_factory=list)
    leading_tags: str = ""
    text_without_tags: str = ""
    start: float = 0.0
    end: float = 0.0

    def render(self) -> str:
        return self.prefix + ",".join([*self.fields_before, self.text, *self.fields_after])


class ASSDocument:
    format = SubtitleFormat.ASS

    def __init__(
        self,
        source: SourceText,
        slots: list[str | ASSDialogue],
        *,
        format_columns: list[str],
        text_column: int,
        format_line_number: int,
    ) -> None:
        self._source = source
        self._slots = slots
        self.format_columns = format_columns
        self.text_column = text_column
        self._format_line_number = format_line_number
        self._dialogues = [s for s in slots if isinstance(s, ASSDialogue)]

    @classmethod
    def parse(cls, source: SourceText) -> ASSDocument:
        slots: list[str | ASSDialogue] = []
        in_events = False
        columns: list[str] | None = None
        text_column = -1
        format_line_number = 0

        for lineno, line in enumerate(source.lines, start=1):
            stripped = line.strip()
            if stripped.startswith("[") and stripped.endswith("]"):
                in_events = stripped[1:-1].strip().lower() == "events"
                slots.append(line)
                continue

            if not in_events:
                slots.append(line)
                continue

            if stripped.startswith(_FORMAT):
                columns = [c.strip() for c in stripped[len(_FORMAT) :].split(",")]
                text_column = next(
                    (i for i, c in enumerate(columns) if c.lower() == "text"), -1
                )
                if text_column == -1:
                    raise SubtitleParseError("ASS file missing Text column in Format line", line=lineno)
                format_line_number = lineno
                slots.append(line)
                continue

            if stripped.startswith(_DIALOGUE):
                if columns is None:
                    raise SubtitleParseError("Dialogue line before Format line", line=lineno)
                slots.append(_parse_dialogue(line, lineno, columns, text_column))
                continue

            slots.append(line)

        if columns is None:
            raise SubtitleParseError("ASS file missing Format line in [Events] section")

        return cls(
            source,
            slots,
            format_columns=columns,
            text_column=text_column,
            format_line_number=format_line_number,
        )

    @classmethod
    def open(cls, path: str | os.PathLike[str]) -> ASSDocument:
        return cls.parse(read_source(path))

    @property
    def dialogues(self) -> list[ASSDialogue]:
        return list(self._dialogues)

    @property
    def pre_events_lines(self) -> list[str]:
        """Raw lines before the Events `Format:` line."""
        return [
            s
            for s in self._slots[: self._format_line_number - 1]
            if isinstance(s, str)
        ]

    @property
    def non_dialogue_event_lines(self) -> list[str]:
        """Raw lines after the Events `Format:` line that are not Dialogue records."""
        return [s for s in self._slots[self._format_line_number :] if isinstance(s, str)]

    def entries(self) -> list[SubtitleEntry]:
        out: list[SubtitleEntry] = []
        for i, d in enumerate(self._dialogues):
            _tags, body = extract_leading_tags(d.text)
            out.append(
                SubtitleEntry(index=i + 1, start=d.start, end=d.end, text=unescape_ass_text(body))
            )
        return out

    def _dialogue_at(self, position: int) -> ASSDialogue:
        if position < 0 or position >= len(self._dialogues):
            raise EntryIndexError(position, len(self._dialogues))
        return self._dialogues[position]

    def set_text(self, position: int, text: str) -> None:
        d = self._dialogue_at(position)
        escaped = escape_ass_text(text)
        d.text = d.leading_tags + escaped
        d.text_without_tags = escaped

    def set_text_with_overlay(self, position: int, translated_text: str) -> None:
        """Translated line first, then the untouched original; tags apply once, at the top."""
        d = self._dialogue_at(position)
        d.text = d.leading_tags + escape_ass_text(translated_text) + "\\N" + d.text_without_tags

    def render(self) -> str:
        lines = [s.render() if isinstance(s, ASSDialogue) else s for s in self._slots]
        return self._source.render(lines)

    def write(self, path: str | os.PathLike[str]) -> None:
        write_text_file(path, self.render())


def _parse_dialogue(line: str, lineno: int, columns: list[str], text_column: int) -> ASSDialogue:
    after = line[line.index(_DIALOGUE) + len(_DIALOGUE) :]
    content = after.lstrip()
    prefix = line[: len(line) - len(content)]

    fields = split_ass_fields(content, len(columns))
    if len(fields) < len(columns):
        raise SubtitleParseError(
            f"failed to parse Dialogue: expected {len(columns)} fields, got {len(fields)}",
            line=lineno,
        )

    text = fields[text_column]
    leading, body = extract_leading_tags(text)
    dialogue = ASSDialogue(
        line_number=lineno,
        prefix=prefix,
        fields_before=fields[:text_column],
        text=text,
        fields_after=fields[text_column + 1 :],
        leading_tags=leading,
        text_without_tags=body,
    )

    lowered = [c.lower() for c in columns]
    try:
        if "start" in lowered:
            dialogue.start = parse_ass_timestamp(fields[lowered.index("start")])
        if "end" in lowered:
            dialogue.end = parse_ass_timestamp(fields[lowered.index("end")])
    except ValueError as exc:
        raise SubtitleParseError(f"malformed timestamp ({exc})", line=lineno) from exc
    return dialogue


def render_generated_ass(
    entries: list[SubtitleEntry],
    *,
    title: str = "Subtide Generated Subtitles",
    font_name: str = "Arial",
    font_size: int = 20,
) -> str:
    """Serialize freshly generated entries as a minimal ASS script."""
    lines = [
        "[Script Info]",
        f"Title: {title}",
        "ScriptType: v4.00+",
        "Collisions: Normal",
        "PlayDepth: 0",
        "",
        "[V4+ Styles]",
        f"Format: {_STYLES_FORMAT}",
        f"Style: Default,{font_name},{font_size},&H00FFFFFF,&H000000FF,&H00000000,&H00000000,"
        "0,0,0,0,100,100,0,0,1,2,2,2,10,10,10,1",
        "",
        "[Events]",
        f"Format: {GENERATED_EVENTS_FORMAT}",
    ]
    for entry in entries:
        lines.append(
            "Dialogue: 0,"
            f"{format_ass_timestamp(entry.start)},"
            f"{format_ass_timestamp(entry.end)},"
            "Default,,0,0,0,,"
            f"{escape_ass_text(entry.text)}"
        )
    return "\n".join(lines) + "\n"
