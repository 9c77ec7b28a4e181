"""WebVTT (.vtt) parsing and serialization."""

from __future__ import annotations

import logging

from subtide.exceptions import SubtitleParseError
from subtide.subtitles.base import SubtitleEntry, iter_blocks
from subtide.subtitles.timecodes import format_vtt_timestamp, parse_vtt_timestamp

logger = logging.getLogger(__name__)

_SKIPPED_BLOCKS = ("WEBVTT", "NOTE", "STYLE", "REGION")


def _parse_timing(line: str, lineno: int) -> tuple[float, float]:
    start_raw, _, end_raw = line.partition("-->")
    end_fields = end_raw.split()
    try:
        if not end_fields:
            raise ValueError("missing end timestamp")
        # Cue settings (align:, position:, ...) follow the end timestamp.
        return parse_vtt_timestamp(start_raw), parse_vtt_timestamp(end_fields[0])
    except ValueError as exc:
        raise SubtitleParseError(f"malformed timestamp {line!r} ({exc})", line=lineno) from exc


def parse_vtt(lines: list[str]) -> list[SubtitleEntry]:
    entries: list[SubtitleEntry] = []
    for first_lineno, block in iter_blocks(lines):
        head = block[0].strip()
        if "-->" not in head and head.startswith(_SKIPPED_BLOCKS):
            continue

        if "-->" in head:
            timing_at = 0
        elif len(block) > 1 and "-->" in block[1]:
            timing_at = 1  # cue identifier
        else:
            logger.warning("vtt: skipping block without timing (line=%s)", first_lineno)
            continue

        start, end = _parse_timing(block[timing_at], first_lineno + timing_at)
        entries.append(
            SubtitleEntry(
                index=len(entries) + 1,
                start=start,
                end=end,
                text="\n".join(block[timing_at + 1 :]),
            )
        )
    return entries


def render_vtt(entries: list[SubtitleEntry]) -> str:
    parts: list[str] = ["WEBVTT\n\n"]
    for index, entry in enumerate(entries, start=1):
        parts.append(
            f"{index}\n"
            f"{format_vtt_timestamp(entry.start)} --> {format_vtt_timestamp(entry.end)}\n"
            f"{entry.text}\n\n"
        )
    return "".join(parts)
