"""SubRip (.srt) parsing and serialization."""

from __future__ import annotations

import logging

from subtide.exceptions import SubtitleParseError
from subtide.subtitles.base import SubtitleEntry, iter_blocks
from subtide.subtitles.timecodes import format_srt_timestamp, parse_srt_timestamp

logger = logging.getLogger(__name__)


def _parse_timing(line: str, lineno: int) -> tuple[float, float]:
    start_raw, _, end_raw = line.partition("-->")
    end_fields = end_raw.split()
    try:
        if not end_fields:
            raise ValueError("missing end timestamp")
        # Anything after the end timestamp (legacy X1/Y1 positions) is ignored.
        return parse_srt_timestamp(start_raw), parse_srt_timestamp(end_fields[0])
    except ValueError as exc:
        raise SubtitleParseError(f"malformed timestamp {line!r} ({exc})", line=lineno) from exc


def parse_srt(lines: list[str]) -> list[SubtitleEntry]:
    entries: list[SubtitleEntry] = []
    for first_lineno, block in iter_blocks(lines):
        body = block
        if body[0].strip().isdigit() and len(body) > 1:
            body = body[1:]
            timing_lineno = first_lineno + 1
        else:
            timing_lineno = first_lineno

        if "-->" not in body[0]:
            logger.warning("srt: skipping block without timing (line=%s)", first_lineno)
            continue

        start, end = _parse_timing(body[0], timing_lineno)
        entries.append(
            SubtitleEntry(
                index=len(entries) + 1,
                start=start,
                end=end,
                text="\n".join(body[1:]),
            )
        )
    return entries


def render_srt(entries: list[SubtitleEntry]) -> str:
    parts: list[str] = []
    for index, entry in enumerate(entries, start=1):
        parts.append(
            f"{index}\n"
            f"{format_srt_timestamp(entry.start)} --> {format_srt_timestamp(entry.end)}\n"
            f"{entry.text}\n\n"
        )
    return "".join(parts)
