"""Timestamp parsing/formatting for SRT, WebVTT and ASS.

Times are float seconds. Every conversion goes through whole milliseconds so a
parse/format cycle never drifts; ASS centiseconds are `ms // 10`.
"""

from __future__ import annotations

import re

_SRT_RE = re.compile(r"^(\d{2,}):(\d{2}):(\d{2}),(\d{3})$")
_VTT_RE = re.compile(r"^(?:(\d{2,}):)?(\d{2}):(\d{2})\.(\d{3})$")
_ASS_RE = re.compile(r"^(\d+):(\d{1,2}):(\d{1,2})\.(\d+)$")


def to_millis(seconds: float) -> int:
    if seconds < 0:
        return 0
    return int(round(seconds * 1000))


def _split_millis(seconds: float) -> tuple[int, int, int, int]:
    total_ms = to_millis(seconds)
    ms = total_ms % 1000
    total_s = total_ms // 1000
    s = total_s % 60
    total_m = total_s // 60
    m = total_m % 60
    h = total_m // 60
    return h, m, s, ms


def _from_parts(h: int, m: int, s: int, ms: int) -> float:
    return (((h * 60 + m) * 60 + s) * 1000 + ms) / 1000


def format_srt_timestamp(seconds: float) -> str:
    h, m, s, ms = _split_millis(seconds)
    return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"


def format_vtt_timestamp(seconds: float) -> str:
    h, m, s, ms = _split_millis(seconds)
    return f"{h:02d}:{m:02d}:{s:02d}.{ms:03d}"


def format_ass_timestamp(seconds: float) -> str:
    h, m, s, ms = _split_millis(seconds)
    return f"{h:d}:{m:02d}:{s:02d}.{ms // 10:02d}"


def parse_srt_timestamp(value: str) -> float:
    """Parse `HH:MM:SS,mmm`; raises ValueError on anything else."""
    match = _SRT_RE.match(value.strip())
    if match is None:
        raise ValueError(f"invalid SRT timestamp: {value!r}")
    h, m, s, ms = (int(x) for x in match.groups())
    return _from_parts(h, m, s, ms)


def parse_vtt_timestamp(value: str) -> float:
    """Parse `HH:MM:SS.mmm` or `MM:SS.mmm`."""
    match = _VTT_RE.match(value.strip())
    if match is None:
        raise ValueError(f"invalid WebVTT timestamp: {value!r}")
    hours, m, s, ms = match.groups()
    return _from_parts(int(hours or 0), int(m), int(s), int(ms))


def parse_ass_timestamp(value: str) -> float:
    """Parse `H:MM:SS.cc` (any number of hour digits)."""
    match = _ASS_RE.match(value.strip())
    if match is None:
        raise ValueError(f"invalid ASS timestamp: {value!r}")
    h, m, s, cs = (int(x) for x in match.groups())
    return _from_parts(h, m, s, cs * 10)
