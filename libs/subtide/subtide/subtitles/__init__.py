"""Subtitle document model (SRT, WebVTT, ASS/SSA)."""

from subtide.subtitles.ass import ASSDialogue, ASSDocument, extract_leading_tags, split_ass_fields
from subtide.subtitles.base import SubtitleDocument, SubtitleEntry, SubtitleFormat
from subtide.subtitles.document import EntryDocument, open_subtitle, write_entries
from subtide.subtitles.generator import SubtitleGenerator

__all__ = [
    "ASSDialogue",
    "ASSDocument",
    "EntryDocument",
    "SubtitleDocument",
    "SubtitleEntry",
    "SubtitleFormat",
    "SubtitleGenerator",
    "extract_leading_tags",
    "open_subtitle",
    "split_ass_fields",
    "write_entries",
]
