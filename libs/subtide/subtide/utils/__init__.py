"""Utility helpers."""

from subtide.utils.llm_json import (
    clean_json_response,
    extract_transcript_segments,
    extract_translation_results,
    fix_invalid_escapes,
)
from subtide.utils.subprocess import RunResult, run_subprocess

__all__ = [
    "RunResult",
    "clean_json_response",
    "extract_transcript_segments",
    "extract_translation_results",
    "fix_invalid_escapes",
    "run_subprocess",
]
