"""Tolerant recovery of JSON arrays from free-form LLM output.

Models wrap payloads in prose, markdown fences or an unexpected wrapper object,
and emit subtitle escapes such as `\\N` that are not valid JSON. The helpers here
scan the whole response and return the first payload that looks like real data.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterator, Mapping
from typing import Any, TypeVar

from subtide.exceptions import NoValidJSONError
from subtide.models.segment import Segment
from subtide.models.translation import TranslationResult

_THINK_BLOCK_RE = re.compile(r"^\s*<think>[\s\S]*?</think>\s*", re.IGNORECASE)
_FENCE_RE = re.compile(r"```(?:json)?\s*")
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_VALID_ESCAPES = frozenset('"\\/bfnrtu')

TRANSCRIPT_WRAPPER_KEYS = ("segments", "transcript", "transcription", "results", "data")
TRANSLATION_WRAPPER_KEYS = ("results", "translations", "data", "items")

EXCERPT_CHARS = 200

T = TypeVar("T")


def clean_json_response(text: str) -> str:
    """Strip reasoning blocks and ```/```json fences anywhere in the text."""
    text = _THINK_BLOCK_RE.sub("", (text or "").strip())
    text = _FENCE_RE.sub("", text)
    return text.replace("```", "").strip()


def fix_invalid_escapes(text: str) -> str:
    """Double backslashes that do not start a valid JSON escape (e.g. `\\N`)."""

    def _fix(match: re.Match[str]) -> str:
        if match.group(1) in _VALID_ESCAPES:
            return match.group(0)
        return "\\\\" + match.group(1)

    return _ESCAPE_RE.sub(_fix, text)


def truncate_text(text: str, limit: int = EXCERPT_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def iter_json_values(text: str) -> Iterator[Any]:
    """Yield every JSON value that decodes from a `[` or `{` position, left to right."""
    decoder = json.JSONDecoder()
    for pos, ch in enumerate(text):
        if ch not in "[{":
            continue
        try:
            value, _end = decoder.raw_decode(text, pos)
        except json.JSONDecodeError:
            continue
        yield value


def _get(obj: Mapping[str, Any], key: str) -> Any:
    if key in obj:
        return obj[key]
    for k, v in obj.items():
        if isinstance(k, str) and k.lower() == key:
            return v
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_segments(value: Any) -> list[Segment] | None:
    if not isinstance(value, list):
        return None
    out: list[Segment] = []
    for item in value:
        if not isinstance(item, dict):
            return None
        start = _get(item, "start")
        end = _get(item, "end")
        text = _get(item, "text")
        if start is not None and not _is_number(start):
            return None
        if end is not None and not _is_number(end):
            return None
        if text is not None and not isinstance(text, str):
            return None
        out.append(Segment(start=float(start or 0.0), end=float(end or 0.0), text=text or ""))
    return out


def _as_translations(value: Any) -> list[TranslationResult] | None:
    if not isinstance(value, list):
        return None
    out: list[TranslationResult] = []
    for item in value:
        if not isinstance(item, dict):
            return None
        index = _get(item, "index")
        text = _get(item, "text")
        if index is not None:
            if not _is_number(index) or not float(index).is_integer():
                return None
        if text is not None and not isinstance(text, str):
            return None
        out.append(TranslationResult(index=int(index or 0), text=text or ""))
    return out


def _segments_valid(segments: list[Segment]) -> bool:
    # Near-silent chunks may carry timestamps with empty text.
    return any(s.text != "" or s.start != 0 or s.end != 0 for s in segments)


def _translations_valid(results: list[TranslationResult]) -> bool:
    return any(r.text != "" for r in results)


def _recover(
    text: str,
    *,
    coerce: Callable[[Any], list[T] | None],
    valid: Callable[[list[T]], bool],
    wrapper_keys: tuple[str, ...],
) -> list[T] | None:
    for value in iter_json_values(text):
        records = coerce(value)
        if records and valid(records):
            return records
        if not isinstance(value, dict):
            continue
        candidates = [value[k] for k in wrapper_keys if k in value]
        candidates.extend(value.values())
        for candidate in candidates:
            records = coerce(candidate)
            if records and valid(records):
                return records
    return None


def extract_transcript_segments(text: str) -> list[Segment]:
    """Recover `[{start, end, text}, ...]` (seconds) from a model response."""
    cleaned = clean_json_response(text)
    segments = _recover(
        cleaned,
        coerce=_as_segments,
        valid=_segments_valid,
        wrapper_keys=TRANSCRIPT_WRAPPER_KEYS,
    )
    if segments is None:
        raise NoValidJSONError("transcript", truncate_text(cleaned))
    return segments


def extract_translation_results(text: str) -> list[TranslationResult]:
    """Recover `[{index, text}, ...]`; literal `\\N` markers survive as two characters."""
    cleaned = clean_json_response(text)
    results = _recover(
        fix_invalid_escapes(cleaned),
        coerce=_as_translations,
        valid=_translations_valid,
        wrapper_keys=TRANSLATION_WRAPPER_KEYS,
    )
    if results is None:
        raise NoValidJSONError("translation", truncate_text(cleaned))
    return results
