from __future__ import annotations

import pytest

from subtide.exceptions import NoValidJSONError
from subtide.utils.llm_json import (
    clean_json_response,
    extract_transcript_segments,
    extract_translation_results,
    fix_invalid_escapes,
)


@pytest.mark.parametrize(
    ("text", "count"),
    [
        ('[{"index": 0, "text": "こんにちは"}, {"index": 1, "text": "さようなら"}]', 2),
        ('Here is the translation:\n[{"index": 0, "text": "Bonjour"}, {"index": 1, "text": "Au revoir"}]', 2),
        ('[{"index": 0, "text": "Hola"}]\nI hope this helps!', 1),
        ('```json\n[{"index": 0, "text": "翻訳されたテキスト"}]\n```', 1),
        ('{"results": [{"index": 0, "text": "Translated"}]}', 1),
        ('{"translations": [{"index": 0, "text": "Übersetzt"}]}', 1),
        ('{"data": [{"index": 0, "text": "Переведено"}]}', 1),
        (
            "I've translated the subtitles for you. Here is the JSON:\n\n"
            '[{"index": 0, "text": "First translation"}, {"index": 1, "text": "Second translation"}]\n\n'
            "Let me know if you need anything else!",
            2,
        ),
        ('<think>maybe [1, 2]</think>\n[{"index": 0, "text": "After reasoning"}]', 1),
    ],
)
def test_translation_results_recovered(text: str, count: int) -> None:
    assert len(extract_translation_results(text)) == count


@pytest.mark.parametrize(
    "text",
    [
        "[]",
        "This is just plain text.",
        '[{"index": 0, "text": "incomplete"',
        '[{"index": 0, "text": ""}]',
        '[{"index": 0.5, "text": "fractional index"}]',
    ],
)
def test_translation_recovery_failures(text: str) -> None:
    with pytest.raises(NoValidJSONError, match="no valid translation JSON found"):
        extract_translation_results(text)


def test_translation_keeps_literal_ass_line_break() -> None:
    text = r"""[{"index": 0, "text": "That's why they are fuming...\Nthese Babu and Pappu."}]"""

    results = extract_translation_results(text)

    assert results[0].index == 0
    assert results[0].text == "That's why they are fuming...\\Nthese Babu and Pappu."


def test_translation_index_accepts_integral_float() -> None:
    results = extract_translation_results('[{"index": 3.0, "text": "x"}]')
    assert results[0].index == 3


def test_failure_message_carries_truncated_excerpt() -> None:
    with pytest.raises(NoValidJSONError) as exc_info:
        extract_translation_results("x" * 500)

    assert exc_info.value.excerpt == "x" * 200 + "..."


@pytest.mark.parametrize(
    ("text", "count"),
    [
        ('[{"start": 0.0, "end": 1.5, "text": "Hello"}, {"start": 1.5, "end": 3.0, "text": "World"}]', 2),
        ('Here is the JSON transcript:\n[{"start": 0, "end": 2, "text": "Hi"}]', 1),
        ('{"segments": [{"start": 0.0, "end": 2.0, "text": "Wrapped"}]}', 1),
        ('{"transcript": [{"start": 0.0, "end": 2.0, "text": "Wrapped"}]}', 1),
        ('{"myCustomKey": [{"start": 0.0, "end": 2.0, "text": "From unknown key"}]}', 1),
        ('{"status": "ok", "count": 5}\n[{"start": 0.0, "end": 2.0, "text": "Real transcript"}]', 1),
        ('[1, 2, 3]\n[{"start": 0.0, "end": 2.0, "text": "Actual transcript"}]', 1),
        ('[{"start": 1.0, "end": 2.0, "text": ""}]', 1),
        ('{\n  "response": {\n    "segments": [{"start": 0.0, "end": 1.0, "text": "Nested"}]\n  }\n}', 1),
    ],
)
def test_transcript_segments_recovered(text: str, count: int) -> None:
    assert len(extract_transcript_segments(text)) == count


@pytest.mark.parametrize(
    "text",
    [
        "[]",
        "This is just plain text with no JSON content.",
        '[{"start": 0.0, "end": 2.0, "text": "incomplete"',
        '[{"start": 0, "end": 0, "text": ""}]',
    ],
)
def test_transcript_recovery_failures(text: str) -> None:
    with pytest.raises(NoValidJSONError, match="no valid transcript JSON found"):
        extract_transcript_segments(text)


def test_transcript_segment_values() -> None:
    segments = extract_transcript_segments('[{"start": 0.5, "end": 2, "text": "Hi"}]')
    assert (segments[0].start, segments[0].end, segments[0].text) == (0.5, 2.0, "Hi")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ('[{"index": 0, "text": "hello"}]', '[{"index": 0, "text": "hello"}]'),
        ('```json\n[{"index": 0, "text": "hello"}]\n```', '[{"index": 0, "text": "hello"}]'),
        ('```\n[{"index": 0, "text": "hello"}]\n```', '[{"index": 0, "text": "hello"}]'),
        ('  \n\n```json\n[{"index": 0}]\n```\n\n  ', '[{"index": 0}]'),
    ],
)
def test_clean_json_response(text: str, expected: str) -> None:
    assert clean_json_response(text) == expected


def test_fix_invalid_escapes_only_touches_invalid_sequences() -> None:
    assert fix_invalid_escapes(r'"a\Nb"') == r'"a\\Nb"'
    assert fix_invalid_escapes(r'"a\nb\"c\\d"') == r'"a\nb\"c\\d"'
