from __future__ import annotations

import pytest

from subtide.exceptions import SubtitleParseError
from subtide.subtitles import (
    ASSDocument,
    SubtitleEntry,
    SubtitleFormat,
    extract_leading_tags,
    open_subtitle,
    split_ass_fields,
    write_entries,
)

ASS_SAMPLE = (
    "[Script Info]\n"
    "Title: Test\n"
    "ScriptType: v4.00+\n"
    "\n"
    "[V4+ Styles]\n"
    "Format: Name, Fontname, Fontsize\n"
    "Style: Default,Arial,20\n"
    "\n"
    "[Events]\n"
    "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
    "Comment: 0,0:00:00.00,0:00:01.00,Default,,0,0,0,,note\n"
    "Dialogue: 0,0:00:01.00,0:00:03.00,Default,,0,0,0,,{\\pos(100,200)}Tagged text\n"
    "Dialogue: 0,0:00:04.00,0:00:06.00,Default,,0,0,0,,Line one\\NLine two, with comma\n"
    "\n"
    "[Fonts]\n"
    "fontname: x.ttf\n"
)


def _open(tmp_path, content: str = ASS_SAMPLE, name: str = "sample.ass") -> ASSDocument:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    doc = open_subtitle(path)
    assert isinstance(doc, ASSDocument)
    return doc


def test_unmodified_document_renders_byte_identical(tmp_path) -> None:
    doc = _open(tmp_path)
    out = tmp_path / "copy.ass"
    doc.write(out)

    assert out.read_bytes() == ASS_SAMPLE.encode("utf-8")


def test_bom_and_crlf_are_preserved(tmp_path) -> None:
    original = "\ufeff" + ASS_SAMPLE.replace("\n", "\r\n")
    path = tmp_path / "crlf.ass"
    path.write_bytes(original.encode("utf-8"))

    doc = ASSDocument.open(path)
    out = tmp_path / "crlf.out.ass"
    doc.write(out)

    assert out.read_bytes() == original.encode("utf-8")


def test_mixed_line_endings_are_preserved_per_line(tmp_path) -> None:
    head, events = ASS_SAMPLE.split("[Events]\n", 1)
    original = head.replace("\n", "\r\n") + "[Events]\n" + events.rstrip("\n")
    path = tmp_path / "mixed.ass"
    path.write_bytes(original.encode("utf-8"))

    doc = ASSDocument.open(path)
    doc.write(tmp_path / "mixed.out.ass")
    assert (tmp_path / "mixed.out.ass").read_bytes() == original.encode("utf-8")

    doc.set_text(1, "Changed")
    rendered = doc.render()
    assert rendered.startswith("[Script Info]\r\nTitle: Test\r\n")
    assert "Default,,0,0,0,,Changed\n\n[Fonts]\n" in rendered
    assert rendered.endswith("fontname: x.ttf")


def test_entries_strip_leading_tags_and_unescape_line_breaks(tmp_path) -> None:
    doc = _open(tmp_path)

    entries = doc.entries()

    assert doc.format is SubtitleFormat.ASS
    assert len(entries) == 2
    assert entries[0] == SubtitleEntry(index=1, start=1.0, end=3.0, text="Tagged text")
    assert entries[1].text == "Line one\nLine two, with comma"


def test_set_text_keeps_leading_tags_and_other_lines(tmp_path) -> None:
    doc = _open(tmp_path)

    doc.set_text(0, "Translated")

    rendered = doc.render().split("\n")
    original = ASS_SAMPLE.split("\n")
    changed = [i for i, (a, b) in enumerate(zip(original, rendered)) if a != b]
    assert changed == [11]
    assert rendered[11] == "Dialogue: 0,0:00:01.00,0:00:03.00,Default,,0,0,0,,{\\pos(100,200)}Translated"


def test_set_text_is_idempotent(tmp_path) -> None:
    doc = _open(tmp_path)

    doc.set_text(1, "A\nB")
    first = doc.render()
    doc.set_text(1, "A\nB")

    assert doc.render() == first
    assert doc.dialogues[1].text == "A\\NB"


def test_overlay_puts_translation_above_original_after_tags(tmp_path) -> None:
    doc = _open(tmp_path)

    doc.set_text_with_overlay(0, "翻訳されたテキスト")

    assert doc.dialogues[0].text == "{\\pos(100,200)}翻訳されたテキスト\\NTagged text"


def test_dialogue_fields_after_text_column_survive(tmp_path) -> None:
    content = (
        "[Events]\n"
        "Format: Start, End, Text, Extra\n"
        "Dialogue: 0:00:01.00,0:00:02.00,Hello,keep\n"
    )
    doc = _open(tmp_path, content)

    doc.set_text(0, "Hola")

    assert doc.render() == (
        "[Events]\n"
        "Format: Start, End, Text, Extra\n"
        "Dialogue: 0:00:01.00,0:00:02.00,Hola,keep\n"
    )


def test_section_views_expose_raw_lines(tmp_path) -> None:
    doc = _open(tmp_path)

    assert "Title: Test" in doc.pre_events_lines
    assert doc.pre_events_lines[-1] == "[Events]"
    assert doc.non_dialogue_event_lines[0].startswith("Comment:")
    assert "[Fonts]" in doc.non_dialogue_event_lines


def test_ssa_extension_opens_as_ass(tmp_path) -> None:
    doc = _open(tmp_path, name="legacy.ssa")
    assert len(doc.entries()) == 2


@pytest.mark.parametrize(
    ("content", "line"),
    [
        ("[Events]\nDialogue: 0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Hi\n", 2),
        ("[Events]\nFormat: Layer, Start, End\n", 2),
        (
            "[Events]\nFormat: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
            "Dialogue: 0,0:00:01.00,0:00:02.00\n",
            3,
        ),
        (
            "[Events]\nFormat: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
            "Dialogue: 0,bad,0:00:02.00,Default,,0,0,0,,Hi\n",
            3,
        ),
    ],
)
def test_malformed_events_raise_with_line(tmp_path, content: str, line: int) -> None:
    with pytest.raises(SubtitleParseError) as exc_info:
        _open(tmp_path, content)

    assert exc_info.value.line == line


def test_missing_format_line_is_an_error(tmp_path) -> None:
    with pytest.raises(SubtitleParseError, match="missing Format"):
        _open(tmp_path, "[Script Info]\nTitle: x\n\n[Events]\n")


def test_field_splitting_keeps_commas_in_text() -> None:
    assert split_ass_fields("0,a,b,c,d", 3) == ["0", "a", "b,c,d"]
    assert split_ass_fields("0,a", 3) == ["0", "a"]


def test_extract_leading_tags() -> None:
    assert extract_leading_tags("{\\an8}{\\b1}Hi {\\i1}there") == ("{\\an8}{\\b1}", "Hi {\\i1}there")
    assert extract_leading_tags("plain") == ("", "plain")


def test_write_entries_ass_generates_parseable_script(tmp_path) -> None:
    out = tmp_path / "gen.ass"
    write_entries(
        out,
        [
            SubtitleEntry(index=1, start=0.0, end=1.5, text="First\nline"),
            SubtitleEntry(index=2, start=2.0, end=3.0, text="Second"),
        ],
        SubtitleFormat.ASS,
    )

    text = out.read_text(encoding="utf-8")
    assert "ScriptType: v4.00+" in text
    assert "Dialogue: 0,0:00:00.00,0:00:01.50,Default,,0,0,0,,First\\Nline" in text

    entries = open_subtitle(out).entries()
    assert [e.text for e in entries] == ["First\nline", "Second"]
    assert (entries[0].start, entries[0].end) == (0.0, 1.5)
