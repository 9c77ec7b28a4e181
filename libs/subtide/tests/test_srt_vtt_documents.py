from __future__ import annotations

import pytest

from subtide.exceptions import EntryIndexError, SubtitleParseError, UnsupportedFormatError
from subtide.subtitles import EntryDocument, SubtitleEntry, SubtitleFormat, open_subtitle, write_entries

SRT_SAMPLE = (
    "1\n"
    "00:00:01,000 --> 00:00:04,000\n"
    "Hello world\n"
    "\n"
    "2\n"
    "00:00:05,000 --> 00:00:08,000\n"
    "Second line\n"
    "continues\n"
    "\n"
    "3\n"
    "00:00:09,500 --> 00:00:12,000\n"
    "Third\n"
    "\n"
)

VTT_SAMPLE = (
    "WEBVTT\n"
    "\n"
    "NOTE a comment\n"
    "\n"
    "cue-1\n"
    "00:01.000 --> 00:04.000 align:start\n"
    "Hello\n"
    "\n"
    "00:00:05.000 --> 00:00:06.500\n"
    "World\n"
)


def test_open_srt_reads_every_entry(tmp_path) -> None:
    path = tmp_path / "sample.srt"
    path.write_text(SRT_SAMPLE, encoding="utf-8")

    doc = open_subtitle(path)

    assert isinstance(doc, EntryDocument)
    assert doc.format is SubtitleFormat.SRT
    entries = doc.entries()
    assert [e.index for e in entries] == [1, 2, 3]
    assert entries[0] == SubtitleEntry(index=1, start=1.0, end=4.0, text="Hello world")
    assert entries[1].text == "Second line\ncontinues"
    assert entries[2].start == 9.5


def test_srt_unmodified_document_renders_identically(tmp_path) -> None:
    path = tmp_path / "sample.srt"
    path.write_text(SRT_SAMPLE, encoding="utf-8")

    doc = open_subtitle(path)

    assert isinstance(doc, EntryDocument)
    assert doc.render() == SRT_SAMPLE


def test_srt_set_text_changes_only_that_entry(tmp_path) -> None:
    path = tmp_path / "sample.srt"
    path.write_text(SRT_SAMPLE, encoding="utf-8")
    doc = open_subtitle(path)

    doc.set_text(0, "Hola mundo")
    out = tmp_path / "out" / "sample.es.srt"
    doc.write(out)

    reopened = open_subtitle(out).entries()
    assert [e.text for e in reopened] == ["Hola mundo", "Second line\ncontinues", "Third"]
    assert [(e.start, e.end) for e in reopened] == [(1.0, 4.0), (5.0, 8.0), (9.5, 12.0)]


def test_srt_tolerates_bom_and_crlf(tmp_path) -> None:
    path = tmp_path / "bom.srt"
    path.write_bytes("\ufeff1\r\n00:00:01,000 --> 00:00:02,000\r\nHi\r\n".encode("utf-8"))

    entries = open_subtitle(path).entries()

    assert len(entries) == 1
    assert entries[0].text == "Hi"


def test_srt_malformed_timing_reports_line(tmp_path) -> None:
    path = tmp_path / "bad.srt"
    path.write_text("1\n00:00:01 --> 00:00:02,000\nHi\n", encoding="utf-8")

    with pytest.raises(SubtitleParseError) as exc_info:
        open_subtitle(path)

    assert exc_info.value.line == 2
    assert str(exc_info.value).startswith("line 2:")


def test_set_text_out_of_range_raises(tmp_path) -> None:
    path = tmp_path / "sample.srt"
    path.write_text(SRT_SAMPLE, encoding="utf-8")
    doc = open_subtitle(path)

    with pytest.raises(EntryIndexError):
        doc.set_text(3, "nope")
    with pytest.raises(IndexError):
        doc.set_text(-1, "nope")


def test_unsupported_extension_is_rejected(tmp_path) -> None:
    with pytest.raises(UnsupportedFormatError) as exc_info:
        open_subtitle(tmp_path / "notes.txt")

    assert "use .srt, .vtt, .ass, or .ssa" in str(exc_info.value)


def test_open_vtt_skips_header_notes_and_cue_settings(tmp_path) -> None:
    path = tmp_path / "sample.vtt"
    path.write_text(VTT_SAMPLE, encoding="utf-8")

    entries = open_subtitle(path).entries()

    assert [e.text for e in entries] == ["Hello", "World"]
    assert (entries[0].start, entries[0].end) == (1.0, 4.0)
    assert entries[1].end == 6.5


def test_write_entries_vtt_emits_header_and_numbered_cues(tmp_path) -> None:
    out = tmp_path / "gen.vtt"
    write_entries(
        out,
        [SubtitleEntry(index=1, start=0.0, end=1.25, text="Hi")],
        SubtitleFormat.VTT,
    )

    assert out.read_text(encoding="utf-8") == "WEBVTT\n\n1\n00:00:00.000 --> 00:00:01.250\nHi\n\n"


def test_subtitle_format_parse_accepts_ssa_alias() -> None:
    assert SubtitleFormat.parse("ssa") is SubtitleFormat.ASS
    assert SubtitleFormat.parse(".VTT") is SubtitleFormat.VTT
    with pytest.raises(UnsupportedFormatError):
        SubtitleFormat.parse("sub")


def test_non_utf8_file_is_a_parse_error(tmp_path) -> None:
    path = tmp_path / "latin1.srt"
    path.write_bytes("1\n00:00:01,000 --> 00:00:02,000\nCafé\n".encode("latin-1"))

    with pytest.raises(SubtitleParseError) as exc_info:
        open_subtitle(path)

    message = str(exc_info.value)
    assert "latin1.srt is not valid UTF-8" in message
    assert "byte 0xe9 at offset 35" in message


def test_cue_text_indentation_survives_round_trip(tmp_path) -> None:
    content = "1\n00:00:01,000 --> 00:00:02,000\n  - Who?\n  - Me.\n\n"
    path = tmp_path / "indent.srt"
    path.write_text(content, encoding="utf-8")

    doc = open_subtitle(path)

    assert isinstance(doc, EntryDocument)
    assert doc.entries()[0].text == "  - Who?\n  - Me."
    assert doc.render() == content
