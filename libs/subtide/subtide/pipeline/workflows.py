"""End-to-end workflows: media -> subtitles, subtitles -> translated subtitles."""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path

from subtide.error_codes import ErrorCode
from subtide.exceptions import ConfigurationError, MediaError
from subtide.models.translation import TranslationItem
from subtide.pipeline.concurrent import DEFAULT_CONCURRENCY
from subtide.pipeline.transcription import ChunkTranscriber
from subtide.pipeline.translation import BatchTranslator
from subtide.providers.asr.base import ASRProvider
from subtide.providers.media.ffmpeg import FFmpegMediaTool, is_media_file, is_video_file
from subtide.subtitles.ass import ASSDocument
from subtide.subtitles.base import SubtitleFormat
from subtide.subtitles.document import open_subtitle, write_entries
from subtide.subtitles.generator import SubtitleGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerateReport:
    output_path: Path
    entries: int
    segments: int
    chunks: int
    duration_s: float


@dataclass(frozen=True)
class TranslateReport:
    output_path: Path
    entries: int
    translated: int
    skipped: int
    target_language: str
    overlay: bool


def default_generate_output(media_path: str | Path, fmt: SubtitleFormat) -> Path:
    path = Path(media_path)
    return path.with_name(path.stem + fmt.extension)


def default_translate_output(
    subtitle_path: str | Path, target_language: str, *, overlay: bool = False
) -> Path:
    path = Path(subtitle_path)
    suffix = f".{target_language}.overlay{path.suffix}" if overlay else f".{target_language}{path.suffix}"
    return path.with_name(path.stem + suffix)


async def extract_audio_file(
    video_path: str | Path,
    *,
    media: FFmpegMediaTool,
    output_path: str | Path | None = None,
    audio_extension: str = ".mp3",
) -> Path:
    """Write a video's audio track next to it (or to `output_path`)."""
    src = Path(video_path)
    if not src.is_file():
        raise MediaError(f"video file not found: {src}", error_code=ErrorCode.INVALID_MEDIA)
    if not is_video_file(src):
        raise MediaError(
            f"unsupported video file: {src.name} (expected a video file)",
            error_code=ErrorCode.INVALID_MEDIA,
        )
    out = Path(output_path) if output_path else src.with_name(src.stem + audio_extension)
    await media.extract_audio(src, out)
    return out


async def generate_subtitles(
    media_path: str | Path,
    *,
    asr: ASRProvider,
    media: FFmpegMediaTool,
    output_path: str | Path | None = None,
    fmt: SubtitleFormat = SubtitleFormat.SRT,
    chunk_duration_s: float = 60.0,
    concurrency: int = DEFAULT_CONCURRENCY,
    chunk_concurrency: int = 10,
    audio_extension: str = ".mp3",
    generator: SubtitleGenerator | None = None,
) -> GenerateReport:
    """Transcribe a media file chunk by chunk and write a subtitle file."""
    src = Path(media_path)
    if not src.is_file():
        raise MediaError(f"media file not found: {src}", error_code=ErrorCode.INVALID_MEDIA)
    if not is_media_file(src):
        raise MediaError(
            f"unsupported media file: {src.name} (expected an audio or video file)",
            error_code=ErrorCode.INVALID_MEDIA,
        )
    if chunk_duration_s <= 0:
        raise ConfigurationError(f"chunk duration must be positive, got {chunk_duration_s}")

    out = Path(output_path) if output_path else default_generate_output(src, fmt)
    logger.info(
        "generate start (input=%s, output=%s, format=%s, chunk_s=%s, concurrency=%s)",
        src,
        out,
        fmt.value,
        chunk_duration_s,
        concurrency,
    )

    with tempfile.TemporaryDirectory(prefix="subtide-") as tmp:
        audio_path = Path(tmp) / f"audio{audio_extension}"
        if is_video_file(src):
            await media.extract_audio(src, audio_path)
        else:
            await media.compress_audio(src, audio_path)

        duration_s = await media.duration(audio_path)
        chunks = await media.split_into_chunks(
            audio_path,
            chunk_duration_s,
            Path(tmp) / "chunks",
            concurrency=chunk_concurrency,
            total_duration_s=duration_s,
        )
        logger.info("audio prepared (duration_s=%.3f, chunks=%s)", duration_s, len(chunks))

        segments = await ChunkTranscriber(asr).transcribe_chunks(chunks, concurrency=concurrency)
        logger.info("transcription complete (segments=%s)", len(segments))

    entries = (generator or SubtitleGenerator()).generate(segments)
    write_entries(out, entries, fmt)
    logger.info("subtitles written (output=%s, entries=%s)", out, len(entries))
    return GenerateReport(
        output_path=out,
        entries=len(entries),
        segments=len(segments),
        chunks=len(chunks),
        duration_s=duration_s,
    )


async def translate_subtitles(
    subtitle_path: str | Path,
    *,
    translator: BatchTranslator,
    target_language: str,
    input_language: str = "",
    output_path: str | Path | None = None,
    overlay: bool = False,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> TranslateReport:
    """Translate every entry of a subtitle file, preserving its format."""
    src = Path(subtitle_path)
    fmt = SubtitleFormat.from_path(src)
    if not src.is_file():
        raise ConfigurationError(f"subtitle file not found: {src}")
    if not target_language.strip():
        raise ConfigurationError("target language is required")
    if input_language and input_language.strip().casefold() == target_language.strip().casefold():
        raise ConfigurationError(
            f"input language {input_language!r} and target language {target_language!r} "
            "cannot be the same"
        )

    out = (
        Path(output_path)
        if output_path
        else default_translate_output(src, target_language, overlay=overlay)
    )
    doc = open_subtitle(src)
    entries = doc.entries()
    if not entries:
        raise ConfigurationError("subtitle file contains no entries")
    logger.info(
        "translate start (input=%s, output=%s, format=%s, entries=%s, target=%s, overlay=%s)",
        src,
        out,
        fmt.value,
        len(entries),
        target_language,
        overlay,
    )

    items = [TranslationItem(index=i, text=entry.text) for i, entry in enumerate(entries)]
    results = await translator.translate(items, concurrency=concurrency)

    applied = 0
    skipped = 0
    for result in results:
        if result.index < 0 or result.index >= len(entries):
            logger.warning(
                "skipping invalid result index (index=%s, max=%s)",
                result.index,
                len(entries) - 1,
            )
            skipped += 1
            continue
        if overlay and isinstance(doc, ASSDocument):
            doc.set_text_with_overlay(result.index, result.text)
        elif overlay:
            doc.set_text(result.index, result.text + "\n" + entries[result.index].text)
        else:
            doc.set_text(result.index, result.text)
        applied += 1

    doc.write(out)
    logger.info("translated subtitles written (output=%s, applied=%s, skipped=%s)", out, applied, skipped)
    return TranslateReport(
        output_path=out,
        entries=len(entries),
        translated=applied,
        skipped=skipped,
        target_language=target_language,
        overlay=overlay,
    )
