"""Command-line entry point: `subtide generate`, `subtide translate` and `subtide extract`."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from subtide.config import Settings
from subtide.exceptions import ConfigurationError, SubtideError
from subtide.pipeline.workflows import extract_audio_file, generate_subtitles, translate_subtitles
from subtide.providers.media.ffmpeg import FFmpegMediaTool
from subtide.providers.registry import get_asr_provider, get_translator
from subtide.subtitles.base import SubtitleFormat
from subtide.utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="subtide",
        description="Generate subtitles from media and translate subtitle files with LLMs.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Transcribe an audio/video file into subtitles")
    gen.add_argument("media", help="Path to a local video/audio file")
    gen.add_argument("-o", "--output", default=None, help="Output path (default: <media>.<format>)")
    gen.add_argument(
        "-f", "--format", default="srt", choices=["srt", "vtt", "ass"], help="Subtitle format"
    )
    gen.add_argument(
        "-d",
        "--chunk-duration",
        type=float,
        default=None,
        help="Chunk duration in minutes (default: 1)",
    )
    gen.add_argument("--concurrency", type=int, default=None, help="Chunks transcribed in parallel")
    gen.add_argument("--provider", default=None, choices=["gemini", "openai", "whisper"])
    gen.add_argument("--model", default=None, help="Transcription model (provider default if unset)")
    gen.add_argument("-l", "--language", default=None, help="Language spoken in the audio")
    gen.add_argument(
        "--transcript-language",
        default=None,
        help="Language of the transcript ('native' keeps the spoken language)",
    )
    gen.add_argument("--prompt", default=None, help="Extra instructions for the transcriber")
    gen.add_argument("-k", "--api-key", default=None, help="Provider API key")

    tr = sub.add_parser("translate", help="Translate a subtitle file (.srt, .vtt, .ass, .ssa)")
    tr.add_argument("subtitle", help="Path to the subtitle file")
    tr.add_argument("-t", "--target-language", required=True, help="Target language")
    tr.add_argument("-o", "--output", default=None, help="Output path (default: <base>.<target><ext>)")
    tr.add_argument(
        "--overlay", action="store_true", help="Keep the original text under the translation"
    )
    tr.add_argument("--provider", default=None, choices=["gemini", "openai", "anthropic"])
    tr.add_argument("--model", default=None, help="Translation model (provider default if unset)")
    tr.add_argument(
        "--model-override",
        action="store_true",
        help="Allow any custom model, bypassing provider model validation",
    )
    tr.add_argument("--concurrency", type=int, default=None, help="Batches translated in parallel")
    tr.add_argument("--batch-size", type=int, default=None, help="Entries per API request")
    tr.add_argument("-l", "--language", default=None, help="Language of the input subtitles")
    tr.add_argument("--prompt", default=None, help="Additional translation instructions")
    tr.add_argument("-k", "--api-key", default=None, help="Provider API key")

    ex = sub.add_parser("extract", help="Extract the audio track of a video file")
    ex.add_argument("video", help="Path to a local video file")
    ex.add_argument("-o", "--output", default=None, help="Output path (default: <video>.mp3)")
    return parser


def _positive(name: str, value: int | float) -> None:
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")


def _resolve_api_key(settings: Settings, provider: str, cli_key: str | None) -> str:
    key = str(cli_key or "").strip()
    return key or settings.api_key_for(provider)


def _media_tool(settings: Settings) -> FFmpegMediaTool:
    return FFmpegMediaTool(
        settings.audio.ffmpeg_bin,
        settings.audio.ffprobe_bin,
        sample_rate=settings.audio.sample_rate,
        channels=settings.audio.channels,
        bitrate=settings.audio.bitrate,
        codec=settings.audio.codec,
    )


async def _run_generate(args: argparse.Namespace, settings: Settings) -> int:
    cfg = settings.transcribe
    provider = str(args.provider or cfg.provider).strip().lower()
    chunk_duration_s = (
        float(args.chunk_duration) * 60.0 if args.chunk_duration is not None else cfg.chunk_duration_s
    )
    concurrency = int(args.concurrency) if args.concurrency is not None else cfg.concurrency
    _positive("chunk duration", chunk_duration_s)
    _positive("concurrency", concurrency)

    media = _media_tool(settings)
    api_key = "" if provider == "whisper" else _resolve_api_key(settings, provider, args.api_key)
    asr = get_asr_provider(
        {
            "provider": provider,
            "api_key": api_key,
            "model": args.model if args.model is not None else cfg.model,
            "language": args.language if args.language is not None else cfg.language,
            "transcript_language": (
                args.transcript_language
                if args.transcript_language is not None
                else cfg.transcript_language
            ),
            "prompt": args.prompt if args.prompt is not None else cfg.prompt,
            "base_url": settings.base_url_for(provider),
            "timeout": cfg.timeout,
            "duration_probe": media.duration,
        }
    )
    try:
        report = await generate_subtitles(
            args.media,
            asr=asr,
            media=media,
            output_path=args.output,
            fmt=SubtitleFormat.parse(args.format),
            chunk_duration_s=chunk_duration_s,
            concurrency=concurrency,
            chunk_concurrency=settings.audio.chunk_concurrency,
            audio_extension=settings.audio.extension,
        )
    finally:
        await asr.close()

    print(f"Subtitles generated successfully: {report.output_path.resolve()}")
    print(f"  Entries: {report.entries}")
    print(f"  Duration: {report.duration_s:.3f}s")
    return 0


async def _run_translate(args: argparse.Namespace, settings: Settings) -> int:
    cfg = settings.translate
    provider = str(args.provider or cfg.provider).strip().lower()
    concurrency = int(args.concurrency) if args.concurrency is not None else cfg.concurrency
    batch_size = int(args.batch_size) if args.batch_size is not None else cfg.batch_size
    _positive("concurrency", concurrency)
    _positive("batch-size", batch_size)
    input_language = args.language or ""

    translator = get_translator(
        provider,
        api_key=_resolve_api_key(settings, provider, args.api_key),
        target_language=args.target_language,
        model=args.model if args.model is not None else cfg.model,
        input_language=input_language,
        prompt=args.prompt if args.prompt is not None else cfg.prompt,
        batch_size=batch_size,
        allow_custom_model=bool(args.model_override or cfg.allow_custom_model),
        base_url=settings.base_url_for(provider),
        temperature=cfg.temperature,
        max_tokens=cfg.max_tokens,
    )
    try:
        report = await translate_subtitles(
            args.subtitle,
            translator=translator,
            target_language=args.target_language,
            input_language=input_language,
            output_path=args.output,
            overlay=bool(args.overlay),
            concurrency=concurrency,
        )
    finally:
        await translator.close()

    print(f"Subtitles translated successfully: {report.output_path.resolve()}")
    print(f"  Entries: {report.entries}")
    print(f"  Target language: {report.target_language}")
    if report.overlay:
        print("  Mode: bilingual overlay")
    return 0


async def _run_extract(args: argparse.Namespace, settings: Settings) -> int:
    output = await extract_audio_file(
        args.video,
        media=_media_tool(settings),
        output_path=args.output,
        audio_extension=settings.audio.extension,
    )
    print(f"Audio extracted successfully: {output.resolve()}")
    return 0


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    match args.command:
        case "generate":
            return await _run_generate(args, settings)
        case "translate":
            return await _run_translate(args, settings)
        case "extract":
            return await _run_extract(args, settings)
        case _:
            raise ConfigurationError(f"unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    settings = Settings()
    setup_logging(settings, verbose=bool(args.verbose))
    try:
        code = asyncio.run(_run(args, settings))
    except SubtideError as exc:
        code_name = getattr(exc.error_code, "value", exc.error_code)
        logger.debug("command failed (error_code=%s)", code_name, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    raise SystemExit(code)


if __name__ == "__main__":
    main()
