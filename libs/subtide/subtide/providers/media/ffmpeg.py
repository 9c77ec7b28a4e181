"""FFmpeg-based media utilities: probing, audio extraction, chunking."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path

from subtide.error_codes import ErrorCode
from subtide.exceptions import MediaError
from subtide.models.segment import AudioChunk
from subtide.utils.ffmpeg import resolve_ffmpeg_bin, resolve_ffprobe_bin
from subtide.utils.subprocess import RunResult, run_subprocess

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = frozenset(
    {".mp4", ".mkv", ".avi", ".mov", ".wmv", ".flv", ".webm", ".m4v", ".mpeg", ".mpg", ".3gp"}
)
AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".aac", ".flac", ".ogg", ".m4a", ".wma", ".aiff"})

_STDERR_DURATION_RE = re.compile(r"Duration:\s*(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")


def is_video_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in VIDEO_EXTENSIONS


def is_audio_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in AUDIO_EXTENSIONS


def is_media_file(path: str | Path) -> bool:
    return is_audio_file(path) or is_video_file(path)


def plan_chunks(total_s: float, chunk_duration_s: float) -> list[tuple[int, float, float]]:
    """Return `(index, start, end)` windows covering `[0, total_s)`."""
    if chunk_duration_s <= 0:
        raise MediaError(f"chunk duration must be positive, got {chunk_duration_s}")
    windows: list[tuple[int, float, float]] = []
    i = 0
    while True:
        start = i * chunk_duration_s
        if start >= total_s:
            break
        windows.append((i, start, min(start + chunk_duration_s, total_s)))
        i += 1
    return windows


class FFmpegMediaTool:
    def __init__(
        self,
        ffmpeg_bin: str = "ffmpeg",
        ffprobe_bin: str = "ffprobe",
        *,
        sample_rate: int = 16000,
        channels: int = 1,
        bitrate: str = "64k",
        codec: str = "libmp3lame",
    ) -> None:
        self.ffmpeg_bin = resolve_ffmpeg_bin(ffmpeg_bin)
        self.ffprobe_bin = resolve_ffprobe_bin(ffprobe_bin)
        self.sample_rate = int(sample_rate)
        self.channels = int(channels)
        self.bitrate = str(bitrate or "")
        self.codec = str(codec or "libmp3lame")

    async def _run(self, args: list[str], *, error_code: ErrorCode) -> RunResult:
        try:
            result = await run_subprocess(args)
        except FileNotFoundError as exc:
            raise MediaError(
                f"binary not found: {args[0]}. "
                "Install ffmpeg and ensure it is in PATH (or install `imageio-ffmpeg` in the env, "
                "or set AUDIO_FFMPEG_BIN).",
                error_code=error_code,
            ) from exc
        if not result.ok:
            raise MediaError(
                f"{Path(args[0]).name} failed (code={result.returncode})\n"
                f"cmd: {result.command}\n"
                f"stderr: {result.stderr_tail()}",
                error_code=error_code,
            )
        return result

    @staticmethod
    def _require_file(path: str | Path) -> None:
        if not Path(path).is_file():
            raise MediaError(f"file not found: {path}", error_code=ErrorCode.INVALID_MEDIA)

    async def duration(self, path: str | Path) -> float:
        """Media duration in seconds."""
        self._require_file(path)
        if self.ffprobe_bin:
            result = await self._run(
                [
                    self.ffprobe_bin,
                    "-v",
                    "quiet",
                    "-print_format",
                    "json",
                    "-show_format",
                    str(path),
                ],
                error_code=ErrorCode.INVALID_MEDIA,
            )
            try:
                probe = json.loads(result.stdout.decode("utf-8", errors="replace") or "{}")
                return float(probe["format"]["duration"])
            except (ValueError, KeyError, TypeError) as exc:
                raise MediaError(
                    f"failed to parse ffprobe output for {path}: {exc}",
                    error_code=ErrorCode.INVALID_MEDIA,
                ) from exc

        # No ffprobe (e.g. bundled imageio-ffmpeg): ffmpeg -i prints the duration and exits 1.
        result = await run_subprocess([self.ffmpeg_bin, "-hide_banner", "-i", str(path)])
        match = _STDERR_DURATION_RE.search(result.stderr.decode("utf-8", errors="replace"))
        if match is None:
            raise MediaError(
                f"failed to read duration for {path}", error_code=ErrorCode.INVALID_MEDIA
            )
        hours, minutes, seconds = match.groups()
        return int(hours) * 3600 + int(minutes) * 60 + float(seconds)

    def _audio_args(self) -> list[str]:
        args = ["-vn", "-ar", str(self.sample_rate), "-ac", str(self.channels), "-acodec", self.codec]
        if self.bitrate:
            args += ["-b:a", self.bitrate]
        return args

    async def extract_audio(self, video_path: str | Path, output_path: str | Path) -> str:
        """Extract a compressed mono audio track from a video."""
        self._require_file(video_path)
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        await self._run(
            [self.ffmpeg_bin, "-y", "-i", str(video_path), *self._audio_args(), str(output_path)],
            error_code=ErrorCode.AUDIO_PREPROCESS_FAILED,
        )
        logger.info("audio extracted (src=%s, dst=%s)", video_path, output_path)
        return str(output_path)

    async def compress_audio(self, audio_path: str | Path, output_path: str | Path) -> str:
        """Re-encode an audio file to the upload format."""
        self._require_file(audio_path)
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        await self._run(
            [self.ffmpeg_bin, "-y", "-i", str(audio_path), *self._audio_args(), str(output_path)],
            error_code=ErrorCode.AUDIO_PREPROCESS_FAILED,
        )
        logger.info("audio compressed (src=%s, dst=%s)", audio_path, output_path)
        return str(output_path)

    async def split_into_chunks(
        self,
        audio_path: str | Path,
        chunk_duration_s: float,
        output_dir: str | Path,
        *,
        concurrency: int = 10,
        total_duration_s: float | None = None,
    ) -> list[AudioChunk]:
        """Cut the audio into consecutive windows of `chunk_duration_s` (stream copy)."""
        self._require_file(audio_path)
        if concurrency <= 0:
            concurrency = 10
        total = total_duration_s if total_duration_s is not None else await self.duration(audio_path)
        windows = plan_chunks(total, chunk_duration_s)

        out_dir = Path(output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        src = Path(audio_path)
        semaphore = asyncio.Semaphore(concurrency)

        async def _cut(index: int, start: float, end: float) -> AudioChunk:
            chunk_path = out_dir / f"{src.stem}_chunk_{index:03d}{src.suffix}"
            async with semaphore:
                await self._run(
                    [
                        self.ffmpeg_bin,
                        "-y",
                        "-ss",
                        f"{start:.3f}",
                        "-t",
                        f"{end - start:.3f}",
                        "-i",
                        str(src),
                        "-c",
                        "copy",
                        str(chunk_path),
                    ],
                    error_code=ErrorCode.AUDIO_PREPROCESS_FAILED,
                )
            return AudioChunk(path=str(chunk_path), index=index, start=start, end=end)

        tasks = [asyncio.create_task(_cut(i, s, e)) for i, s, e in windows]
        try:
            chunks = await asyncio.gather(*tasks)
        except MediaError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        logger.info(
            "audio chunked (src=%s, chunks=%s, chunk_s=%s, total_s=%.3f)",
            audio_path,
            len(chunks),
            chunk_duration_s,
            total,
        )
        return sorted(chunks, key=lambda c: c.index)

    @staticmethod
    def cleanup_chunks(chunks: list[AudioChunk]) -> None:
        for chunk in chunks:
            Path(chunk.path).unlink(missing_ok=True)
