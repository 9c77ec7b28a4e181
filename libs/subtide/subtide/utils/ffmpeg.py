"""Locate the ffmpeg and ffprobe executables.

A configured path wins, then `PATH`, then the ffmpeg bundled with
`imageio-ffmpeg`. That package ships no ffprobe, so ffprobe may be missing and
callers fall back to parsing `ffmpeg -i` output.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import imageio_ffmpeg

logger = logging.getLogger(__name__)


def _lookup(name: str) -> str | None:
    if Path(name).is_file():
        return name
    return shutil.which(name)


def resolve_ffmpeg_bin(ffmpeg_bin: str = "ffmpeg") -> str:
    name = (ffmpeg_bin or "ffmpeg").strip()
    found = _lookup(name)
    if found:
        return found

    try:
        bundled = str(imageio_ffmpeg.get_ffmpeg_exe())
    except RuntimeError as exc:
        logger.warning("imageio-ffmpeg has no usable binary (%s); using %r", exc, name)
        return name
    logger.debug("using bundled ffmpeg (path=%s)", bundled)
    return bundled


def resolve_ffprobe_bin(ffprobe_bin: str = "ffprobe") -> str | None:
    name = (ffprobe_bin or "ffprobe").strip()
    found = _lookup(name)
    if found is None:
        logger.debug("ffprobe not found, durations come from ffmpeg output (bin=%s)", name)
    return found
