"""Media tooling (ffmpeg/ffprobe)."""

from subtide.providers.media.ffmpeg import (
    FFmpegMediaTool,
    is_audio_file,
    is_media_file,
    is_video_file,
)

__all__ = ["FFmpegMediaTool", "is_audio_file", "is_media_file", "is_video_file"]
