"""Speech-to-text provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from subtide.models.segment import Segment


class ASRProvider(ABC):
    """Transcribes one audio file into segments timed from the start of that file."""

    provider: str = "asr"
    model: str = ""

    @abstractmethod
    async def transcribe(self, audio_path: str) -> list[Segment]:
        """Transcribe an audio file.

        Args:
            audio_path: Path to a local audio file (one chunk of the source).

        Returns:
            Segments in file-relative seconds, in spoken order. May be empty.
        """
        ...

    async def close(self) -> None:
        return None

    async def __aenter__(self) -> ASRProvider:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
