"""ASR provider implementations."""

from subtide.providers.asr.base import ASRProvider

__all__ = ["ASRProvider"]
