"""Provider abstractions for external services."""

from subtide.providers.registry import get_asr_provider, get_llm_provider, get_translator

__all__ = ["get_asr_provider", "get_llm_provider", "get_translator"]
