"""Provider factory and registry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from subtide.exceptions import ConfigurationError
from subtide.pipeline.translation import DEFAULT_BATCH_SIZE, BatchTranslator
from subtide.providers.asr.base import ASRProvider
from subtide.providers.llm.base import LLMProvider

DEFAULT_TRANSLATION_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-5-mini",
    "anthropic": "claude-haiku-4-5",
}

KNOWN_MODELS: dict[str, tuple[str, ...]] = {
    "gemini": (
        "gemini-3-pro-preview",
        "gemini-3-flash-preview",
        "gemini-2.5-pro",
        "gemini-2.5-flash",
        "gemini-2.5-flash-lite",
    ),
    "openai": (
        "o1",
        "o3-mini",
        "o1-pro",
        "o3",
        "gpt-5",
        "gpt-5-nano",
        "gpt-5-mini",
        "gpt-5-pro",
        "gpt-5.1",
        "gpt-5.2",
        "gpt-5.2-pro",
    ),
}

_PROVIDER_TITLES = {"gemini": "Gemini", "openai": "OpenAI"}


def validate_model(provider: str, model: str, *, allow_custom_model: bool = False) -> None:
    """Reject models outside the known list unless the override is set."""
    if not model or allow_custom_model:
        return
    known = KNOWN_MODELS.get(provider)
    if known is None or model in known:
        return
    raise ConfigurationError(
        f"unsupported {_PROVIDER_TITLES.get(provider, provider)} model {model!r}: "
        f"valid models are {', '.join(known)} (use --model-override to bypass)"
    )


def get_llm_provider(config: Mapping[str, Any]) -> LLMProvider:
    """Get LLM provider based on configuration."""
    provider_type = str(config.get("provider") or "gemini").strip().lower()
    api_key = str(config.get("api_key") or "").strip()
    model = str(config.get("model") or "").strip()

    match provider_type:
        case "openai" | "openai_compat":
            from subtide.providers.llm.openai_compat import OpenAICompatProvider

            return OpenAICompatProvider(
                api_key=api_key,
                model=model or DEFAULT_TRANSLATION_MODELS["openai"],
                base_url=config.get("base_url"),
                provider=provider_type,
                timeout=float(config.get("timeout", 120.0)),
            )
        case "gemini":
            from subtide.providers.llm.gemini import GeminiProvider

            if not api_key:
                raise ConfigurationError("Gemini provider requires api_key")
            return GeminiProvider(
                api_key=api_key,
                model=model or DEFAULT_TRANSLATION_MODELS["gemini"],
                base_url=config.get("base_url"),
            )
        case "anthropic" | "claude":
            from subtide.providers.llm.anthropic import AnthropicProvider

            if not api_key:
                raise ConfigurationError("Anthropic provider requires api_key")
            return AnthropicProvider(
                api_key=api_key,
                model=model or DEFAULT_TRANSLATION_MODELS["anthropic"],
                base_url=config.get("base_url"),
                timeout=float(config.get("timeout", 120.0)),
            )
        case _:
            raise ConfigurationError(f"unsupported translation provider: {provider_type}")


def get_asr_provider(config: Mapping[str, Any]) -> ASRProvider:
    """Get ASR provider based on configuration."""
    provider_type = str(config.get("provider") or "gemini").strip().lower()
    api_key = str(config.get("api_key") or "").strip()
    if provider_type in {"gemini", "openai"} and not api_key:
        raise ConfigurationError(f"{provider_type} ASR provider requires api_key")

    match provider_type:
        case "gemini":
            from subtide.providers.asr.gemini_asr import GeminiASRProvider

            return GeminiASRProvider(
                api_key=api_key,
                model=str(config.get("model") or ""),
                language=str(config.get("language") or ""),
                transcript_language=str(config.get("transcript_language") or "native"),
                prompt=str(config.get("prompt") or ""),
                base_url=config.get("base_url"),
            )
        case "openai":
            from subtide.providers.asr.openai_whisper import OpenAIWhisperASRProvider

            return OpenAIWhisperASRProvider(
                api_key=api_key,
                model=str(config.get("model") or ""),
                language=str(config.get("language") or ""),
                transcript_language=str(config.get("transcript_language") or "native"),
                prompt=str(config.get("prompt") or ""),
                base_url=config.get("base_url"),
                timeout=float(config.get("timeout", 300.0)),
                duration_probe=config.get("duration_probe"),
            )
        case "whisper":
            raise ConfigurationError("whisper provider not yet implemented")
        case _:
            raise ConfigurationError(f"unsupported provider: {provider_type}")


def get_translator(
    provider: str,
    *,
    api_key: str,
    target_language: str,
    model: str = "",
    input_language: str = "",
    prompt: str = "",
    batch_size: int = DEFAULT_BATCH_SIZE,
    allow_custom_model: bool = False,
    base_url: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> BatchTranslator:
    """Build a BatchTranslator for `provider` (gemini | openai | anthropic)."""
    if not str(target_language or "").strip():
        raise ConfigurationError("target language is required")
    provider_type = str(provider or "").strip().lower()
    if provider_type not in DEFAULT_TRANSLATION_MODELS:
        raise ConfigurationError(f"unsupported translation provider: {provider}")
    validate_model(provider_type, model, allow_custom_model=allow_custom_model)

    llm = get_llm_provider(
        {
            "provider": provider_type,
            "api_key": api_key,
            "model": model,
            "base_url": base_url,
        }
    )
    return BatchTranslator(
        llm,
        target_language=target_language,
        input_language=input_language,
        prompt=prompt,
        batch_size=batch_size,
        temperature=temperature,
        max_tokens=max_tokens,
    )
