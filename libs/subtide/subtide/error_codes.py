"""Stable error codes carried by Subtide exceptions and written to debug logs."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_MEDIA = "INVALID_MEDIA"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    SUBTITLE_PARSE_FAILED = "SUBTITLE_PARSE_FAILED"
    ENTRY_OUT_OF_RANGE = "ENTRY_OUT_OF_RANGE"

    # external tools and providers
    AUDIO_PREPROCESS_FAILED = "AUDIO_PREPROCESS_FAILED"
    ASR_FAILED = "ASR_FAILED"
    LLM_FAILED = "LLM_FAILED"
    LLM_TIMEOUT = "LLM_TIMEOUT"
    LLM_INVALID_JSON = "LLM_INVALID_JSON"
    PROVIDER_FAILED = "PROVIDER_FAILED"

    UNIT_FAILED = "UNIT_FAILED"
