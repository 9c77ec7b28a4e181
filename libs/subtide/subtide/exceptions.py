"""Subtide exception hierarchy.

Every error carries an `error_code` (see `subtide.error_codes`). The CLI prints
the message and logs the code at debug level.
"""

from __future__ import annotations

from subtide.error_codes import ErrorCode


class SubtideError(Exception):
    """Base error for Subtide."""

    error_code: ErrorCode | str | None = None


class ConfigurationError(SubtideError):
    """Raised when configuration or inputs are invalid."""

    error_code = ErrorCode.INVALID_CONFIG


class SubtitleParseError(SubtideError):
    """Raised when a subtitle file is malformed."""

    error_code = ErrorCode.SUBTITLE_PARSE_FAILED

    def __init__(self, message: str, *, line: int | None = None) -> None:
        if line is not None:
            super().__init__(f"line {line}: {message}")
        else:
            super().__init__(message)
        self.line = line
        self.message = message


class UnsupportedFormatError(SubtideError):
    """Raised when a subtitle file extension is not srt/vtt/ass/ssa."""

    error_code = ErrorCode.UNSUPPORTED_FORMAT

    def __init__(self, extension: str) -> None:
        super().__init__(
            f"unsupported subtitle format {extension!r}: use .srt, .vtt, .ass, or .ssa"
        )
        self.extension = extension


class EntryIndexError(SubtideError, IndexError):
    """Raised when mutating an entry position outside the document."""

    error_code = ErrorCode.ENTRY_OUT_OF_RANGE

    def __init__(self, position: int, size: int) -> None:
        super().__init__(f"index {position} out of range (entries={size})")
        self.position = position
        self.size = size


class NoValidJSONError(SubtideError):
    """Raised when no usable JSON payload can be recovered from model output."""

    error_code = ErrorCode.LLM_INVALID_JSON

    def __init__(self, kind: str, excerpt: str) -> None:
        super().__init__(f"no valid {kind} JSON found in response (response: {excerpt})")
        self.kind = kind
        self.excerpt = excerpt


class ProviderError(SubtideError):
    """Raised when an external provider call fails."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.error_code = error_code or ErrorCode.PROVIDER_FAILED


class ResultCountMismatchError(ProviderError):
    """Raised when a provider returns a structurally valid but incomplete batch."""

    def __init__(self, provider: str, expected: int, got: int) -> None:
        super().__init__(
            provider,
            f"expected {expected} results, got {got}",
            error_code=ErrorCode.LLM_FAILED,
        )
        self.expected = expected
        self.got = got


class UnitFailedError(SubtideError):
    """Raised by the concurrent pipeline for the first failing unit.

    The code of the underlying error is kept when it has one.
    """

    def __init__(self, unit_label: str, index: int, cause: BaseException) -> None:
        super().__init__(f"{unit_label} {index} failed: {cause}")
        self.unit_label = unit_label
        self.index = index
        self.cause = cause
        self.error_code = getattr(cause, "error_code", None) or ErrorCode.UNIT_FAILED


class MediaError(SubtideError):
    """Raised when the media tool fails or the input is not a media file."""

    def __init__(
        self,
        message: str,
        *,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or ErrorCode.INVALID_MEDIA
