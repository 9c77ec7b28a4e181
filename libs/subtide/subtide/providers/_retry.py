"""Retry policy shared by the HTTP-backed providers (translation and ASR).

Transient failures (timeouts, connection errors, HTTP 429 and 5xx) are raised
as `RetryableProviderError` and retried up to `MAX_ATTEMPTS` times; everything
else propagates on the first attempt.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from subtide.error_codes import ErrorCode
from subtide.exceptions import ProviderError

F = TypeVar("F", bound=Callable[..., Any])

MAX_ATTEMPTS = 3

_WAIT_NORMAL = wait_exponential(min=1, max=10)
_WAIT_RATE_LIMIT = wait_exponential(min=2, max=30)


class RetryableProviderError(ProviderError):
    """Transient provider failure; `rate_limited` selects the slower backoff."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        rate_limited: bool = False,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(provider, message, error_code=error_code)
        self.rate_limited = bool(rate_limited)


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


def wait_retry(state: RetryCallState) -> float:
    exc = state.outcome.exception() if state.outcome else None
    if isinstance(exc, RetryableProviderError) and exc.rate_limited:
        return _WAIT_RATE_LIMIT(state)
    return _WAIT_NORMAL(state)


def log_retry(logger: logging.Logger) -> Callable[[RetryCallState], None]:
    def _log(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        provider = "provider"
        model = None
        if state.args:
            provider = getattr(state.args[0], "provider", provider)
            model = getattr(state.args[0], "model", None)
        wait_s = state.next_action.sleep if state.next_action else None
        logger.warning(
            "provider retrying (provider=%s, model=%s, attempt=%s/%s, wait_s=%s, rate_limited=%s, error=%s)",
            provider,
            model,
            state.attempt_number,
            MAX_ATTEMPTS,
            wait_s,
            bool(getattr(exc, "rate_limited", False)),
            exc,
        )

    return _log


def provider_retry(logger: logging.Logger) -> Callable[[F], F]:
    """Decorate a provider coroutine method with the shared retry policy."""
    return retry(
        retry=retry_if_exception_type(RetryableProviderError),
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_retry,
        before_sleep=log_retry(logger),
        reraise=True,
    )
