"""Retry wrapper for ScopeStack API calls.

``with_retry`` re-invokes a callable on failure with a fixed or doubling
delay, built on tenacity's ``AsyncRetrying``. There is no jitter and no
circuit breaker. ``NonRetryableError`` stops retrying immediately.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

OnRetry = Callable[[int, BaseException], Any]


class RetryableError(Exception):
    """Marker for failures known to be transient."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.original_error = original_error


class NonRetryableError(Exception):
    """Raised (or wrapped) to stop ``with_retry`` after the current attempt."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.original_error = original_error


@dataclass(frozen=True)
class RetryOptions:
    max_attempts: int = 3
    delay_ms: int = 1000
    backoff: bool = True


def _build_wait(delay_ms: int, backoff: bool):
    delay_seconds = max(delay_ms, 0) / 1000
    if backoff and delay_seconds > 0:
        # delay * 2 ** (attempt - 1)
        return wait_exponential(multiplier=delay_seconds, exp_base=2, min=0)
    return wait_fixed(delay_seconds)


async def with_retry(
    fn: Callable[[], Union[Awaitable[Any], Any]],
    options: Optional[RetryOptions] = None,
    *,
    max_attempts: Optional[int] = None,
    delay_ms: Optional[int] = None,
    backoff: Optional[bool] = None,
    on_retry: Optional[OnRetry] = None,
) -> Any:
    """Call ``fn`` until it succeeds or attempts run out.

    Args:
        fn: Zero-argument callable, sync or returning an awaitable.
        options: Base policy; keyword arguments override its fields.
        max_attempts: Total calls allowed (first call included).
        delay_ms: Delay before the second attempt.
        backoff: Double the delay on each further attempt.
        on_retry: ``on_retry(attempt_number, error)`` called before each wait.

    Returns:
        Whatever ``fn`` returns on its first successful call.

    Raises:
        The last error raised by ``fn`` once attempts are exhausted, or a
        ``NonRetryableError`` as soon as one is raised.
    """
    options = options or RetryOptions()
    attempts = max(1, max_attempts if max_attempts is not None else options.max_attempts)
    delay = delay_ms if delay_ms is not None else options.delay_ms
    use_backoff = backoff if backoff is not None else options.backoff

    def _before_sleep(retry_state) -> None:
        if on_retry is not None:
            on_retry(retry_state.attempt_number, retry_state.outcome.exception())

    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=_build_wait(delay, use_backoff),
        retry=(
            retry_if_exception_type(Exception)
            & retry_if_not_exception_type(NonRetryableError)
        ),
        before_sleep=_before_sleep,
        reraise=True,
    )

    result = None
    async for attempt in retrying:
        with attempt:
            result = fn()
            if inspect.isawaitable(result):
                result = await result
    return result


def create_retryable_call(
    api_call: Callable[..., Awaitable[Any]],
    default_options: Optional[RetryOptions] = None,
    on_retry: Optional[OnRetry] = None,
) -> Callable[..., Awaitable[Any]]:
    """Wrap a coroutine function so every call goes through ``with_retry``."""

    async def _wrapped(*args, **kwargs):
        return await with_retry(
            lambda: api_call(*args, **kwargs),
            default_options,
            on_retry=on_retry,
        )

    _wrapped.__name__ = getattr(api_call, "__name__", "retryable_call")
    return _wrapped
