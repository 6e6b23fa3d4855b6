"""
Retry with exponential backoff for provider calls.

A composable helper rather than a base class: adapters and the pipeline
wrap individual coroutine calls with it. Only transient provider errors
(timeouts, rate limits, 5xx, refused connections) are retried; everything
else is raised on the first attempt.
"""
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt, wait_exponential

from literature_tracer.core.exceptions import is_transient
from literature_tracer.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0
DEFAULT_BACKOFF = 2.0


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(f"Attempt {retry_state.attempt_number} failed ({error}), retrying in {wait:.1f}s")


async def call_with_retry(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    backoff: float = DEFAULT_BACKOFF,
    **kwargs: Any,
) -> T:
    """
    Await fn(*args, **kwargs), retrying transient failures.

    With the defaults a failing call is attempted 4 times, sleeping
    1s, 2s and 4s in between. The last error is re-raised unchanged.

    Args:
        fn: Coroutine function to call
        max_retries: Retries after the first attempt (0 disables retrying)
        base_delay: Delay before the first retry, in seconds
        backoff: Multiplier applied to the delay after each retry
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=base_delay, exp_base=backoff, min=0),
        retry=retry_if_exception(is_transient),
        before_sleep=_log_retry,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            result = await fn(*args, **kwargs)
    return result
