"""
Retry logic with exponential backoff for Google API calls.
Uses tenacity library for robust retry handling.
"""

import asyncio
import errno
import logging
import socket
from functools import wraps
from typing import Any, Awaitable, Callable, NoReturn, Optional, TypeVar

from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from gsheets_core.utils.exceptions import SheetsError, quota_exceeded

logger = logging.getLogger(__name__)

T = TypeVar("T")

NETWORK_ERROR_CODES = {"ECONNRESET", "ENOTFOUND", "ETIMEDOUT"}
NETWORK_ERRNOS = {errno.ECONNRESET, errno.ETIMEDOUT}
QUOTA_HINTS = ("quota", "rate limit")


class RetryConfig(BaseModel):
    """Backoff settings for one retry executor call. Delays are in seconds."""

    max_retries: int = Field(default=3, ge=0)
    base_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=10.0, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1)


def http_status(error: BaseException) -> Optional[int]:
    for attr in ("status", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value

    # googleapiclient.errors.HttpError keeps the status on its response
    resp = getattr(error, "resp", None)
    status = getattr(resp, "status", None)
    if status is not None:
        try:
            return int(status)
        except (TypeError, ValueError):
            return None
    return None


def is_network_error(error: BaseException) -> bool:
    """Connection resets, DNS failures and timeouts."""
    if isinstance(error, (ConnectionError, TimeoutError, asyncio.TimeoutError, socket.gaierror)):
        return True
    if getattr(error, "code", None) in NETWORK_ERROR_CODES:
        return True
    return getattr(error, "errno", None) in NETWORK_ERRNOS


def is_quota_message(error: BaseException) -> bool:
    message = str(error).lower()
    return any(hint in message for hint in QUOTA_HINTS)


def is_retryable_error(error: BaseException) -> bool:
    """
    Decide whether a failure is transient.

    This is a heuristic: typed errors are trusted, everything else is judged
    by network signals, HTTP status and quota wording in the message.

    Args:
        error: Exception raised by the operation

    Returns:
        True if the operation may be attempted again
    """
    if isinstance(error, SheetsError):
        return error.retryable

    if is_network_error(error):
        return True

    status = http_status(error)
    if status is not None and (status >= 500 or status == 429):
        return True

    return is_quota_message(error)


def handle_quota_error(error: BaseException) -> NoReturn:
    """
    Re-raise quota exhaustion as a dedicated QUOTA_EXCEEDED error.

    Raises:
        SheetsError: QUOTA_EXCEEDED if the message indicates quota/rate limit
        BaseException: the original error otherwise
    """
    if is_quota_message(error):
        raise quota_exceeded() from error
    raise error


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        f"Attempt {retry_state.attempt_number} failed, retrying in {delay:.2f}s: {error}"
    )


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
) -> T:
    """
    Run an async operation, retrying transient failures with exponential backoff.

    Args:
        operation: Zero-argument callable returning an awaitable (coroutine function, lambda, partial)
        config: Retry settings (defaults: 3 retries, 1s base, 10s cap, x2)
        sleep: Coroutine used for backoff waits

    Returns:
        Result of the first successful attempt

    Raises:
        Exception: the last error, unmodified, once retries are exhausted or
            as soon as a non-retryable error occurs
    """
    config = config or RetryConfig()

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(config.max_retries + 1),
        wait=wait_exponential(
            multiplier=config.base_delay,
            exp_base=config.backoff_multiplier,
            max=config.max_delay
        ),
        retry=retry_if_exception(is_retryable_error),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True
    ):
        with attempt:
            return await operation()


def retry_on_transient_error(config: Optional[RetryConfig] = None):
    """
    Decorator for retrying coroutine functions on transient errors.

    Args:
        config: Retry settings

    Returns:
        Decorated function
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            return await execute_with_retry(lambda: func(*args, **kwargs), config)
        return wrapper

    return decorator
