"""
Tests for the retry executor and the retryable-error classifier.
"""

import functools
import socket
from unittest.mock import AsyncMock

import pytest

from gsheets_core.utils.exceptions import ErrorKind, SheetsError
from gsheets_core.utils.retry import (
    RetryConfig,
    execute_with_retry,
    handle_quota_error,
    is_retryable_error,
    retry_on_transient_error,
)


class StatusError(Exception):
    def __init__(self, message, status=None, status_code=None, code=None):
        super().__init__(message)
        if status is not None:
            self.status = status
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class TestExecuteWithRetry:
    """Retry loop behaviour."""

    @pytest.mark.asyncio
    async def test_succeeds_on_first_attempt(self, fake_clock):
        operation = AsyncMock(return_value="success")

        result = await execute_with_retry(operation, sleep=fake_clock.sleep)

        assert result == "success"
        assert operation.call_count == 1
        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_retries_retryable_error(self, fake_clock):
        operation = AsyncMock(side_effect=[ConnectionResetError("Network error"), "success"])

        result = await execute_with_retry(operation, RetryConfig(max_retries=2), sleep=fake_clock.sleep)

        assert result == "success"
        assert operation.call_count == 2
        assert fake_clock.sleeps == [1.0]

    @pytest.mark.asyncio
    async def test_fails_after_max_retries(self, fake_clock):
        error = SheetsError(ErrorKind.TRANSIENT_FAILURE, "Persistent error")
        operation = AsyncMock(side_effect=error)

        with pytest.raises(SheetsError) as exc_info:
            await execute_with_retry(operation, RetryConfig(max_retries=2), sleep=fake_clock.sleep)

        assert exc_info.value is error
        assert operation.call_count == 3
        assert fake_clock.sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_does_not_retry_non_retryable_error(self, fake_clock):
        operation = AsyncMock(side_effect=ValueError("Validation error"))

        with pytest.raises(ValueError, match="Validation error"):
            await execute_with_retry(operation, sleep=fake_clock.sleep)

        assert operation.call_count == 1
        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_stops_on_non_retryable_error_mid_sequence(self, fake_clock):
        operation = AsyncMock(side_effect=[
            TimeoutError("timed out"),
            SheetsError(ErrorKind.NOT_FOUND, "Sheet not found: Data"),
        ])

        with pytest.raises(SheetsError) as exc_info:
            await execute_with_retry(operation, sleep=fake_clock.sleep)

        assert exc_info.value.kind is ErrorKind.NOT_FOUND
        assert operation.call_count == 2

    @pytest.mark.asyncio
    async def test_delays_grow_and_are_capped(self, fake_clock):
        operation = AsyncMock(side_effect=StatusError("Service unavailable", status=503))
        config = RetryConfig(max_retries=5, base_delay=1.0, max_delay=5.0, backoff_multiplier=2.0)

        with pytest.raises(StatusError):
            await execute_with_retry(operation, config, sleep=fake_clock.sleep)

        assert operation.call_count == 6
        assert fake_clock.sleeps == [1.0, 2.0, 4.0, 5.0, 5.0]

    @pytest.mark.asyncio
    async def test_lambda_operation_is_awaited_and_retried(self, fake_clock):
        calls = []

        async def always_fails():
            calls.append(1)
            raise ConnectionResetError("reset")

        with pytest.raises(ConnectionResetError):
            await execute_with_retry(lambda: always_fails(), RetryConfig(max_retries=2), sleep=fake_clock.sleep)

        assert len(calls) == 3
        assert fake_clock.sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_partial_operation_returns_awaited_result(self, fake_clock):
        async def double(value):
            return value * 2

        result = await execute_with_retry(functools.partial(double, 21), sleep=fake_clock.sleep)

        assert result == 42

    @pytest.mark.asyncio
    async def test_zero_retries(self, fake_clock):
        operation = AsyncMock(side_effect=ConnectionResetError("reset"))

        with pytest.raises(ConnectionResetError):
            await execute_with_retry(operation, RetryConfig(max_retries=0), sleep=fake_clock.sleep)

        assert operation.call_count == 1

    @pytest.mark.asyncio
    async def test_decorator(self):
        calls = []

        @retry_on_transient_error(RetryConfig(max_retries=1, base_delay=0))
        async def flaky(value):
            calls.append(value)
            if len(calls) == 1:
                raise StatusError("Too many requests", status=429)
            return value * 2

        assert await flaky(21) == 42
        assert calls == [21, 21]


class TestIsRetryableError:
    """Classifier heuristics."""

    def test_network_errors(self):
        assert is_retryable_error(ConnectionResetError("reset"))
        assert is_retryable_error(TimeoutError("timed out"))
        assert is_retryable_error(socket.gaierror("Name or service not known"))
        assert is_retryable_error(StatusError("boom", code="ECONNRESET"))
        assert is_retryable_error(StatusError("boom", code="ENOTFOUND"))
        assert is_retryable_error(StatusError("boom", code="ETIMEDOUT"))

    def test_http_status(self):
        assert is_retryable_error(StatusError("server", status=500))
        assert is_retryable_error(StatusError("server", status_code=503))
        assert is_retryable_error(StatusError("slow down", status=429))
        assert not is_retryable_error(StatusError("missing", status=404))
        assert not is_retryable_error(StatusError("bad", status=400))

    def test_http_error(self, http_error):
        assert is_retryable_error(http_error(503, "Backend Error"))
        assert is_retryable_error(http_error(403, "Quota exceeded for quota metric 'Read requests'"))
        assert not is_retryable_error(http_error(400, "Unable to parse range: Foo"))

    def test_quota_messages(self):
        assert is_retryable_error(Exception("quota exceeded"))
        assert is_retryable_error(Exception("User Rate Limit Exceeded"))

    def test_sheets_error_kinds(self):
        assert is_retryable_error(SheetsError(ErrorKind.QUOTA_EXCEEDED, "quota"))
        assert is_retryable_error(SheetsError(ErrorKind.TRANSIENT_FAILURE, "flaky"))
        assert not is_retryable_error(SheetsError(ErrorKind.INVALID_RANGE, "Invalid range format: x"))
        # Typed errors are trusted over message wording
        assert not is_retryable_error(SheetsError(ErrorKind.VALIDATION_FAILURE, "rate limit must be positive"))

    def test_other_errors(self):
        assert not is_retryable_error(ValueError("Validation error"))
        assert not is_retryable_error(KeyError("values"))


def test_handle_quota_error_raises_dedicated_kind():
    original = Exception("Quota exceeded for quota metric")

    with pytest.raises(SheetsError) as exc_info:
        handle_quota_error(original)

    assert exc_info.value.kind is ErrorKind.QUOTA_EXCEEDED
    assert exc_info.value.__cause__ is original


def test_handle_quota_error_reraises_others():
    original = ValueError("something else")

    with pytest.raises(ValueError) as exc_info:
        handle_quota_error(original)

    assert exc_info.value is original


def test_retry_config_defaults():
    config = RetryConfig()
    assert config.max_retries == 3
    assert config.base_delay == 1.0
    assert config.max_delay == 10.0
    assert config.backoff_multiplier == 2.0
