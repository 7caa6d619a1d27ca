"""
Unit tests for bounded async retry

Tests verify:
- Attempt limit (attempts include the first call)
- Linear and fixed backoff delays
- Per-attempt timeout
- Exception classification
- Retry callbacks
"""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest

from todosync.errors import AccessError, NotFoundError
from todosync.utils.retry import (
    RetryExhausted,
    RetryPolicy,
    call_with_retry,
    is_retryable_exception,
)


@pytest.fixture
def no_sleep():
    with patch("todosync.utils.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


class TestRetryPolicy:
    """Test RetryPolicy configuration"""

    def test_defaults(self):
        policy = RetryPolicy()

        assert policy.max_attempts == 3
        assert policy.base_delay == 1.0
        assert policy.backoff == "linear"
        assert policy.timeout == 30.0

    def test_linear_delay_grows_with_attempt(self):
        policy = RetryPolicy(base_delay=1.5)

        assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.5, 3.0, 4.5]

    def test_fixed_delay(self):
        policy = RetryPolicy(base_delay=2.0, backoff="fixed")

        assert [policy.delay_for(n) for n in (1, 2, 3)] == [2.0, 2.0, 2.0]

    @pytest.mark.parametrize("kwargs", [
        {"max_attempts": 0},
        {"base_delay": -1},
        {"backoff": "exponential"},
    ])
    def test_invalid_settings_rejected(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


class TestIsRetryableException:
    """Test exception classification"""

    def test_retryable_access_error(self):
        assert is_retryable_exception(AccessError("503")) is True

    def test_non_retryable_access_error(self):
        assert is_retryable_exception(AccessError("401", retryable=False)) is False

    def test_not_found_is_never_retried(self):
        assert is_retryable_exception(NotFoundError("x")) is False

    def test_timeouts_and_connection_errors_are_transient(self):
        assert is_retryable_exception(TimeoutError()) is True
        assert is_retryable_exception(ConnectionError()) is True

    def test_other_errors_are_not_retried(self):
        assert is_retryable_exception(ValueError("bad")) is False
        assert is_retryable_exception(KeyError("k")) is False


class TestCallWithRetry:
    """Test call_with_retry"""

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self, no_sleep):
        func = AsyncMock(return_value="ok")

        result, attempts = await call_with_retry(func, "arg", policy=RetryPolicy(), key="v")

        assert result == "ok"
        assert attempts == 1
        func.assert_awaited_once_with("arg", key="v")
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_success_after_transient_failures(self, no_sleep):
        func = AsyncMock(side_effect=[AccessError("503"), ConnectionError("reset"), "ok"])

        result, attempts = await call_with_retry(func, policy=RetryPolicy(base_delay=1.0))

        assert result == "ok"
        assert attempts == 3
        assert [c.args[0] for c in no_sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhaustion_raises_with_last_error(self, no_sleep):
        errors = [AccessError("first"), AccessError("second"), AccessError("third")]
        func = AsyncMock(side_effect=errors)

        with pytest.raises(RetryExhausted) as exc_info:
            await call_with_retry(func, policy=RetryPolicy(max_attempts=3))

        assert exc_info.value.attempts == 3
        assert exc_info.value.last_error is errors[2]
        assert func.await_count == 3
        assert no_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_error_raised_immediately(self, no_sleep):
        func = AsyncMock(side_effect=NotFoundError("x", "deployed"))

        with pytest.raises(NotFoundError):
            await call_with_retry(func, policy=RetryPolicy(max_attempts=5))

        assert func.await_count == 1
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_attempt_policy_does_not_retry(self, no_sleep):
        func = AsyncMock(side_effect=AccessError("503"))

        with pytest.raises(RetryExhausted) as exc_info:
            await call_with_retry(func, policy=RetryPolicy(max_attempts=1))

        assert exc_info.value.attempts == 1
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_counts_as_transient_failure(self):
        calls = []

        async def slow_then_fast():
            calls.append(1)
            if len(calls) == 1:
                await asyncio.sleep(1)
            return "done"

        policy = RetryPolicy(max_attempts=2, base_delay=0.0, timeout=0.01)
        result, attempts = await call_with_retry(slow_then_fast, policy=policy)

        assert result == "done"
        assert attempts == 2

    @pytest.mark.asyncio
    async def test_timeout_on_every_attempt_exhausts(self):
        async def never_finishes():
            await asyncio.sleep(1)

        policy = RetryPolicy(max_attempts=2, base_delay=0.0, timeout=0.01)

        with pytest.raises(RetryExhausted) as exc_info:
            await call_with_retry(never_finishes, policy=policy)

        assert isinstance(exc_info.value.last_error, TimeoutError)

    @pytest.mark.asyncio
    async def test_on_retry_callback_receives_attempt_and_delay(self, no_sleep):
        func = AsyncMock(side_effect=[AccessError("503"), "ok"])
        callback = Mock()

        await call_with_retry(func, policy=RetryPolicy(base_delay=0.5), on_retry=callback)

        callback.assert_called_once()
        attempt, error, delay = callback.call_args.args
        assert attempt == 1
        assert isinstance(error, AccessError)
        assert delay == 0.5

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_break_retry(self, no_sleep):
        func = AsyncMock(side_effect=[AccessError("503"), "ok"])
        callback = Mock(side_effect=RuntimeError("callback failed"))

        result, attempts = await call_with_retry(func, policy=RetryPolicy(), on_retry=callback)

        assert result == "ok"
        assert attempts == 2

    @pytest.mark.asyncio
    async def test_custom_classifier(self, no_sleep):
        func = AsyncMock(side_effect=[ValueError("flaky"), "ok"])

        result, attempts = await call_with_retry(
            func, policy=RetryPolicy(), is_retryable=lambda e: isinstance(e, ValueError)
        )

        assert result == "ok"
        assert attempts == 2
