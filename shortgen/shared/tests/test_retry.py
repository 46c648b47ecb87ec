"""
Tests for retry logic with exponential backoff.
"""

import logging
import pytest
from unittest.mock import AsyncMock, patch
from shortgen.shared.retry import backoff_delay, retry_with_backoff
from shortgen.shared.errors import MediaProbeError, RetryableError


@pytest.fixture
def no_sleep():
    """Replace asyncio.sleep so backoff delays are recorded instead of waited."""
    with patch("shortgen.shared.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


def test_backoff_delay_doubles():
    assert [backoff_delay(1, attempt) for attempt in range(4)] == [1, 2, 4, 8]
    assert backoff_delay(0.5, 2) == 2.0


def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError, match="max_attempts"):
        retry_with_backoff(max_attempts=0)


@pytest.mark.asyncio
async def test_retry_succeeds_on_first_attempt(no_sleep):
    """Test that function succeeds on first attempt."""
    call_count = 0

    @retry_with_backoff(max_attempts=3, base_delay=1)
    async def probe():
        nonlocal call_count
        call_count += 1
        return 12.0

    assert await probe() == 12.0
    assert call_count == 1
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_retry_succeeds_after_timeout(no_sleep):
    """Test that function succeeds after a transient failure."""
    call_count = 0

    @retry_with_backoff(max_attempts=3, base_delay=1)
    async def probe():
        nonlocal call_count
        call_count += 1
        if call_count < 2:
            raise RetryableError("ffprobe timeout after 10s")
        return 12.0

    assert await probe() == 12.0
    assert call_count == 2
    no_sleep.assert_awaited_once_with(1)


@pytest.mark.asyncio
async def test_retry_reraises_last_error(no_sleep):
    """Test that the last retryable error propagates after max attempts."""
    call_count = 0

    @retry_with_backoff(max_attempts=3, base_delay=2)
    async def always_times_out():
        nonlocal call_count
        call_count += 1
        raise RetryableError(f"timeout {call_count}")

    with pytest.raises(RetryableError, match="timeout 3"):
        await always_times_out()

    assert call_count == 3
    # No sleep after the final attempt
    assert [c.args[0] for c in no_sleep.await_args_list] == [2, 4]


@pytest.mark.asyncio
async def test_permanent_errors_are_not_retried(no_sleep):
    """Test that non-retryable errors propagate immediately."""
    call_count = 0

    @retry_with_backoff(max_attempts=3, base_delay=1)
    async def broken_probe():
        nonlocal call_count
        call_count += 1
        raise MediaProbeError("ffprobe returned an unparseable duration")

    with pytest.raises(MediaProbeError):
        await broken_probe()

    assert call_count == 1
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_retry_custom_retryable_exceptions(no_sleep):
    """Test that custom retryable exceptions work."""
    call_count = 0

    @retry_with_backoff(max_attempts=2, base_delay=1, retryable_exceptions=(ConnectionError,))
    async def flaky():
        nonlocal call_count
        call_count += 1
        if call_count < 2:
            raise ConnectionError("reset")
        return "ok"

    assert await flaky() == "ok"
    assert call_count == 2


def test_retry_sync_function():
    """Test that retry works with sync functions."""
    call_count = 0

    @retry_with_backoff(max_attempts=3, base_delay=0.5)
    def sync_function():
        nonlocal call_count
        call_count += 1
        if call_count < 3:
            raise RetryableError("Retry")
        return "success"

    with patch("shortgen.shared.retry.time.sleep") as mock_sleep:
        assert sync_function() == "success"

    assert call_count == 3
    assert [c.args[0] for c in mock_sleep.call_args_list] == [0.5, 1.0]


def test_retry_preserves_function_name():
    @retry_with_backoff()
    async def probe_duration():
        return 1.0

    assert probe_duration.__name__ == "probe_duration"


@pytest.mark.asyncio
async def test_retry_logs_attempts(caplog, no_sleep):
    """Test that retry attempts and final failure are logged."""
    caplog.set_level(logging.WARNING, logger="shortgen.shared.retry")

    @retry_with_backoff(max_attempts=2, base_delay=1)
    async def logged_function():
        raise RetryableError("Retry")

    with pytest.raises(RetryableError):
        await logged_function()

    log_messages = [record.getMessage() for record in caplog.records]
    assert any("Retry attempt 1/2" in msg for msg in log_messages)
    assert any("All 2 retry attempts failed" in msg for msg in log_messages)
