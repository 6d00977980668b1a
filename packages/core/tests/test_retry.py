"""Tests for the retry/timeout wrapper."""

import asyncio

import pytest

from prism_core.errors import ConfigurationError, HttpError, ProviderTimeoutError
from prism_core.providers.retry import JITTER_MAX, JITTER_MIN, RetryOptions, sanitize_headers, with_retry


class _RecordingSleep:
    """Stands in for asyncio.sleep so tests record delays without waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def _flaky(failures, value="ok"):
    """Return an operation that raises on its first *failures* calls."""
    calls = {"count": 0}
    errors = []

    async def operation():
        calls["count"] += 1
        if calls["count"] <= failures:
            err = HttpError("stub", 503, f"attempt {calls['count']}")
            errors.append(err)
            raise err
        return value

    return operation, calls, errors


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_returns_immediately_on_success(self):
        op, calls, _ = _flaky(0)
        sleep = _RecordingSleep()
        assert await with_retry(op, sleep=sleep) == "ok"
        assert calls["count"] == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_succeeds_on_third_attempt(self):
        op, calls, _ = _flaky(2)
        sleep = _RecordingSleep()
        assert await with_retry(op, RetryOptions(max_retries=3), sleep=sleep) == "ok"
        assert calls["count"] == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_raises_last_error_after_exhaustion(self):
        options = RetryOptions(max_retries=3)
        op, calls, errors = _flaky(10)
        with pytest.raises(HttpError) as exc_info:
            await with_retry(op, options, sleep=_RecordingSleep())
        assert calls["count"] == options.max_retries + 1
        assert exc_info.value is errors[-1]
        assert "attempt 4" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_backoff_delays_within_jitter_bounds(self):
        options = RetryOptions(max_retries=3, base_delay=1.0, max_delay=30.0)
        op, _, _ = _flaky(10)
        sleep = _RecordingSleep()
        with pytest.raises(HttpError):
            await with_retry(op, options, sleep=sleep)

        assert len(sleep.delays) == 3
        for attempt, delay in enumerate(sleep.delays):
            expected = options.base_delay * 2**attempt
            assert expected * JITTER_MIN <= delay <= expected * JITTER_MAX

    @pytest.mark.asyncio
    async def test_delay_capped_at_max_delay(self):
        options = RetryOptions(max_retries=3, base_delay=20.0, max_delay=30.0)
        op, _, _ = _flaky(10)
        sleep = _RecordingSleep()
        with pytest.raises(HttpError):
            await with_retry(op, options, sleep=sleep)
        assert all(d <= 30.0 for d in sleep.delays)
        assert sleep.delays[-1] == 30.0

    @pytest.mark.asyncio
    async def test_zero_retries_means_single_attempt(self):
        op, calls, _ = _flaky(1)
        with pytest.raises(HttpError):
            await with_retry(op, RetryOptions(max_retries=0), sleep=_RecordingSleep())
        assert calls["count"] == 1

    @pytest.mark.asyncio
    async def test_exhaustion_logs_warning_per_retry_then_error(self, caplog):
        op, _, errors = _flaky(10)
        with caplog.at_level("WARNING", logger="prism_core.providers.retry"):
            with pytest.raises(HttpError) as exc_info:
                await with_retry(op, RetryOptions(max_retries=2), sleep=_RecordingSleep(), label="stub")
        assert exc_info.value is errors[-1]
        assert [r.levelname for r in caplog.records] == ["WARNING", "WARNING", "ERROR"]
        assert "failed after 3 attempts" in caplog.records[-1].getMessage()

    @pytest.mark.asyncio
    async def test_configuration_error_is_not_retried(self):
        calls = 0

        async def op():
            nonlocal calls
            calls += 1
            raise ConfigurationError("missing key")

        with pytest.raises(ConfigurationError):
            await with_retry(op, sleep=_RecordingSleep())
        assert calls == 1


class TestTimeout:
    @pytest.mark.asyncio
    async def test_slow_attempt_is_cancelled_and_reported(self):
        cancelled = []

        async def op():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise
            return "never"

        options = RetryOptions(max_retries=1, timeout=0.01)
        with pytest.raises(ProviderTimeoutError, match="timed out"):
            await with_retry(op, options, sleep=_RecordingSleep())
        # One cancellation per attempt: nothing is left running.
        assert cancelled == [True, True]

    @pytest.mark.asyncio
    async def test_timeout_then_success(self):
        calls = 0

        async def op():
            nonlocal calls
            calls += 1
            if calls == 1:
                await asyncio.sleep(10)
            return "fresh attempt"

        options = RetryOptions(max_retries=2, timeout=0.01)
        assert await with_retry(op, options, sleep=_RecordingSleep()) == "fresh attempt"
        assert calls == 2


class TestSanitizeHeaders:
    def test_redacts_credentials(self):
        headers = {
            "Authorization": "Bearer sk-123",
            "x-api-key": "sk-ant",
            "Content-Type": "application/json",
        }
        sanitized = sanitize_headers(headers)
        assert sanitized["Authorization"] == "[REDACTED]"
        assert sanitized["x-api-key"] == "[REDACTED]"
        assert sanitized["Content-Type"] == "application/json"

    def test_does_not_mutate_input(self):
        headers = {"Authorization": "Bearer sk-123"}
        sanitize_headers(headers)
        assert headers["Authorization"] == "Bearer sk-123"
