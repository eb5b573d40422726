"""Unit tests for retry with exponential backoff."""

from unittest.mock import AsyncMock, patch

import pytest

from garbage_collector.clients.protocols import QueryIssuerError
from garbage_collector.collectors.test_session_collector import is_transient_query_error
from garbage_collector.utils.retry import calculate_backoff_delay, retry_async


class TestCalculateBackoffDelay:
    """Tests for the backoff schedule."""

    def test_delay_doubles_per_attempt(self):
        delays = [calculate_backoff_delay(n, 2.0, 100.0, jitter=False) for n in range(4)]
        assert delays == [2.0, 4.0, 8.0, 16.0]

    def test_delay_is_capped(self):
        assert calculate_backoff_delay(10, 2.0, 32.0, jitter=False) == 32.0

    def test_jitter_adds_at_most_a_quarter(self):
        for _ in range(50):
            delay = calculate_backoff_delay(1, 2.0, 32.0, jitter=True)
            assert 4.0 <= delay <= 5.0

    def test_zero_base_delay_has_no_jitter(self):
        assert calculate_backoff_delay(3, 0.0, 0.0, jitter=True) == 0.0


class TestRetryAsync:
    """Tests for retry_async."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        operation = AsyncMock(return_value="rows")

        result = await retry_async(operation, is_retryable=lambda e: True)

        assert result == "rows"
        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_retries_retryable_errors_until_success(self):
        operation = AsyncMock(
            side_effect=[QueryIssuerError("timeout", 408), QueryIssuerError("boom", 500), ["row"]]
        )

        with patch("garbage_collector.utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await retry_async(
                operation, is_retryable=is_transient_query_error, jitter=False
            )

        assert result == ["row"]
        assert operation.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_attempt_budget(self):
        operation = AsyncMock(side_effect=QueryIssuerError("gateway timeout", 504))

        with patch("garbage_collector.utils.retry.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(QueryIssuerError) as exc_info:
                await retry_async(operation, is_retryable=is_transient_query_error, max_attempts=5)

        assert exc_info.value.failure_code == 504
        assert operation.await_count == 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failure_code", [400, 401, 403, 404, None])
    async def test_non_retryable_errors_raise_after_one_attempt(self, failure_code):
        operation = AsyncMock(side_effect=QueryIssuerError("rejected", failure_code))

        with pytest.raises(QueryIssuerError):
            await retry_async(operation, is_retryable=is_transient_query_error)

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_other_exceptions_are_not_retried(self):
        operation = AsyncMock(side_effect=RuntimeError("bug"))

        with pytest.raises(RuntimeError):
            await retry_async(operation, is_retryable=is_transient_query_error)

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_rejects_empty_attempt_budget(self):
        with pytest.raises(ValueError):
            await retry_async(AsyncMock(), is_retryable=lambda e: True, max_attempts=0)
