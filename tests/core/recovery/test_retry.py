"""
Tests for the retry policy and error hierarchy.
"""

import httpx
import pytest
from unittest.mock import AsyncMock

from clawkalash.core.recovery import (
    GasEstimationError,
    RateLimitedError,
    RecoverableError,
    RetryConfig,
    RetryStrategy,
    SettlementCancelledError,
    SettlementExpiredError,
    SettlementRefundedError,
    SubmissionError,
    TransientNetworkError,
    UnrecoverableError,
    ValidationError,
    with_retry,
)
from clawkalash.core.recovery.errors import ErrorCategory


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


# =============================================================================
# Error Hierarchy Tests
# =============================================================================

class TestErrorHierarchy:
    """Tests for error classification."""

    def test_recoverable_errors(self):
        assert isinstance(RateLimitedError(), RecoverableError)
        assert isinstance(TransientNetworkError(), RecoverableError)
        assert RateLimitedError().context.recoverable is True

    def test_unrecoverable_errors(self):
        error = ValidationError("bad quote", field_name="txData.value")
        assert isinstance(error, UnrecoverableError)
        assert error.context.recoverable is False
        assert error.context.details == {"field": "txData.value"}

    def test_rate_limited_carries_retry_after(self):
        error = RateLimitedError(retry_after=12.0, provider="bungee")
        assert error.category == ErrorCategory.RATE_LIMIT
        assert error.retry_after == 12.0
        assert error.context.provider == "bungee"

    def test_gas_estimation_message(self):
        error = GasEstimationError("execution reverted", chain_id=8453)
        assert str(error) == "Transaction would fail. Reason: execution reverted"

    def test_submission_error_keeps_remote_message(self):
        error = SubmissionError("Invalid signature")
        assert str(error) == "Submit error: Invalid signature"
        assert error.remote_message == "Invalid signature"

    def test_settlement_failures_are_distinct(self):
        expired = SettlementExpiredError("0xabc", "https://socketscan.io/tx/0xabc")
        cancelled = SettlementCancelledError("0xabc")
        refunded = SettlementRefundedError("0xabc")

        assert str(expired) == "Request expired"
        assert str(cancelled) == "Request cancelled"
        assert str(refunded) == "Request refunded"
        assert not isinstance(refunded, SettlementExpiredError)
        assert expired.tracking_url == "https://socketscan.io/tx/0xabc"


# =============================================================================
# Retry Policy Tests
# =============================================================================

class TestRetryConfig:
    """Tests for backoff delays."""

    def test_linear_backoff(self):
        config = RetryConfig(max_attempts=3, delay_seconds=1.0)
        assert config.get_delay(0) == 1.0
        assert config.get_delay(1) == 2.0
        assert config.get_delay(2) == 3.0


class TestWithRetry:
    """Tests for with_retry."""

    @pytest.mark.asyncio
    async def test_fails_twice_then_succeeds(self):
        """Two transient failures then success: exactly three calls."""
        operation = AsyncMock(side_effect=[
            TransientNetworkError("boom"),
            RateLimitedError(),
            "ok",
        ])
        sleep = RecordingSleep()

        result = await with_retry(operation, attempts=3, delay_seconds=1.0, sleep=sleep)

        assert result == "ok"
        assert operation.call_count == 3
        assert sleep.calls == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_never_succeeds_raises_final_failure(self):
        final = TransientNetworkError("third")
        operation = AsyncMock(side_effect=[
            TransientNetworkError("first"),
            TransientNetworkError("second"),
            final,
        ])

        with pytest.raises(TransientNetworkError) as exc_info:
            await with_retry(operation, attempts=3, sleep=RecordingSleep())

        assert exc_info.value is final
        assert operation.call_count == 3

    @pytest.mark.asyncio
    async def test_respects_attempt_count(self):
        operation = AsyncMock(side_effect=TransientNetworkError("down"))

        with pytest.raises(TransientNetworkError):
            await with_retry(operation, attempts=5, sleep=RecordingSleep())

        assert operation.call_count == 5

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates_immediately(self):
        error = ValidationError("mismatch")
        operation = AsyncMock(side_effect=error)
        sleep = RecordingSleep()

        with pytest.raises(ValidationError) as exc_info:
            await with_retry(operation, attempts=3, sleep=sleep)

        assert exc_info.value is error
        assert operation.call_count == 1
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_plain_exceptions_are_not_retried(self):
        operation = AsyncMock(side_effect=KeyError("missing"))

        with pytest.raises(KeyError):
            await with_retry(operation, attempts=3, sleep=RecordingSleep())

        assert operation.call_count == 1

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(self):
        operation = AsyncMock(side_effect=[httpx.ConnectError("refused"), {"success": True}])

        result = await with_retry(operation, attempts=3, sleep=RecordingSleep())

        assert result == {"success": True}
        assert operation.call_count == 2

    @pytest.mark.asyncio
    async def test_retry_after_extends_delay(self):
        operation = AsyncMock(side_effect=[RateLimitedError(retry_after=10.0), "ok"])
        sleep = RecordingSleep()

        strategy = RetryStrategy(RetryConfig(max_attempts=2, delay_seconds=1.0), sleep=sleep)
        result = await strategy.execute(operation, "quote")

        assert result == "ok"
        assert sleep.calls == [10.0]
