"""
Retry policy shared by every network call.

Only the explicitly retryable subset of failures is absorbed; everything else
propagates immediately and unchanged.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Coroutine, Optional, Tuple, Type, TypeVar

import httpx

from .errors import RecoverableError

T = TypeVar("T")

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (RecoverableError, httpx.TransportError)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    delay_seconds: float = 1.0

    def get_delay(self, attempt: int) -> float:
        """Linear backoff: delay grows with each failed attempt (0-based)."""
        return self.delay_seconds * (attempt + 1)


class RetryStrategy:
    """
    Retries transient failures up to ``max_attempts`` times.

    Rate-limit errors that carry ``retry_after`` wait at least that long.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or RetryConfig()
        self._sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    async def execute(
        self,
        operation: Callable[[], Coroutine[Any, Any, T]],
        operation_name: str = "operation",
    ) -> T:
        attempts = max(1, self.config.max_attempts)

        for attempt in range(attempts):
            try:
                return await operation()
            except RETRYABLE_ERRORS as e:
                if not self.should_retry(e, attempt):
                    self.logger.error(
                        "%s failed after %d attempts: %s", operation_name, attempt + 1, e
                    )
                    raise

                delay = self._get_delay(e, attempt)
                self.logger.warning(
                    "%s attempt %d/%d failed: %s. Retrying in %.1fs",
                    operation_name, attempt + 1, attempts, e, delay,
                )
                await self._sleep(delay)

        raise RuntimeError("unreachable")  # pragma: no cover

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        if attempt >= self.config.max_attempts - 1:
            return False
        return isinstance(error, RETRYABLE_ERRORS)

    def _get_delay(self, error: BaseException, attempt: int) -> float:
        delay = self.config.get_delay(attempt)
        if isinstance(error, RecoverableError) and error.retry_after:
            return max(delay, error.retry_after)
        return delay


async def with_retry(
    operation: Callable[[], Coroutine[Any, Any, T]],
    attempts: int = 3,
    delay_seconds: float = 1.0,
    operation_name: str = "operation",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run ``operation`` with the default linear-backoff retry policy."""
    strategy = RetryStrategy(
        RetryConfig(max_attempts=attempts, delay_seconds=delay_seconds),
        sleep=sleep,
        logger=logger,
    )
    return await strategy.execute(operation, operation_name)
