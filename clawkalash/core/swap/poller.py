"""
Settlement status polling.

The status endpoint tolerates only a handful of calls per minute, so the
poller starts on a short interval to catch fast settlements and then widens
to a longer one.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from ...config import settings
from ...providers.bungee import BungeeProvider
from ..recovery import (
    PollTimeoutError,
    SettlementCancelledError,
    SettlementExpiredError,
    SettlementFailedError,
    SettlementRefundedError,
    StatusError,
    with_retry,
)
from .models import SettlementCode, SettlementStatus

logger = logging.getLogger(__name__)

FAILURE_ERRORS = {
    SettlementCode.EXPIRED: SettlementExpiredError,
    SettlementCode.CANCELLED: SettlementCancelledError,
    SettlementCode.REFUNDED: SettlementRefundedError,
}


def tracking_url_for(settlement_id: str, base_url: Optional[str] = None) -> str:
    return f"{(base_url or settings.tracking_base_url).rstrip('/')}/{settlement_id}"


def parse_status(data: Dict[str, Any], settlement_id: str) -> Optional[SettlementStatus]:
    """Map a status envelope to a ``SettlementStatus``.

    Returns None when the service has no record yet or reports a code outside
    1-7; both are treated as still pending.
    """
    if not data.get("success"):
        error = data.get("error")
        message = error.get("message") if isinstance(error, dict) else error or data.get("message")
        raise StatusError(str(message or data), settlement_id)

    results = data.get("result") or []
    if isinstance(results, dict):
        results = [results]
    if not results:
        return None

    row = results[0]
    try:
        code = SettlementCode(int(row.get("bungeeStatusCode")))
    except (TypeError, ValueError):
        return None

    return SettlementStatus(
        code=code,
        origin_tx_hash=(row.get("originData") or {}).get("txHash"),
        destination_tx_hash=(row.get("destinationData") or {}).get("txHash"),
        raw=row,
    )


class StatusPoller:
    """Polls a settlement id until it reaches a terminal code or the attempt ceiling."""

    def __init__(
        self,
        provider: BungeeProvider,
        max_attempts: Optional[int] = None,
        fast_attempts: Optional[int] = None,
        fast_interval: Optional[float] = None,
        slow_interval: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        tracking_base_url: Optional[str] = None,
    ):
        self.provider = provider
        self.max_attempts = max_attempts if max_attempts is not None else settings.poll_max_attempts
        self.fast_attempts = fast_attempts if fast_attempts is not None else settings.poll_fast_attempts
        self.fast_interval = fast_interval if fast_interval is not None else settings.poll_fast_interval_seconds
        self.slow_interval = slow_interval if slow_interval is not None else settings.poll_slow_interval_seconds
        self.tracking_base_url = tracking_base_url or settings.tracking_base_url
        self._sleep = sleep

    def interval_for(self, attempt: int) -> float:
        return self.fast_interval if attempt < self.fast_attempts else self.slow_interval

    async def get_status(self, settlement_id: str) -> Optional[SettlementStatus]:
        """One status query; transient failures go through the retry policy."""
        data = await with_retry(
            lambda: self.provider.status(settlement_id),
            attempts=settings.retry_attempts,
            delay_seconds=settings.retry_delay_seconds,
            operation_name="bungee status",
            sleep=self._sleep,
        )
        return parse_status(data, settlement_id)

    async def poll(self, settlement_id: str) -> SettlementStatus:
        """
        Block until ``settlement_id`` settles.

        Returns:
            The terminal success status (COMPLETED or COMPLETED_PARTIAL).

        Raises:
            SettlementExpiredError, SettlementCancelledError,
            SettlementRefundedError: Terminal failure codes, raised on first sight.
            PollTimeoutError: ``max_attempts`` queries without a terminal code.
        """
        tracking_url = tracking_url_for(settlement_id, self.tracking_base_url)
        elapsed = 0.0

        for attempt in range(self.max_attempts):
            delay = self.interval_for(attempt)
            await self._sleep(delay)
            elapsed += delay

            status = await self.get_status(settlement_id)
            if status is not None:
                if status.code.is_success:
                    logger.info(
                        "Settlement %s %s. Dest TX: %s",
                        settlement_id, status.label, status.destination_tx_hash,
                    )
                    return status
                if status.code.is_terminal:
                    error_cls = FAILURE_ERRORS.get(status.code, SettlementFailedError)
                    raise error_cls(settlement_id, tracking_url)

            label = status.label if status is not None else "UNKNOWN"
            logger.info("Still waiting (%s, %.0fs) - %s", label, elapsed, tracking_url)

        raise PollTimeoutError(settlement_id, tracking_url, self.max_attempts)
