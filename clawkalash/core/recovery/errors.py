"""
Error Classification

Defines the typed failures raised by the swap core.
Errors are classified as recoverable (the retry utility may absorb them) or
unrecoverable (surfaced to the caller unchanged).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of errors for recovery decisions."""

    NETWORK = "network"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    TRANSACTION_REVERTED = "transaction_reverted"
    CONTRACT = "contract"
    PROVIDER = "provider"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    SETTLEMENT = "settlement"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Additional context about an error."""

    category: ErrorCategory = ErrorCategory.UNKNOWN
    recoverable: bool = True
    retry_after_seconds: Optional[float] = None
    suggested_action: Optional[str] = None
    provider: Optional[str] = None
    chain_id: Optional[int] = None
    tx_hash: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class SwapError(Exception):
    """Base class for every failure raised by the swap core."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.context = context or ErrorContext(category=category)


class RecoverableError(SwapError):
    """
    Base class for errors that can be retried.

    These errors are transient:
    - Rate limits
    - Connection failures
    - Non-JSON or 5xx responses from the remote service
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        retry_after: Optional[float] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message,
            category=category,
            context=context or ErrorContext(category=category, recoverable=True),
        )
        self.retry_after = retry_after


class UnrecoverableError(SwapError):
    """
    Base class for errors that are never retried.

    These errors need the caller to act:
    - Quote does not match the requested intent
    - Insufficient funds
    - Contract-level reverts
    - Terminal settlement outcomes
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message,
            category=category,
            context=context or ErrorContext(category=category, recoverable=False),
        )


# Specific recoverable errors
class RateLimitedError(RecoverableError):
    """Remote API answered HTTP 429."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        provider: Optional[str] = None,
    ):
        super().__init__(
            message,
            category=ErrorCategory.RATE_LIMIT,
            retry_after=retry_after,
            context=ErrorContext(
                category=ErrorCategory.RATE_LIMIT,
                recoverable=True,
                retry_after_seconds=retry_after,
                provider=provider,
                suggested_action="Wait before retrying",
            ),
        )


class TransientNetworkError(RecoverableError):
    """Connection failure, server error or unparseable response body."""

    def __init__(
        self,
        message: str = "Network error",
        provider: Optional[str] = None,
    ):
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            context=ErrorContext(
                category=ErrorCategory.NETWORK,
                recoverable=True,
                provider=provider,
                suggested_action="Retry with backoff",
            ),
        )


# Specific unrecoverable errors
class ValidationError(UnrecoverableError):
    """Quote fields disagree with the caller's intent."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            context=ErrorContext(
                category=ErrorCategory.VALIDATION,
                recoverable=False,
                suggested_action="Discard the quote and request a new one",
                details={"field": field_name} if field_name else {},
            ),
        )


class NotFoundError(UnrecoverableError):
    """Token symbol or address could not be resolved."""

    def __init__(self, message: str, query: Optional[str] = None, chain_id: Optional[int] = None):
        super().__init__(
            message,
            category=ErrorCategory.NOT_FOUND,
            context=ErrorContext(
                category=ErrorCategory.NOT_FOUND,
                recoverable=False,
                chain_id=chain_id,
                suggested_action="Pass the token address instead of a symbol",
                details={"query": query} if query else {},
            ),
        )


class QuoteError(UnrecoverableError):
    """Quote source rejected the request or returned an unusable route."""

    def __init__(self, message: str, server_request_id: Optional[str] = None):
        super().__init__(
            message,
            category=ErrorCategory.PROVIDER,
            context=ErrorContext(
                category=ErrorCategory.PROVIDER,
                recoverable=False,
                provider="bungee",
                details={"server_req_id": server_request_id} if server_request_id else {},
            ),
        )
        self.server_request_id = server_request_id


class ApprovalWouldFailError(UnrecoverableError):
    """Approval dry-run reverted; nothing was sent."""

    def __init__(self, reason: str, token_address: Optional[str] = None, spender: Optional[str] = None):
        super().__init__(
            f"Approval would fail. Reason: {reason}",
            category=ErrorCategory.CONTRACT,
            context=ErrorContext(
                category=ErrorCategory.CONTRACT,
                recoverable=False,
                suggested_action="Check the token contract and spender",
                details={"token": token_address, "spender": spender, "reason": reason},
            ),
        )
        self.reason = reason


class GasEstimationError(UnrecoverableError):
    """Gas estimation reverted: the transaction would fail on-chain."""

    def __init__(self, reason: str, chain_id: Optional[int] = None):
        super().__init__(
            f"Transaction would fail. Reason: {reason}",
            category=ErrorCategory.TRANSACTION_REVERTED,
            context=ErrorContext(
                category=ErrorCategory.TRANSACTION_REVERTED,
                recoverable=False,
                chain_id=chain_id,
                details={"reason": reason},
            ),
        )
        self.reason = reason


class InsufficientBalanceError(UnrecoverableError):
    """Wallet lacks the native balance for value plus gas."""

    def __init__(
        self,
        message: str = "Insufficient balance",
        required: Optional[str] = None,
        available: Optional[str] = None,
        token: Optional[str] = None,
    ):
        super().__init__(
            message,
            category=ErrorCategory.INSUFFICIENT_FUNDS,
            context=ErrorContext(
                category=ErrorCategory.INSUFFICIENT_FUNDS,
                recoverable=False,
                suggested_action="Add funds to wallet or reduce the swap amount",
                details={
                    "required": required,
                    "available": available,
                    "token": token,
                },
            ),
        )


class TransactionRevertedError(UnrecoverableError):
    """Transaction was mined but reverted."""

    def __init__(
        self,
        message: str = "Transaction reverted",
        tx_hash: Optional[str] = None,
        chain_id: Optional[int] = None,
    ):
        super().__init__(
            message,
            category=ErrorCategory.TRANSACTION_REVERTED,
            context=ErrorContext(
                category=ErrorCategory.TRANSACTION_REVERTED,
                recoverable=False,
                tx_hash=tx_hash,
                chain_id=chain_id,
            ),
        )


class ConfirmationTimeoutError(UnrecoverableError):
    """Transaction receipt did not appear in time."""

    def __init__(self, tx_hash: str, timeout_seconds: float, chain_id: Optional[int] = None):
        super().__init__(
            f"Transaction {tx_hash} not confirmed after {timeout_seconds:.0f}s",
            category=ErrorCategory.TIMEOUT,
            context=ErrorContext(
                category=ErrorCategory.TIMEOUT,
                recoverable=False,
                tx_hash=tx_hash,
                chain_id=chain_id,
                suggested_action="Check the transaction on a block explorer before retrying",
            ),
        )


class RpcError(UnrecoverableError):
    """JSON-RPC node returned an error object."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(
            message,
            category=ErrorCategory.CONTRACT,
            context=ErrorContext(
                category=ErrorCategory.CONTRACT,
                recoverable=False,
                details={"code": code, "data": data},
            ),
        )
        self.code = code
        self.data = data


class SubmissionError(UnrecoverableError):
    """Settlement service rejected the signed authorization."""

    def __init__(self, remote_message: str):
        super().__init__(
            f"Submit error: {remote_message}",
            category=ErrorCategory.PROVIDER,
            context=ErrorContext(
                category=ErrorCategory.PROVIDER,
                recoverable=False,
                provider="bungee",
                details={"remote_message": remote_message},
            ),
        )
        self.remote_message = remote_message


class StatusError(UnrecoverableError):
    """Status endpoint reported failure for a settlement query."""

    def __init__(self, remote_message: str, settlement_id: Optional[str] = None):
        super().__init__(
            f"Status error: {remote_message}",
            category=ErrorCategory.PROVIDER,
            context=ErrorContext(
                category=ErrorCategory.PROVIDER,
                recoverable=False,
                provider="bungee",
                details={"settlement_id": settlement_id},
            ),
        )


class SettlementFailedError(UnrecoverableError):
    """Settlement reached an unfavorable terminal status."""

    outcome = "failed"

    def __init__(self, settlement_id: str, tracking_url: Optional[str] = None):
        super().__init__(
            f"Request {self.outcome}",
            category=ErrorCategory.SETTLEMENT,
            context=ErrorContext(
                category=ErrorCategory.SETTLEMENT,
                recoverable=False,
                details={"settlement_id": settlement_id, "tracking_url": tracking_url},
            ),
        )
        self.settlement_id = settlement_id
        self.tracking_url = tracking_url


class SettlementExpiredError(SettlementFailedError):
    outcome = "expired"


class SettlementCancelledError(SettlementFailedError):
    outcome = "cancelled"


class SettlementRefundedError(SettlementFailedError):
    """Funds were returned to the sender; no further action is needed."""

    outcome = "refunded"


class PollTimeoutError(UnrecoverableError):
    """No terminal status within the attempt ceiling.

    The swap may still complete remotely; track it with ``tracking_url``.
    """

    def __init__(self, settlement_id: str, tracking_url: str, attempts: int):
        super().__init__(
            f"Polling timed out after {attempts} attempts. Track manually: {tracking_url}",
            category=ErrorCategory.TIMEOUT,
            context=ErrorContext(
                category=ErrorCategory.TIMEOUT,
                recoverable=False,
                suggested_action="Track the settlement id; it may still complete",
                details={"settlement_id": settlement_id, "tracking_url": tracking_url},
            ),
        )
        self.settlement_id = settlement_id
        self.tracking_url = tracking_url
        self.attempts = attempts


class DuplicateExecutionError(UnrecoverableError):
    """The same quote was handed to the router twice."""

    def __init__(self, quote_id: str):
        super().__init__(
            f"Quote {quote_id} was already executed",
            category=ErrorCategory.VALIDATION,
            context=ErrorContext(
                category=ErrorCategory.VALIDATION,
                recoverable=False,
                suggested_action="Request a fresh quote",
                details={"quote_id": quote_id},
            ),
        )
        self.quote_id = quote_id


class TokenSearchError(UnrecoverableError):
    """Token search endpoint answered without usable results."""

    def __init__(self, message: str, query: Optional[str] = None):
        super().__init__(
            message,
            category=ErrorCategory.PROVIDER,
            context=ErrorContext(
                category=ErrorCategory.PROVIDER,
                recoverable=False,
                provider="bungee",
                details={"query": query} if query else {},
            ),
        )
