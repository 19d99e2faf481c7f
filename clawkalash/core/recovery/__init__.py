"""
Error Recovery Module

Typed failures for the swap core and the retry policy used by every
network call.
"""

from .errors import (
    ApprovalWouldFailError,
    ConfirmationTimeoutError,
    DuplicateExecutionError,
    ErrorCategory,
    ErrorContext,
    GasEstimationError,
    InsufficientBalanceError,
    NotFoundError,
    PollTimeoutError,
    QuoteError,
    RateLimitedError,
    RecoverableError,
    RpcError,
    SettlementCancelledError,
    SettlementExpiredError,
    SettlementFailedError,
    SettlementRefundedError,
    StatusError,
    SubmissionError,
    SwapError,
    TokenSearchError,
    TransactionRevertedError,
    TransientNetworkError,
    UnrecoverableError,
    ValidationError,
)
from .strategies import RETRYABLE_ERRORS, RetryConfig, RetryStrategy, with_retry

__all__ = [
    # Errors
    "SwapError",
    "RecoverableError",
    "UnrecoverableError",
    "ErrorCategory",
    "ErrorContext",
    "RateLimitedError",
    "TransientNetworkError",
    "ValidationError",
    "NotFoundError",
    "TokenSearchError",
    "QuoteError",
    "ApprovalWouldFailError",
    "GasEstimationError",
    "InsufficientBalanceError",
    "TransactionRevertedError",
    "ConfirmationTimeoutError",
    "RpcError",
    "SubmissionError",
    "StatusError",
    "SettlementFailedError",
    "SettlementExpiredError",
    "SettlementCancelledError",
    "SettlementRefundedError",
    "PollTimeoutError",
    "DuplicateExecutionError",
    # Retry
    "RETRYABLE_ERRORS",
    "RetryConfig",
    "RetryStrategy",
    "with_retry",
]
