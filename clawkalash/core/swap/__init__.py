"""
Swap Execution Module

Quote parsing and validation, allowance management, Permit2 signing,
submission and settlement polling, tied together by the execution router.
"""

from .approval import ApprovalManager, resolve_spender
from .models import (
    ApprovalDescriptor,
    ExecutionState,
    FlowKind,
    NativePayload,
    Quote,
    QuoteRequest,
    SettlementCode,
    SettlementStatus,
    SignedPayload,
    SwapOutcome,
    TokenMetadata,
    TokenSearchResult,
)
from .poller import StatusPoller, parse_status, tracking_url_for
from .quotes import build_quote_params, fetch_quote, parse_quote
from .router import ExecutionRouter
from .signer import LocalAccountSigner, SignedAuthorization, Signer, sign_permit
from .submission import SubmissionClient
from .tx_builder import PreparedTransaction, TransactionBuilder
from .validator import validate_native_payload, validate_quote, validate_signed_payload

__all__ = [
    # Router
    "ExecutionRouter",
    # Steps
    "ApprovalManager",
    "resolve_spender",
    "StatusPoller",
    "parse_status",
    "tracking_url_for",
    "SubmissionClient",
    "LocalAccountSigner",
    "SignedAuthorization",
    "Signer",
    "sign_permit",
    "validate_quote",
    "validate_native_payload",
    "validate_signed_payload",
    # Quotes
    "build_quote_params",
    "fetch_quote",
    "parse_quote",
    "PreparedTransaction",
    "TransactionBuilder",
    # Models
    "ApprovalDescriptor",
    "ExecutionState",
    "FlowKind",
    "NativePayload",
    "Quote",
    "QuoteRequest",
    "SettlementCode",
    "SettlementStatus",
    "SignedPayload",
    "SwapOutcome",
    "TokenMetadata",
    "TokenSearchResult",
]
