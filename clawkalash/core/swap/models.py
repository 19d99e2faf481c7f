"""Typed models used by the swap execution core."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional


class FlowKind(str, Enum):
    """Execution path selected when the quote is parsed."""

    NATIVE_TRANSFER = "native_transfer"   # direct on-chain tx built by the quote source
    SIGNED_TRANSFER = "signed_transfer"   # Permit2 witness signature, redeemed off-chain


class SettlementCode(IntEnum):
    """Bungee status codes (``bungeeStatusCode``)."""

    PENDING = 1
    IN_PROGRESS = 2
    COMPLETED = 3
    COMPLETED_PARTIAL = 4
    EXPIRED = 5
    CANCELLED = 6
    REFUNDED = 7

    @property
    def is_terminal(self) -> bool:
        return self not in (SettlementCode.PENDING, SettlementCode.IN_PROGRESS)

    @property
    def is_success(self) -> bool:
        return self in (SettlementCode.COMPLETED, SettlementCode.COMPLETED_PARTIAL)


STATUS_LABELS: Dict[SettlementCode, str] = {
    SettlementCode.PENDING: "PENDING",
    SettlementCode.IN_PROGRESS: "IN PROGRESS",
    SettlementCode.COMPLETED: "COMPLETED",
    SettlementCode.COMPLETED_PARTIAL: "COMPLETED (partial)",
    SettlementCode.EXPIRED: "EXPIRED",
    SettlementCode.CANCELLED: "CANCELLED",
    SettlementCode.REFUNDED: "REFUNDED",
}


class ExecutionState(str, Enum):
    """Router lifecycle."""

    QUOTE_RECEIVED = "quote_received"
    VALIDATING = "validating"
    # Native transfer branch
    ESTIMATING_GAS = "estimating_gas"
    CHECKING_BALANCE = "checking_balance"
    SENDING = "sending"
    CONFIRMING = "confirming"
    # Signed transfer branch
    CHECKING_APPROVAL = "checking_approval"
    APPROVING = "approving"
    SIGNING = "signing"
    SUBMITTING = "submitting"
    # Shared tail
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class TokenMetadata:
    """Canonical token description. Immutable once resolved."""

    chain_id: int
    address: str
    symbol: str
    name: str
    decimals: int
    is_verified: bool = False
    is_shortlisted: bool = False
    low_confidence: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
            raise ValueError(f"decimals must be an integer, got {self.decimals!r}")
        if not 0 <= self.decimals <= 255:
            raise ValueError(f"decimals out of range: {self.decimals}")

    def same_address(self, other: str) -> bool:
        return self.address.lower() == other.lower()


@dataclass(frozen=True)
class TokenSearchResult:
    """A row from the token search endpoint."""

    chain_id: int
    address: str
    symbol: str
    name: str
    decimals: int
    is_verified: bool = False
    is_shortlisted: bool = False

    @property
    def trust_score(self) -> int:
        return (2 if self.is_shortlisted else 0) + (1 if self.is_verified else 0)

    @classmethod
    def from_api(cls, row: Dict[str, Any]) -> "TokenSearchResult":
        return cls(
            chain_id=int(row["chainId"]),
            address=str(row["address"]),
            symbol=str(row.get("symbol") or ""),
            name=str(row.get("name") or row.get("symbol") or ""),
            decimals=int(row.get("decimals", 18)),
            is_verified=bool(row.get("isVerified", False)),
            is_shortlisted=bool(row.get("isShortListed", row.get("isShortlisted", False))),
        )

    def to_metadata(self, **overrides: Any) -> TokenMetadata:
        values = {
            "chain_id": self.chain_id,
            "address": self.address,
            "symbol": self.symbol,
            "name": self.name,
            "decimals": self.decimals,
            "is_verified": self.is_verified,
            "is_shortlisted": self.is_shortlisted,
        }
        values.update(overrides)
        return TokenMetadata(**values)


@dataclass(frozen=True)
class SearchCacheEntry:
    query: str
    results: List[TokenSearchResult]
    fetched_at: float


@dataclass(frozen=True)
class ApprovalDescriptor:
    """Spend allowance a signed-transfer quote needs before signing."""

    token_address: str
    spender_address: str
    required_amount: int


@dataclass(frozen=True)
class NativePayload:
    to: str
    data: str
    value: int
    chain_id: Optional[int] = None


@dataclass(frozen=True)
class SignedPayload:
    """EIP-712 payload forwarded untouched from the quote to the signer."""

    domain: Dict[str, Any]
    types: Dict[str, Any]
    message: Dict[str, Any]
    witness: Dict[str, Any]
    primary_type: str = "PermitWitnessTransferFrom"
    approval: Optional[ApprovalDescriptor] = None


@dataclass
class QuoteRequest:
    """Caller intent used to request and later validate a quote."""

    user_address: str
    origin_chain_id: int
    destination_chain_id: int
    input_token: str
    output_token: str
    input_amount: int
    receiver_address: Optional[str] = None


@dataclass(frozen=True)
class Quote:
    """A route from the quote source; consumed by exactly one router run."""

    quote_id: str
    flow_kind: FlowKind
    request_type: str
    input_token: str
    output_token: str
    input_amount: int
    output_amount: int
    origin_chain_id: int
    destination_chain_id: int
    settlement_ref: Optional[str] = None
    native_payload: Optional[NativePayload] = None
    signed_payload: Optional[SignedPayload] = None
    server_request_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.flow_kind is FlowKind.NATIVE_TRANSFER:
            if self.native_payload is None or self.signed_payload is not None:
                raise ValueError("native transfer quote must carry only a native payload")
        elif self.flow_kind is FlowKind.SIGNED_TRANSFER:
            if self.signed_payload is None or self.native_payload is not None:
                raise ValueError("signed transfer quote must carry only a signed payload")


@dataclass(frozen=True)
class SettlementStatus:
    code: SettlementCode
    origin_tx_hash: Optional[str] = None
    destination_tx_hash: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def label(self) -> str:
        return STATUS_LABELS.get(self.code, "UNKNOWN")


@dataclass
class SwapOutcome:
    """Final result of one router run."""

    settlement_id: str
    status: SettlementStatus
    flow_kind: FlowKind
    origin_tx_hash: Optional[str] = None
    approval_tx_hash: Optional[str] = None
    tracking_url: Optional[str] = None
