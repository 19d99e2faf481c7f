"""
Quote validation.

Proves a received quote matches the caller's requested token, amount and
chain. Must complete before anything is signed or sent.
"""

from typing import Any, Mapping

from ..chains import PERMIT2_ADDRESS, ZERO_ADDRESS
from ..recovery import ValidationError
from .models import FlowKind, NativePayload, Quote, SignedPayload


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} is not an integer amount: {value!r}", field_name)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f"{field_name} is not an integer amount: {value!r}", field_name)


def validate_native_payload(payload: NativePayload, expected_amount: int, expected_chain_id: int) -> None:
    if payload.value != expected_amount:
        raise ValidationError(
            f"txData.value ({payload.value}) does not match expected input amount ({expected_amount})",
            "txData.value",
        )
    if not payload.to or payload.to.lower() == ZERO_ADDRESS:
        raise ValidationError("txData.to is the zero address, refusing to send", "txData.to")
    if payload.chain_id is not None and payload.chain_id != expected_chain_id:
        raise ValidationError(
            f"txData.chainId ({payload.chain_id}) does not match origin chain ({expected_chain_id})",
            "txData.chainId",
        )


def validate_signed_payload(payload: SignedPayload, expected_token: str, expected_amount: int) -> None:
    verifying_contract = str(payload.domain.get("verifyingContract", ""))
    if verifying_contract.lower() != PERMIT2_ADDRESS.lower():
        raise ValidationError(
            f"Permit2 verifyingContract mismatch: expected {PERMIT2_ADDRESS}, got {verifying_contract}",
            "domain.verifyingContract",
        )

    # Some quote shapes omit `permitted`; when present it must match exactly
    permitted = payload.message.get("permitted")
    if permitted is None:
        return
    if not isinstance(permitted, Mapping):
        raise ValidationError(f"Permit2 permitted has unexpected shape: {permitted!r}", "permitted")

    amount = _as_int(permitted.get("amount"), "permitted.amount")
    if amount != expected_amount:
        raise ValidationError(
            f"Permit2 amount mismatch: expected {expected_amount}, got {permitted.get('amount')}",
            "permitted.amount",
        )
    token = str(permitted.get("token", ""))
    if token.lower() != expected_token.lower():
        raise ValidationError(
            f"Permit2 token mismatch: expected {expected_token}, got {token}",
            "permitted.token",
        )


def validate_quote(
    quote: Quote,
    expected_input_token: str,
    expected_input_amount: int,
    expected_origin_chain: int,
) -> None:
    """Raise ``ValidationError`` on any disagreement with the caller's intent."""
    if quote.flow_kind is FlowKind.NATIVE_TRANSFER:
        validate_native_payload(quote.native_payload, expected_input_amount, expected_origin_chain)
    elif quote.flow_kind is FlowKind.SIGNED_TRANSFER:
        validate_signed_payload(quote.signed_payload, expected_input_token, expected_input_amount)
    else:  # pragma: no cover - enum is closed
        raise ValidationError(f"Unknown flow kind: {quote.flow_kind}")
