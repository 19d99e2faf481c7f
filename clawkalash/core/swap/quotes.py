"""Quote requests and parsing of the aggregator's auto-route response.

The flow discriminant is decided here, once. Downstream code switches on
``Quote.flow_kind`` and never probes optional payload fields.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ...config import settings
from ...providers.bungee import BungeeProvider
from ..chains import is_native_token
from ..recovery import QuoteError, with_retry
from .models import (
    ApprovalDescriptor,
    FlowKind,
    NativePayload,
    Quote,
    QuoteRequest,
    SignedPayload,
)

logger = logging.getLogger(__name__)


def parse_int_amount(value: Any, field_name: str) -> int:
    """Parse a wire integer such as an amount or chain id (decimal or 0x-hex string, or int)."""
    if isinstance(value, bool):
        raise QuoteError(f"{field_name} must be an integer amount, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                return int(text, 16)
            if text.isdigit():
                return int(text)
        except ValueError:
            pass
    raise QuoteError(f"{field_name} must be an integer amount, got {value!r}")


def build_quote_params(
    request: QuoteRequest,
    fee_taker_address: Optional[str] = None,
    fee_bps: Optional[str] = None,
) -> Dict[str, str]:
    """Query parameters for ``GET /api/v1/bungee/quote``."""
    return {
        "userAddress": request.user_address,
        "receiverAddress": request.receiver_address or request.user_address,
        "originChainId": str(request.origin_chain_id),
        "destinationChainId": str(request.destination_chain_id),
        "inputToken": request.input_token,
        "outputToken": request.output_token,
        "inputAmount": str(request.input_amount),
        "feeTakerAddress": fee_taker_address or settings.fee_taker_address,
        "feeBps": fee_bps or settings.fee_bps,
    }


def _parse_approval(raw: Optional[Dict[str, Any]]) -> Optional[ApprovalDescriptor]:
    if not raw or not raw.get("tokenAddress"):
        return None
    return ApprovalDescriptor(
        token_address=str(raw["tokenAddress"]),
        spender_address=str(raw.get("spenderAddress") or "0"),
        required_amount=parse_int_amount(raw.get("amount"), "approvalData.amount"),
    )


def parse_quote(
    data: Dict[str, Any],
    request: QuoteRequest,
    server_request_id: Optional[str] = None,
) -> Quote:
    """Turn a quote envelope into a ``Quote`` with a fixed flow kind."""
    suffix = f". server-req-id: {server_request_id}" if server_request_id else ""

    if not data.get("success"):
        raise QuoteError(f"Quote error: {data.get('message')}{suffix}", server_request_id)

    result = data.get("result")
    if not result:
        raise QuoteError(f"No result in quote response{suffix}", server_request_id)

    auto = result.get("autoRoute")
    if not auto:
        raise QuoteError(f"No autoRoute available{suffix}", server_request_id)

    output = auto.get("output") or {}
    output_amount = output.get("amount") or auto.get("outputAmount") or "0"

    common: Dict[str, Any] = {
        "quote_id": str(auto.get("quoteId") or ""),
        "request_type": str(auto.get("requestType") or ""),
        "input_token": request.input_token,
        "output_token": request.output_token,
        "input_amount": request.input_amount,
        "output_amount": parse_int_amount(output_amount, "outputAmount"),
        "origin_chain_id": request.origin_chain_id,
        "destination_chain_id": request.destination_chain_id,
        "server_request_id": server_request_id,
    }
    if not common["quote_id"]:
        raise QuoteError(f"Quote response is missing quoteId{suffix}", server_request_id)

    tx_data = auto.get("txData")
    if auto.get("userOp") == "tx" and tx_data:
        request_hash = auto.get("requestHash")
        if not request_hash:
            raise QuoteError(f"Missing requestHash for native token swap{suffix}", server_request_id)
        chain_id = tx_data.get("chainId")
        return Quote(
            flow_kind=FlowKind.NATIVE_TRANSFER,
            settlement_ref=str(request_hash),
            native_payload=NativePayload(
                to=str(tx_data.get("to") or ""),
                data=str(tx_data.get("data") or "0x"),
                value=parse_int_amount(tx_data.get("value", "0"), "txData.value"),
                chain_id=parse_int_amount(chain_id, "txData.chainId") if chain_id is not None else None,
            ),
            **common,
        )

    if is_native_token(request.input_token):
        raise QuoteError(
            f"Native token swap expected txData but none provided in quote{suffix}",
            server_request_id,
        )

    sign_typed_data = auto.get("signTypedData") or {}
    values = sign_typed_data.get("values")
    witness = (values or {}).get("witness")
    if not sign_typed_data.get("domain") or not values or not witness:
        raise QuoteError(f"Missing signTypedData or witness{suffix}", server_request_id)

    return Quote(
        flow_kind=FlowKind.SIGNED_TRANSFER,
        settlement_ref=auto.get("requestHash"),
        signed_payload=SignedPayload(
            domain=sign_typed_data["domain"],
            types=sign_typed_data.get("types") or {},
            message=values,
            witness=witness,
            primary_type=sign_typed_data.get("primaryType") or "PermitWitnessTransferFrom",
            approval=_parse_approval(auto.get("approvalData")),
        ),
        **common,
    )


async def fetch_quote(
    provider: BungeeProvider,
    request: QuoteRequest,
    attempts: Optional[int] = None,
    delay_seconds: Optional[float] = None,
) -> Quote:
    """Request a quote (retrying transient failures) and parse it."""
    params = build_quote_params(request)

    data, server_request_id = await with_retry(
        lambda: provider.quote(params),
        attempts=attempts or settings.retry_attempts,
        delay_seconds=settings.retry_delay_seconds if delay_seconds is None else delay_seconds,
        operation_name="bungee quote",
    )
    quote = parse_quote(data, request, server_request_id)
    logger.info(
        "Quote %s received: flow=%s output=%s",
        quote.quote_id,
        quote.flow_kind.value,
        quote.output_amount,
    )
    return quote
