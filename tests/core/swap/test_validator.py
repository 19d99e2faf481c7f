"""
Tests for quote validation.

A quote must match the caller's token, amount and chain exactly before
anything is signed or sent.
"""

import pytest

from clawkalash.core.chains import NATIVE_TOKEN_ADDRESS, PERMIT2_ADDRESS, ZERO_ADDRESS
from clawkalash.core.recovery import ValidationError
from clawkalash.core.swap.models import FlowKind, NativePayload, Quote, SignedPayload
from clawkalash.core.swap.validator import (
    validate_native_payload,
    validate_quote,
    validate_signed_payload,
)


USDC_BASE = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
SETTLEMENT_CONTRACT = "0x3a23F943181408EAC424116Af7b7790c94Cb97a5"


def signed_payload(verifying_contract=PERMIT2_ADDRESS, permitted=None):
    message = {"nonce": "1", "witness": {"w": 1}}
    if permitted is not None:
        message["permitted"] = permitted
    return SignedPayload(
        domain={"name": "Permit2", "chainId": 8453, "verifyingContract": verifying_contract},
        types={},
        message=message,
        witness={"w": 1},
    )


def native_quote(input_amount, value):
    return Quote(
        quote_id="q1",
        flow_kind=FlowKind.NATIVE_TRANSFER,
        request_type="SINGLE_OUTPUT_REQUEST",
        input_token=NATIVE_TOKEN_ADDRESS,
        output_token=USDC_BASE,
        input_amount=input_amount,
        output_amount=1,
        origin_chain_id=8453,
        destination_chain_id=8453,
        settlement_ref="0xhash",
        native_payload=NativePayload(to=SETTLEMENT_CONTRACT, data="0x", value=value, chain_id=8453),
    )


# =============================================================================
# Native Flow
# =============================================================================

class TestNativeValidation:
    def test_exact_match_passes(self):
        payload = NativePayload(to=SETTLEMENT_CONTRACT, data="0x", value=10**15, chain_id=8453)
        validate_native_payload(payload, 10**15, 8453)

    @pytest.mark.parametrize("delta", [-1, 1])
    def test_off_by_one_is_rejected(self, delta):
        payload = NativePayload(to=SETTLEMENT_CONTRACT, data="0x", value=10**18 + delta)

        with pytest.raises(ValidationError, match="txData.value"):
            validate_native_payload(payload, 10**18, 8453)

    def test_scenario_half_value_is_rejected(self):
        """inputAmount 2000000000000000 against value 1000000000000000."""
        quote = native_quote(input_amount=2000000000000000, value=1000000000000000)

        with pytest.raises(ValidationError):
            validate_quote(quote, NATIVE_TOKEN_ADDRESS, 2000000000000000, 8453)

    def test_zero_destination_is_rejected(self):
        payload = NativePayload(to=ZERO_ADDRESS, data="0x", value=5)

        with pytest.raises(ValidationError, match="zero address"):
            validate_native_payload(payload, 5, 8453)

    def test_chain_mismatch_is_rejected(self):
        payload = NativePayload(to=SETTLEMENT_CONTRACT, data="0x", value=5, chain_id=1)

        with pytest.raises(ValidationError, match="chainId"):
            validate_native_payload(payload, 5, 8453)

    def test_missing_chain_id_is_tolerated(self):
        payload = NativePayload(to=SETTLEMENT_CONTRACT, data="0x", value=5, chain_id=None)
        validate_native_payload(payload, 5, 8453)


# =============================================================================
# Signed Flow
# =============================================================================

class TestSignedValidation:
    def test_valid_payload_passes(self):
        payload = signed_payload(permitted={"token": USDC_BASE, "amount": "1000000"})
        validate_signed_payload(payload, USDC_BASE, 1000000)

    def test_verifying_contract_compared_case_insensitively(self):
        payload = signed_payload(verifying_contract=PERMIT2_ADDRESS.lower())
        validate_signed_payload(payload, USDC_BASE, 1000000)

    def test_wrong_verifying_contract_is_rejected(self):
        payload = signed_payload(verifying_contract="0x000000000022D473030F116dDEE9F6B43aC78BA4")

        with pytest.raises(ValidationError, match="verifyingContract"):
            validate_signed_payload(payload, USDC_BASE, 1000000)

    def test_missing_permitted_is_tolerated(self):
        validate_signed_payload(signed_payload(), USDC_BASE, 1000000)

    def test_permitted_amount_mismatch(self):
        payload = signed_payload(permitted={"token": USDC_BASE, "amount": "1000001"})

        with pytest.raises(ValidationError, match="amount mismatch"):
            validate_signed_payload(payload, USDC_BASE, 1000000)

    def test_permitted_token_compared_case_insensitively(self):
        payload = signed_payload(permitted={"token": USDC_BASE.lower(), "amount": 1000000})
        validate_signed_payload(payload, USDC_BASE.upper().replace("0X", "0x"), 1000000)

    def test_permitted_token_mismatch(self):
        payload = signed_payload(permitted={"token": SETTLEMENT_CONTRACT, "amount": "1000000"})

        with pytest.raises(ValidationError, match="token mismatch"):
            validate_signed_payload(payload, USDC_BASE, 1000000)


class TestQuoteInvariants:
    def test_quote_requires_payload_matching_flow(self):
        with pytest.raises(ValueError):
            Quote(
                quote_id="q",
                flow_kind=FlowKind.SIGNED_TRANSFER,
                request_type="",
                input_token=USDC_BASE,
                output_token=USDC_BASE,
                input_amount=1,
                output_amount=1,
                origin_chain_id=8453,
                destination_chain_id=8453,
                native_payload=NativePayload(to=SETTLEMENT_CONTRACT, data="0x", value=1),
            )
