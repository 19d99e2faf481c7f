"""
Tests for quote parameters and auto-route parsing.
"""

import copy

import pytest
from unittest.mock import AsyncMock, MagicMock

from clawkalash.core.chains import NATIVE_TOKEN_ADDRESS, PERMIT2_ADDRESS
from clawkalash.core.recovery import QuoteError
from clawkalash.core.swap.models import FlowKind, QuoteRequest
from clawkalash.core.swap.quotes import build_quote_params, fetch_quote, parse_int_amount, parse_quote


USER = "0x50ac5CFcc81BB0872e85255D7079F8a529345D16"
USDC_BASE = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
SETTLEMENT_CONTRACT = "0x3a23F943181408EAC424116Af7b7790c94Cb97a5"


def native_request(amount=2000000000000000):
    return QuoteRequest(
        user_address=USER,
        origin_chain_id=8453,
        destination_chain_id=42161,
        input_token=NATIVE_TOKEN_ADDRESS,
        output_token=USDC_BASE,
        input_amount=amount,
    )


def erc20_request(amount=1000000):
    return QuoteRequest(
        user_address=USER,
        origin_chain_id=8453,
        destination_chain_id=42161,
        input_token=USDC_BASE,
        output_token=NATIVE_TOKEN_ADDRESS,
        input_amount=amount,
    )


NATIVE_RESPONSE = {
    "success": True,
    "result": {
        "autoRoute": {
            "quoteId": "q-native",
            "requestType": "SINGLE_OUTPUT_REQUEST",
            "userOp": "tx",
            "requestHash": "0xrequesthash",
            "output": {"amount": "4950000"},
            "txData": {
                "to": SETTLEMENT_CONTRACT,
                "data": "0xdeadbeef",
                "value": "2000000000000000",
                "chainId": 8453,
            },
        }
    },
}

SIGNED_RESPONSE = {
    "success": True,
    "result": {
        "autoRoute": {
            "quoteId": "q-permit",
            "requestType": "SINGLE_OUTPUT_REQUEST",
            "userOp": "sign",
            "outputAmount": "400000000000000",
            "approvalData": {
                "tokenAddress": USDC_BASE,
                "spenderAddress": "0",
                "amount": "1000000",
            },
            "signTypedData": {
                "domain": {"name": "Permit2", "chainId": 8453, "verifyingContract": PERMIT2_ADDRESS},
                "types": {"PermitWitnessTransferFrom": [{"name": "permitted", "type": "TokenPermissions"}]},
                "values": {
                    "permitted": {"token": USDC_BASE, "amount": "1000000"},
                    "nonce": "1",
                    "deadline": "1700000000",
                    "witness": {"basicReq": {"originChainId": 8453}},
                },
            },
        }
    },
}


# =============================================================================
# Parameters
# =============================================================================

class TestBuildQuoteParams:
    def test_defaults(self):
        params = build_quote_params(native_request())

        assert params["receiverAddress"] == USER
        assert params["originChainId"] == "8453"
        assert params["inputAmount"] == "2000000000000000"
        assert params["feeTakerAddress"] == "0x02Bc8c352b58d929Cc3D60545511872c85F30650"
        assert params["feeBps"] == "20"

    def test_explicit_receiver_and_fee(self):
        request = native_request()
        request.receiver_address = "0x000000000000000000000000000000000000dEaD"
        params = build_quote_params(request, fee_taker_address="0xfee", fee_bps="5")

        assert params["receiverAddress"] == "0x000000000000000000000000000000000000dEaD"
        assert params["feeTakerAddress"] == "0xfee"
        assert params["feeBps"] == "5"


class TestParseIntAmount:
    def test_accepts_decimal_and_hex_strings(self):
        assert parse_int_amount("1000000000000000000000", "x") == 10**21
        assert parse_int_amount("0x10", "x") == 16
        assert parse_int_amount(7, "x") == 7

    @pytest.mark.parametrize("value", [1.5, True, "1.5", "", None, "-1"])
    def test_rejects_non_integers(self, value):
        with pytest.raises(QuoteError):
            parse_int_amount(value, "amount")


# =============================================================================
# Flow Selection
# =============================================================================

class TestParseQuote:
    def test_native_flow(self):
        quote = parse_quote(NATIVE_RESPONSE, native_request(), "req-1")

        assert quote.flow_kind is FlowKind.NATIVE_TRANSFER
        assert quote.settlement_ref == "0xrequesthash"
        assert quote.native_payload.value == 2000000000000000
        assert quote.native_payload.chain_id == 8453
        assert quote.output_amount == 4950000
        assert quote.signed_payload is None

    def test_signed_flow(self):
        quote = parse_quote(SIGNED_RESPONSE, erc20_request())

        assert quote.flow_kind is FlowKind.SIGNED_TRANSFER
        assert quote.native_payload is None
        assert quote.signed_payload.witness == {"basicReq": {"originChainId": 8453}}
        assert quote.signed_payload.approval.spender_address == "0"
        assert quote.signed_payload.approval.required_amount == 1000000
        assert quote.output_amount == 400000000000000

    def test_unsuccessful_quote_includes_server_request_id(self):
        with pytest.raises(QuoteError) as exc_info:
            parse_quote({"success": False, "message": "No routes"}, erc20_request(), "abc-123")

        assert str(exc_info.value) == "Quote error: No routes. server-req-id: abc-123"
        assert exc_info.value.server_request_id == "abc-123"

    def test_missing_auto_route(self):
        with pytest.raises(QuoteError, match="No autoRoute"):
            parse_quote({"success": True, "result": {"manualRoutes": []}}, erc20_request())

    def test_native_input_without_tx_data(self):
        data = copy.deepcopy(NATIVE_RESPONSE)
        del data["result"]["autoRoute"]["txData"]

        with pytest.raises(QuoteError, match="expected txData"):
            parse_quote(data, native_request())

    def test_native_flow_requires_request_hash(self):
        data = copy.deepcopy(NATIVE_RESPONSE)
        del data["result"]["autoRoute"]["requestHash"]

        with pytest.raises(QuoteError, match="requestHash"):
            parse_quote(data, native_request())

    def test_native_flow_accepts_hex_chain_id(self):
        data = copy.deepcopy(NATIVE_RESPONSE)
        data["result"]["autoRoute"]["txData"]["chainId"] = "0x2105"

        quote = parse_quote(data, native_request())

        assert quote.native_payload.chain_id == 8453

    def test_native_flow_malformed_chain_id(self):
        data = copy.deepcopy(NATIVE_RESPONSE)
        data["result"]["autoRoute"]["txData"]["chainId"] = "base"

        with pytest.raises(QuoteError, match="txData.chainId"):
            parse_quote(data, native_request())

    def test_native_flow_without_chain_id(self):
        data = copy.deepcopy(NATIVE_RESPONSE)
        del data["result"]["autoRoute"]["txData"]["chainId"]

        assert parse_quote(data, native_request()).native_payload.chain_id is None

    def test_signed_flow_requires_witness(self):
        data = copy.deepcopy(SIGNED_RESPONSE)
        del data["result"]["autoRoute"]["signTypedData"]["values"]["witness"]

        with pytest.raises(QuoteError, match="witness"):
            parse_quote(data, erc20_request())


class TestFetchQuote:
    @pytest.mark.asyncio
    async def test_fetch_quote_parses_provider_response(self):
        provider = MagicMock()
        provider.quote = AsyncMock(return_value=(NATIVE_RESPONSE, "req-9"))

        quote = await fetch_quote(provider, native_request())

        assert quote.quote_id == "q-native"
        assert quote.server_request_id == "req-9"
        params = provider.quote.await_args.args[0]
        assert params["inputToken"] == NATIVE_TOKEN_ADDRESS
