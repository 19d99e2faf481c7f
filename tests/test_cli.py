"""
Tests for the CLI helpers and amount conversion.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

import cli
from clawkalash.core.chains import NATIVE_TOKEN_ADDRESS, PERMIT2_ADDRESS
from clawkalash.core.swap.models import (
    ApprovalDescriptor,
    FlowKind,
    NativePayload,
    Quote,
    SettlementCode,
    SettlementStatus,
    SignedPayload,
)
from clawkalash.core.units import format_ether, format_units, parse_amount


USDC_BASE = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


# =============================================================================
# Amounts
# =============================================================================

class TestParseAmount:
    def test_whole_and_fractional(self):
        assert parse_amount("1", 6) == 1_000_000
        assert parse_amount("0.002", 18) == 2 * 10**15
        assert parse_amount("1.50", 1) == 15

    def test_large_amounts_keep_precision(self):
        assert parse_amount("123456789012345.123456789012345678", 18) == 123456789012345123456789012345678

    def test_too_many_decimals(self):
        with pytest.raises(ValueError, match="decimal places"):
            parse_amount("0.0000001", 6)

    @pytest.mark.parametrize("value", ["abc", "0", "-1", "nan", "inf"])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            parse_amount(value, 18)


class TestFormatUnits:
    def test_round_trip_examples(self):
        assert format_units(1_500_000, 6) == "1.5"
        assert format_units(1_000_000, 6) == "1"
        assert format_units(5, 0) == "5"
        assert format_ether(2100000000000000) == "0.0021"


# =============================================================================
# CLI Helpers
# =============================================================================

class TestParseChainId:
    def test_valid(self):
        assert cli.parse_chain_id("8453", "originChain") == 8453

    def test_invalid(self):
        with pytest.raises(ValueError, match='Invalid originChain: "base" is not a valid chain ID'):
            cli.parse_chain_id("base", "originChain")


class TestFormatQuotePreview:
    def test_native_preview(self):
        quote = Quote(
            quote_id="q1",
            flow_kind=FlowKind.NATIVE_TRANSFER,
            request_type="SINGLE_OUTPUT_REQUEST",
            input_token=NATIVE_TOKEN_ADDRESS,
            output_token=USDC_BASE,
            input_amount=10**15,
            output_amount=2_500_000,
            origin_chain_id=8453,
            destination_chain_id=42161,
            settlement_ref="0xhash",
            native_payload=NativePayload(to=USDC_BASE, data="0x", value=10**15),
        )

        preview = cli.format_quote_preview(quote, 18, 6)

        assert "Base → Arbitrum" in preview
        assert "Input:  0.001" in preview
        assert "Output: 2.5" in preview
        assert "Native token (direct tx)" in preview
        assert "approval" not in preview

    def test_signed_preview_flags_approval(self):
        quote = Quote(
            quote_id="q2",
            flow_kind=FlowKind.SIGNED_TRANSFER,
            request_type="SINGLE_OUTPUT_REQUEST",
            input_token=USDC_BASE,
            output_token=NATIVE_TOKEN_ADDRESS,
            input_amount=1_000_000,
            output_amount=10**14,
            origin_chain_id=8453,
            destination_chain_id=8453,
            signed_payload=SignedPayload(
                domain={"verifyingContract": PERMIT2_ADDRESS},
                types={},
                message={},
                witness={},
                approval=ApprovalDescriptor(USDC_BASE, "0", 1_000_000),
            ),
        )

        preview = cli.format_quote_preview(quote, 6, 18)

        assert "ERC20 (permit2)" in preview
        assert "Token approval required" in preview


class TestMain:
    @pytest.mark.asyncio
    async def test_dispatches_status(self, monkeypatch, capsys):
        poller = MagicMock()
        poller.get_status = AsyncMock(return_value=SettlementStatus(
            code=SettlementCode.COMPLETED,
            destination_tx_hash="0xdest",
        ))
        monkeypatch.setattr(cli, "StatusPoller", lambda provider: poller)
        monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)

        exit_code = await cli.main(["status", "0xreq"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Status: COMPLETED" in out
        assert "Dest TX: 0xdest" in out
        assert "https://socketscan.io/tx/0xreq" in out

    @pytest.mark.asyncio
    async def test_address_without_key_fails(self, monkeypatch, capsys):
        monkeypatch.setattr(cli.settings, "private_key", "")
        monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)

        exit_code = await cli.main(["address"])

        assert exit_code == 1
        assert "PRIVATE_KEY" in capsys.readouterr().err

    def test_every_subcommand_has_a_handler(self):
        parser = cli.build_parser()
        subparsers = next(a for a in parser._actions if a.dest == "command")
        assert set(subparsers.choices) == set(cli.COMMANDS)
