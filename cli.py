#!/usr/bin/env python3
"""Command line entry point for clawkalash swaps"""

import argparse
import asyncio
import dataclasses
import json
import sys
from typing import Awaitable, Callable, Dict

import httpx

from clawkalash.config import settings
from clawkalash.core.chains import get_chain_name
from clawkalash.core.recovery import SwapError
from clawkalash.core.swap import (
    ExecutionRouter,
    FlowKind,
    LocalAccountSigner,
    Quote,
    QuoteRequest,
    StatusPoller,
    fetch_quote,
    tracking_url_for,
)
from clawkalash.core.units import format_units, parse_amount
from clawkalash.logging_config import setup_logging
from clawkalash.providers import BungeeProvider, ChainRpcClient
from clawkalash.services import TokenResolver


def parse_chain_id(value: str, label: str = "chain") -> int:
    try:
        return int(str(value).strip(), 10)
    except ValueError:
        raise ValueError(f'Invalid {label}: "{value}" is not a valid chain ID')


def format_quote_preview(quote: Quote, input_decimals: int = 18, output_decimals: int = 18) -> str:
    """Dry-run summary of a quote"""
    lines = [
        "🔍 Swap Preview (dry run)",
        f"  From: {get_chain_name(quote.origin_chain_id)} → {get_chain_name(quote.destination_chain_id)}",
        f"  Input:  {format_units(quote.input_amount, input_decimals)} ({quote.input_token})",
        f"  Output: {format_units(quote.output_amount, output_decimals)} ({quote.output_token})",
        f"  Quote ID: {quote.quote_id}",
        "  Flow: " + (
            "Native token (direct tx)" if quote.flow_kind is FlowKind.NATIVE_TRANSFER else "ERC20 (permit2)"
        ),
    ]
    if quote.signed_payload is not None and quote.signed_payload.approval is not None:
        lines.append("  ⚠️  Token approval required")
    return "\n".join(lines)


def _load_signer() -> LocalAccountSigner:
    if not settings.has_private_key:
        raise ValueError("No signing key configured. Set PRIVATE_KEY (private key or mnemonic).")
    return LocalAccountSigner(settings.private_key)


async def _build_quote(args: argparse.Namespace, resolver: TokenResolver, provider: BungeeProvider, user_address: str):
    origin_chain_id = parse_chain_id(args.origin_chain, "originChain")
    dest_chain_id = parse_chain_id(args.dest_chain, "destChain")

    input_token = await resolver.resolve(args.input_token, origin_chain_id)
    output_token = await resolver.resolve(args.output_token, dest_chain_id)

    request = QuoteRequest(
        user_address=user_address,
        origin_chain_id=origin_chain_id,
        destination_chain_id=dest_chain_id,
        input_token=input_token.address,
        output_token=output_token.address,
        input_amount=parse_amount(args.amount, input_token.decimals),
    )
    quote = await fetch_quote(provider, request)
    return quote, input_token, output_token


async def cli_search(args: argparse.Namespace) -> None:
    query = " ".join(args.query)
    resolver = TokenResolver(BungeeProvider())
    results = await resolver.search(query)
    if not results:
        print("No tokens found.")
        return

    print(f"Found {len(results)} token(s):\n")
    for token in results[:20]:
        badge = " ✓" if token.is_verified else ""
        print(f"  {token.symbol} ({token.name}){badge} - {get_chain_name(token.chain_id)} - {token.address}")


async def cli_quote(args: argparse.Namespace) -> None:
    provider = BungeeProvider()
    quote, _, _ = await _build_quote(args, TokenResolver(provider), provider, args.user_address)
    print("Quote:", json.dumps(dataclasses.asdict(quote), indent=2, default=str))


async def cli_swap(args: argparse.Namespace) -> None:
    signer = _load_signer()
    provider = BungeeProvider()

    print("Getting quote...")
    quote, input_token, output_token = await _build_quote(args, TokenResolver(provider), provider, signer.address)

    if args.dry_run:
        print(format_quote_preview(quote, input_token.decimals, output_token.decimals))
        return

    rpc = ChainRpcClient()
    try:
        router = ExecutionRouter(signer, rpc, provider)
        print("Executing swap...")
        outcome = await router.execute(quote)
    finally:
        await rpc.close()

    print("\n✅ Swap complete!")
    print(f"   Status: {outcome.status.label}")
    if outcome.status.destination_tx_hash:
        print(f"   Dest TX: {outcome.status.destination_tx_hash}")
    print(f"   🔗 {outcome.tracking_url}")


async def cli_status(args: argparse.Namespace) -> None:
    poller = StatusPoller(BungeeProvider())
    status = await poller.get_status(args.request_hash)

    print(f"Status: {status.label if status else 'UNKNOWN'}")
    if status and status.origin_tx_hash:
        print(f"Origin TX: {status.origin_tx_hash}")
    if status and status.destination_tx_hash:
        print(f"Dest TX: {status.destination_tx_hash}")
    print(f"\nSocketScan: {tracking_url_for(args.request_hash)}")


async def cli_address(args: argparse.Namespace) -> None:
    print(_load_signer().address)


COMMANDS: Dict[str, Callable[[argparse.Namespace], Awaitable[None]]] = {
    "search": cli_search,
    "quote": cli_quote,
    "swap": cli_swap,
    "status": cli_status,
    "address": cli_address,
}


def _add_route_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("origin_chain", help="Origin chain id")
    parser.add_argument("dest_chain", help="Destination chain id")
    parser.add_argument("input_token", help="Input token symbol or address")
    parser.add_argument("output_token", help="Output token symbol or address")
    parser.add_argument("amount", help="Human-readable input amount (e.g. 0.01)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="clawkalash cross-chain swaps via Bungee")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    search_parser = subparsers.add_parser("search", help="Search tokens by name, symbol or address")
    search_parser.add_argument("query", nargs="+", help="Search text")

    quote_parser = subparsers.add_parser("quote", help="Get a swap quote")
    _add_route_arguments(quote_parser)
    quote_parser.add_argument("user_address", help="Address the quote is built for")

    swap_parser = subparsers.add_parser("swap", help="Quote and execute a swap")
    _add_route_arguments(swap_parser)
    swap_parser.add_argument("--dry-run", action="store_true", help="Preview the quote without executing")

    status_parser = subparsers.add_parser("status", help="Check settlement status")
    status_parser.add_argument("request_hash", help="Bungee request hash")

    subparsers.add_parser("address", help="Show the signer address")

    return parser


async def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.log_level)

    try:
        await COMMANDS[args.command](args)
    except (SwapError, ValueError, httpx.HTTPError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
