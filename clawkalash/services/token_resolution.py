"""
Token resolution against the aggregator's free-text search.

Turns a symbol or address plus a target chain into canonical token metadata:
- Flat and chain-grouped search responses are normalized to one list
- Rows are ranked so shortlisted and verified listings win symbol lookups
- Results are cached per lower-cased query (the search endpoint allows only
  a handful of calls per minute)
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional

from ..cache import TTLCache
from ..config import settings
from ..core.recovery import NotFoundError, TokenSearchError, with_retry
from ..core.swap.models import SearchCacheEntry, TokenMetadata, TokenSearchResult
from ..providers.bungee import BungeeProvider

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

UNLISTED_DECIMALS = 18


def is_address(value: str) -> bool:
    return bool(_ADDRESS_RE.match(value.strip()))


def flatten_search_results(result: Any) -> List[Dict[str, Any]]:
    """The endpoint answers ``{tokens: [...]}``, ``{tokens: {chainId: [...]}}`` or a bare list."""
    tokens = result.get("tokens", result) if isinstance(result, dict) else result
    if isinstance(tokens, list):
        return [row for row in tokens if isinstance(row, dict)]

    flat: List[Dict[str, Any]] = []
    if isinstance(tokens, dict):
        for chain_tokens in tokens.values():
            if isinstance(chain_tokens, list):
                flat.extend(row for row in chain_tokens if isinstance(row, dict))
    return flat


def rank_results(results: List[TokenSearchResult]) -> List[TokenSearchResult]:
    # sorted() is stable, so ties keep the endpoint's order
    return sorted(results, key=lambda row: row.trust_score, reverse=True)


class TokenResolver:
    """Resolves token inputs for one process; owns its own search cache."""

    def __init__(
        self,
        provider: BungeeProvider,
        cache: Optional[TTLCache] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.search_cache_ttl_seconds
        self._clock = clock
        self._cache = cache or TTLCache(
            default_ttl=self.ttl_seconds,
            max_size=settings.search_cache_max_size,
            clock=clock,
        )

    async def search(self, query: str) -> List[TokenSearchResult]:
        """Ranked search results for ``query``; served from cache within the TTL."""
        key = query.strip().lower()
        cached: Optional[SearchCacheEntry] = self._cache.get(key)
        if cached is not None:
            logger.debug("Token search cache hit for %r", key)
            return list(cached.results)

        data = await with_retry(
            lambda: self.provider.search_tokens(query.strip()),
            attempts=settings.retry_attempts,
            delay_seconds=settings.retry_delay_seconds,
            operation_name="token search",
        )
        if not data.get("success") or data.get("result") is None:
            raise TokenSearchError(f"Failed to search tokens for {query!r}", query)

        results: List[TokenSearchResult] = []
        for row in flatten_search_results(data["result"]):
            try:
                results.append(TokenSearchResult.from_api(row))
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed search row: %s", row)

        ranked = rank_results(results)
        self._cache.set(
            key,
            SearchCacheEntry(query=key, results=ranked, fetched_at=self._clock()),
            ttl=self.ttl_seconds,
        )
        return list(ranked)

    async def resolve(self, token_input: str, chain_id: int) -> TokenMetadata:
        """
        Resolve a symbol or address on ``chain_id``.

        Addresses never fail: unknown ones come back with 18 decimals and
        ``low_confidence`` set. Symbols raise ``NotFoundError`` when nothing
        on the chain matches.
        """
        token_input = token_input.strip()
        results = await self.search(token_input)

        if is_address(token_input):
            return self._resolve_address(token_input, chain_id, results)

        symbol = token_input.lower()
        on_chain = [row for row in results if row.chain_id == chain_id]

        for row in on_chain:
            if row.symbol.lower() == symbol:
                return row.to_metadata()

        # Best effort: the highest-ranked listing on the chain
        if on_chain:
            logger.info(f"No exact symbol match for {token_input} on chain {chain_id}, using {on_chain[0].symbol}")
            return on_chain[0].to_metadata()

        raise NotFoundError(f'Token "{token_input}" not found on chain {chain_id}', token_input, chain_id)

    def _resolve_address(
        self,
        address: str,
        chain_id: int,
        results: List[TokenSearchResult],
    ) -> TokenMetadata:
        matches = [row for row in results if row.address.lower() == address.lower()]

        for row in matches:
            if row.chain_id == chain_id:
                return row.to_metadata()

        if matches:
            other = matches[0]
            logger.warning(
                "Token %s found only on chain %s, assuming %s decimals on chain %s",
                address, other.chain_id, UNLISTED_DECIMALS, chain_id,
            )
            return other.to_metadata(
                chain_id=chain_id,
                address=address,
                decimals=UNLISTED_DECIMALS,
                low_confidence=True,
            )

        logger.warning(f"Could not fetch metadata for {address}, assuming {UNLISTED_DECIMALS} decimals")
        return TokenMetadata(
            chain_id=chain_id,
            address=address,
            symbol=address[:8],
            name=address[:8],
            decimals=UNLISTED_DECIMALS,
            low_confidence=True,
        )
