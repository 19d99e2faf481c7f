"""Service layer helpers"""

from .token_resolution import TokenResolver, flatten_search_results, is_address, rank_results

__all__ = [
    "TokenResolver",
    "flatten_search_results",
    "is_address",
    "rank_results",
]
