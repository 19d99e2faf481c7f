"""External service clients"""

from .bungee import BungeeProvider
from .rpc import ChainRpcClient, receipt_succeeded

__all__ = [
    "BungeeProvider",
    "ChainRpcClient",
    "receipt_succeeded",
]
