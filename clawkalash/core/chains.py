"""Chain metadata and canonical contract addresses."""

from typing import Any, Dict

CHAIN_METADATA: Dict[int, Dict[str, Any]] = {
    1: {
        'name': 'Ethereum',
        'native_symbol': 'ETH',
        'native_decimals': 18,
    },
    8453: {
        'name': 'Base',
        'native_symbol': 'ETH',
        'native_decimals': 18,
    },
    42161: {
        'name': 'Arbitrum',
        'native_symbol': 'ETH',
        'native_decimals': 18,
    },
    10: {
        'name': 'Optimism',
        'native_symbol': 'ETH',
        'native_decimals': 18,
    },
    137: {
        'name': 'Polygon',
        'native_symbol': 'POL',
        'native_decimals': 18,
    },
}

ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'

# Bungee uses the 0xEeee... placeholder for the chain's native currency
NATIVE_TOKEN_ADDRESS = '0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE'

# Uniswap Permit2, deployed at the same address on every supported chain
PERMIT2_ADDRESS = '0x000000000022D473030F116dDEE9F6B43aC78BA3'


def get_chain_name(chain_id: int) -> str:
    meta = CHAIN_METADATA.get(chain_id)
    return meta['name'] if meta else f'Chain {chain_id}'


def get_native_symbol(chain_id: int) -> str:
    meta = CHAIN_METADATA.get(chain_id)
    return meta['native_symbol'] if meta else 'ETH'


def is_native_token(address: str) -> bool:
    return address.lower() in {NATIVE_TOKEN_ADDRESS.lower(), ZERO_ADDRESS}
