"""
JSON-RPC client for EVM chains.

Thin read/write surface used by the swap core:
- Balances, gas price and nonces
- eth_call (allowance reads and approval dry-runs)
- Gas estimation
- Raw transaction submission and receipt monitoring
"""

import asyncio
import itertools
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from ..config import settings
from ..core.recovery import (
    ConfirmationTimeoutError,
    RateLimitedError,
    RpcError,
    TransientNetworkError,
    with_retry,
)

logger = logging.getLogger(__name__)


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    raise ValueError(f"Unexpected RPC quantity: {value!r}")


class ChainRpcClient:
    """
    Makes JSON-RPC calls against the configured node for each chain.

    Read calls go through the shared retry policy. ``estimate_gas``, ``call``
    and ``send_raw_transaction`` are single-shot: a revert there is reported
    verbatim and never retried.
    """

    def __init__(
        self,
        rpc_urls: Optional[Dict[int, str]] = None,
        timeout_s: Optional[float] = None,
        retry_attempts: Optional[int] = None,
        retry_delay_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._rpc_urls = dict(rpc_urls if rpc_urls is not None else settings.rpc_urls)
        self._client = httpx.AsyncClient(
            timeout=timeout_s if timeout_s is not None else settings.request_timeout_seconds,
            transport=transport,
        )
        self._retry_attempts = retry_attempts if retry_attempts is not None else settings.retry_attempts
        self._retry_delay = (
            retry_delay_seconds if retry_delay_seconds is not None else settings.retry_delay_seconds
        )
        self._sleep = sleep
        self._ids = itertools.count(1)

    async def _rpc_call(
        self,
        chain_id: int,
        method: str,
        params: List[Any],
    ) -> Any:
        """Make an RPC call to the chain."""
        rpc_url = self._rpc_urls.get(chain_id)
        if not rpc_url:
            raise ValueError(f"No RPC URL configured for chain {chain_id}")

        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }

        try:
            response = await self._client.post(rpc_url, json=payload)
        except httpx.TransportError as e:
            raise TransientNetworkError(f"RPC {method} failed: {e}", provider=f"rpc:{chain_id}")

        if response.status_code == 429:
            raise RateLimitedError(f"RPC rate limited on {method}", provider=f"rpc:{chain_id}")
        if response.status_code >= 500:
            raise TransientNetworkError(
                f"RPC {method} returned HTTP {response.status_code}", provider=f"rpc:{chain_id}"
            )
        try:
            result = response.json()
        except ValueError:
            response.raise_for_status()
            raise TransientNetworkError(f"RPC {method} returned a non-JSON body", provider=f"rpc:{chain_id}")

        # Some nodes answer 4xx with a JSON-RPC error object
        if isinstance(result, dict) and "error" in result:
            error = result["error"]
            if not isinstance(error, dict):
                raise RpcError(str(error))
            raise RpcError(
                error.get("message", str(error)),
                code=error.get("code"),
                data=error.get("data"),
            )

        response.raise_for_status()
        return result.get("result")

    async def _read(self, chain_id: int, method: str, params: List[Any]) -> Any:
        return await with_retry(
            lambda: self._rpc_call(chain_id, method, params),
            attempts=self._retry_attempts,
            delay_seconds=self._retry_delay,
            operation_name=f"rpc {method}",
            sleep=self._sleep,
        )

    async def get_balance(self, chain_id: int, address: str) -> int:
        return _to_int(await self._read(chain_id, "eth_getBalance", [address, "latest"]))

    async def get_gas_price(self, chain_id: int) -> int:
        return _to_int(await self._read(chain_id, "eth_gasPrice", []))

    async def get_transaction_count(self, chain_id: int, address: str) -> int:
        return _to_int(await self._read(chain_id, "eth_getTransactionCount", [address, "pending"]))

    async def read_call(self, chain_id: int, call_obj: Dict[str, Any]) -> str:
        """eth_call for view functions; retried like any other read."""
        return await self._read(chain_id, "eth_call", [call_obj, "latest"])

    async def call(self, chain_id: int, call_obj: Dict[str, Any]) -> str:
        """eth_call used as a dry-run; reverts surface as ``RpcError``."""
        return await self._rpc_call(chain_id, "eth_call", [call_obj, "latest"])

    async def estimate_gas(self, chain_id: int, call_obj: Dict[str, Any]) -> int:
        return _to_int(await self._rpc_call(chain_id, "eth_estimateGas", [call_obj]))

    async def send_raw_transaction(self, chain_id: int, raw_tx: str) -> str:
        tx_hash = await self._rpc_call(chain_id, "eth_sendRawTransaction", [raw_tx])
        logger.info("Transaction submitted: %s (chain %s)", tx_hash, chain_id)
        return tx_hash

    async def send_transaction(self, signer: Any, tx: Any, gas_limit: int, gas_price: int) -> str:
        """Sign ``tx`` (a ``PreparedTransaction``) with the next pending nonce and broadcast it."""
        nonce = await self.get_transaction_count(tx.chain_id, tx.from_address)
        raw_tx = signer.sign_transaction(tx.to_signable(nonce=nonce, gas=gas_limit, gas_price=gas_price))
        return await self.send_raw_transaction(tx.chain_id, raw_tx)

    async def wait_for_receipt(
        self,
        chain_id: int,
        tx_hash: str,
        timeout_seconds: Optional[float] = None,
        poll_interval: float = 2.0,
    ) -> Dict[str, Any]:
        """Block until the transaction is mined; returns the raw receipt."""
        timeout = timeout_seconds if timeout_seconds is not None else settings.receipt_timeout_seconds
        started = time.monotonic()

        while True:
            receipt = await self._read(chain_id, "eth_getTransactionReceipt", [tx_hash])
            if receipt:
                logger.info(
                    "Transaction mined: %s (block %s)",
                    tx_hash,
                    _to_int(receipt.get("blockNumber", "0x0")),
                )
                return receipt

            if time.monotonic() - started > timeout:
                raise ConfirmationTimeoutError(tx_hash, timeout, chain_id=chain_id)
            await self._sleep(poll_interval)

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()


def receipt_succeeded(receipt: Dict[str, Any]) -> bool:
    """Status 0x1 = success, 0x0 = revert."""
    return _to_int(receipt.get("status", "0x1")) == 1
