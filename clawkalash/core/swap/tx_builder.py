"""
Transaction builder for the calls the swap core sends itself.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from eth_utils import to_checksum_address

from .models import NativePayload


# Common contract ABIs (minimal for encoding)
ERC20_APPROVE_SELECTOR = "0x095ea7b3"  # approve(address,uint256)
ERC20_ALLOWANCE_SELECTOR = "0xdd62ed3e"  # allowance(address,address)

MAX_UINT256 = 2**256 - 1


def _encode_uint256(value: int) -> str:
    """Encode a uint256 as a 32-byte hex string (without 0x prefix)."""
    if not 0 <= value <= MAX_UINT256:
        raise ValueError(f"uint256 out of range: {value}")
    return format(value, "064x")


def _encode_address(address: str) -> str:
    """Encode an address as a 32-byte hex string (without 0x prefix)."""
    addr = address.lower().replace("0x", "")
    return addr.zfill(64)


def decode_uint256(result: Optional[str]) -> int:
    """Decode a single uint256 return value; empty data decodes to 0."""
    if not result or result == "0x":
        return 0
    return int(result, 16)


@dataclass
class PreparedTransaction:
    """A transaction ready to be signed and broadcast."""

    chain_id: int
    from_address: str
    to_address: str
    data: str
    value: int = 0

    def to_call_object(self) -> Dict[str, Any]:
        """Call object for eth_call / eth_estimateGas."""
        call_obj: Dict[str, Any] = {
            "from": self.from_address,
            "to": self.to_address,
            "data": self.data,
        }
        if self.value > 0:
            call_obj["value"] = hex(self.value)
        return call_obj

    def to_signable(self, nonce: int, gas: int, gas_price: int) -> Dict[str, Any]:
        """Legacy-fee transaction dict accepted by ``eth_account``."""
        return {
            "chainId": self.chain_id,
            "nonce": nonce,
            "to": to_checksum_address(self.to_address),
            "value": self.value,
            "data": self.data,
            "gas": gas,
            "gasPrice": gas_price,
        }


class TransactionBuilder:
    """
    Builds transactions for the swap core.

    Handles:
    - ERC20 allowance reads
    - ERC20 approvals
    - Native-flow transactions taken verbatim from a quote
    """

    @staticmethod
    def build_allowance_call(token_address: str, owner: str, spender: str) -> Dict[str, Any]:
        """eth_call object for ``allowance(owner, spender)``."""
        return {
            "to": token_address,
            "data": ERC20_ALLOWANCE_SELECTOR + _encode_address(owner) + _encode_address(spender),
        }

    @staticmethod
    def build_erc20_approve(
        chain_id: int,
        owner_address: str,
        token_address: str,
        spender_address: str,
        amount: int,
    ) -> PreparedTransaction:
        """
        Build an ERC20 approval transaction.

        Args:
            chain_id: The chain ID
            owner_address: The token owner (sender)
            token_address: The ERC20 token contract
            spender_address: The address being approved to spend
            amount: The exact amount to approve

        Returns:
            PreparedTransaction ready to be signed
        """
        calldata = (
            ERC20_APPROVE_SELECTOR +
            _encode_address(spender_address) +
            _encode_uint256(amount)
        )

        return PreparedTransaction(
            chain_id=chain_id,
            from_address=owner_address,
            to_address=token_address,
            data=calldata,
            value=0,
        )

    @staticmethod
    def build_from_native_payload(
        chain_id: int,
        from_address: str,
        payload: NativePayload,
    ) -> PreparedTransaction:
        """Use the quote's destination, calldata and value unchanged."""
        data = payload.data or "0x"
        return PreparedTransaction(
            chain_id=chain_id,
            from_address=from_address,
            to_address=payload.to,
            data=data if data.startswith("0x") else f"0x{data}",
            value=payload.value,
        )
