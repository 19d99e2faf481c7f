"""
ERC20 allowance management for the signed-transfer flow.

Spend allowance is checked first and only topped up when short. An approval
is always dry-run with ``eth_call`` before it is signed so a contract-level
revert costs no gas.
"""

import logging
from typing import Callable, Optional

from ...config import settings
from ...providers.rpc import ChainRpcClient, receipt_succeeded
from ..chains import PERMIT2_ADDRESS, ZERO_ADDRESS
from ..recovery import ApprovalWouldFailError, RpcError, TransactionRevertedError
from .models import ApprovalDescriptor
from .signer import Signer
from .tx_builder import TransactionBuilder, decode_uint256

logger = logging.getLogger(__name__)


def resolve_spender(spender_address: str) -> str:
    """Quotes use ``"0"`` (or the zero address) to mean the Permit2 contract."""
    if not spender_address or spender_address == "0" or spender_address.lower() == ZERO_ADDRESS:
        return PERMIT2_ADDRESS
    return spender_address


class ApprovalManager:
    """Makes sure the owner has granted enough allowance before signing."""

    def __init__(self, rpc: ChainRpcClient, gas_multiplier: Optional[float] = None):
        self.rpc = rpc
        self.gas_multiplier = gas_multiplier if gas_multiplier is not None else settings.gas_multiplier

    async def get_allowance(self, chain_id: int, token_address: str, owner: str, spender: str) -> int:
        call_obj = TransactionBuilder.build_allowance_call(token_address, owner, spender)
        return decode_uint256(await self.rpc.read_call(chain_id, call_obj))

    async def needs_approval(self, descriptor: ApprovalDescriptor, owner: str, chain_id: int) -> bool:
        spender = resolve_spender(descriptor.spender_address)
        allowance = await self.get_allowance(chain_id, descriptor.token_address, owner, spender)
        if allowance >= descriptor.required_amount:
            logger.info("Allowance %s already covers %s, no approval needed", allowance, descriptor.required_amount)
            return False
        return True

    async def ensure_approval(
        self,
        descriptor: ApprovalDescriptor,
        owner_signer: Signer,
        chain_id: int,
        on_approving: Optional[Callable[[], None]] = None,
    ) -> Optional[str]:
        """
        Ensure ``owner_signer`` has approved ``descriptor.required_amount``.

        Args:
            on_approving: Called once the allowance is found short, before the
                approval is simulated and sent.

        Returns:
            The approval transaction hash, or None when the existing
            allowance already covers the amount (no transaction is sent).

        Raises:
            ApprovalWouldFailError: The approval dry-run reverted.
            TransactionRevertedError: The approval was mined but reverted.
        """
        if not await self.needs_approval(descriptor, owner_signer.address, chain_id):
            return None
        if on_approving is not None:
            on_approving()
        return await self.approve(descriptor, owner_signer, chain_id)

    async def approve(self, descriptor: ApprovalDescriptor, owner_signer: Signer, chain_id: int) -> str:
        """Dry-run, send and confirm an exact-amount approval."""
        owner = owner_signer.address
        spender = resolve_spender(descriptor.spender_address)

        tx = TransactionBuilder.build_erc20_approve(
            chain_id=chain_id,
            owner_address=owner,
            token_address=descriptor.token_address,
            spender_address=spender,
            amount=descriptor.required_amount,
        )
        call_obj = tx.to_call_object()

        logger.info("Simulating approval of %s for %s", descriptor.required_amount, spender)
        try:
            await self.rpc.call(chain_id, call_obj)
            gas_estimate = await self.rpc.estimate_gas(chain_id, call_obj)
        except RpcError as e:
            raise ApprovalWouldFailError(e.message, descriptor.token_address, spender) from e

        gas_price = await self.rpc.get_gas_price(chain_id)
        tx_hash = await self.rpc.send_transaction(
            owner_signer,
            tx,
            gas_limit=int(gas_estimate * self.gas_multiplier),
            gas_price=gas_price,
        )
        logger.info(f"Approval TX: {tx_hash}")

        receipt = await self.rpc.wait_for_receipt(chain_id, tx_hash)
        if not receipt_succeeded(receipt):
            raise TransactionRevertedError(f"Approval transaction {tx_hash} reverted", tx_hash, chain_id)

        logger.info("Approval confirmed")
        return tx_hash
