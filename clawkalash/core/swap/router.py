"""
Swap execution router.

Drives one quote through validation, the flow-specific send or sign steps,
and settlement polling. Validation always completes before anything is
signed or broadcast, and every send completes before polling starts.
"""

import logging
from typing import List, Optional, Set

from ...config import settings
from ...logging_config import swap_log_context
from ...providers.bungee import BungeeProvider
from ...providers.rpc import ChainRpcClient, receipt_succeeded
from ..chains import get_native_symbol
from ..recovery import (
    DuplicateExecutionError,
    GasEstimationError,
    InsufficientBalanceError,
    RpcError,
    TransactionRevertedError,
)
from ..units import format_ether
from .approval import ApprovalManager
from .models import ExecutionState, FlowKind, Quote, SwapOutcome
from .poller import StatusPoller, tracking_url_for
from .signer import Signer, sign_permit
from .submission import SubmissionClient
from .tx_builder import TransactionBuilder
from .validator import validate_quote

logger = logging.getLogger(__name__)


class ExecutionRouter:
    """
    Executes quotes for a single signer.

    One router instance refuses to run the same quote id twice. Callers must
    not run two swaps for the same account concurrently; nonces are taken
    from the node's pending count.
    """

    def __init__(
        self,
        signer: Signer,
        rpc: ChainRpcClient,
        provider: BungeeProvider,
        poller: Optional[StatusPoller] = None,
        approvals: Optional[ApprovalManager] = None,
        submission: Optional[SubmissionClient] = None,
        gas_multiplier: Optional[float] = None,
    ):
        self.signer = signer
        self.rpc = rpc
        self.provider = provider
        self.poller = poller or StatusPoller(provider)
        self.approvals = approvals or ApprovalManager(rpc)
        self.submission = submission or SubmissionClient(provider)
        self.gas_multiplier = gas_multiplier if gas_multiplier is not None else settings.gas_multiplier

        self.state: Optional[ExecutionState] = None
        self.history: List[ExecutionState] = []
        self._executed: Set[str] = set()

    def _transition(self, state: ExecutionState) -> None:
        self.state = state
        self.history.append(state)
        logger.debug("Router state -> %s", state.value)

    async def execute(
        self,
        quote: Quote,
        expected_input_token: Optional[str] = None,
        expected_input_amount: Optional[int] = None,
        expected_origin_chain: Optional[int] = None,
    ) -> SwapOutcome:
        """
        Execute ``quote`` and block until it settles.

        The expected values default to the request the quote was built from.

        Raises:
            DuplicateExecutionError: This router already ran ``quote.quote_id``.
            ValidationError: The quote disagrees with the expected values.
            SwapError: Any failure along the way, unchanged.
        """
        if quote.quote_id in self._executed:
            raise DuplicateExecutionError(quote.quote_id)
        self._executed.add(quote.quote_id)

        self.history = []
        self._transition(ExecutionState.QUOTE_RECEIVED)

        with swap_log_context(quote_id=quote.quote_id, flow=quote.flow_kind.value):
            try:
                self._transition(ExecutionState.VALIDATING)
                validate_quote(
                    quote,
                    expected_input_token or quote.input_token,
                    quote.input_amount if expected_input_amount is None else expected_input_amount,
                    expected_origin_chain or quote.origin_chain_id,
                )

                if quote.flow_kind is FlowKind.NATIVE_TRANSFER:
                    outcome = await self._execute_native(quote)
                else:
                    outcome = await self._execute_signed(quote)

                self._transition(ExecutionState.COMPLETED)
                return outcome

            except Exception as e:
                logger.error(f"Swap {quote.quote_id} failed during {self.state.value}: {e}")
                self._transition(ExecutionState.FAILED)
                raise

    async def _execute_native(self, quote: Quote) -> SwapOutcome:
        chain_id = quote.origin_chain_id
        tx = TransactionBuilder.build_from_native_payload(chain_id, self.signer.address, quote.native_payload)

        self._transition(ExecutionState.ESTIMATING_GAS)
        try:
            gas_estimate = await self.rpc.estimate_gas(chain_id, tx.to_call_object())
        except RpcError as e:
            raise GasEstimationError(e.message, chain_id) from e
        gas_limit = int(gas_estimate * self.gas_multiplier)
        logger.info(f"Estimated gas: {gas_estimate} (limit {gas_limit})")

        self._transition(ExecutionState.CHECKING_BALANCE)
        gas_price = await self.rpc.get_gas_price(chain_id)
        gas_cost = gas_limit * gas_price
        total_needed = tx.value + gas_cost
        balance = await self.rpc.get_balance(chain_id, self.signer.address)
        if balance < total_needed:
            symbol = get_native_symbol(chain_id)
            raise InsufficientBalanceError(
                f"Insufficient balance. Need {format_ether(total_needed)} {symbol} "
                f"({format_ether(tx.value)} value + {format_ether(gas_cost)} gas), "
                f"have {format_ether(balance)} {symbol}",
                required=str(total_needed),
                available=str(balance),
                token=symbol,
            )

        self._transition(ExecutionState.SENDING)
        tx_hash = await self.rpc.send_transaction(self.signer, tx, gas_limit=gas_limit, gas_price=gas_price)
        logger.info(f"TX hash: {tx_hash}")

        self._transition(ExecutionState.CONFIRMING)
        receipt = await self.rpc.wait_for_receipt(chain_id, tx_hash)
        if not receipt_succeeded(receipt):
            raise TransactionRevertedError(f"Transaction {tx_hash} reverted", tx_hash, chain_id)

        settlement_id = quote.settlement_ref
        status = await self._poll(settlement_id)
        return SwapOutcome(
            settlement_id=settlement_id,
            status=status,
            flow_kind=quote.flow_kind,
            origin_tx_hash=tx_hash,
            tracking_url=tracking_url_for(settlement_id, self.poller.tracking_base_url),
        )

    async def _execute_signed(self, quote: Quote) -> SwapOutcome:
        chain_id = quote.origin_chain_id
        payload = quote.signed_payload
        owner = self.signer.address

        # The transfer itself is gasless but the approval and settlement are not
        self._transition(ExecutionState.CHECKING_BALANCE)
        balance = await self.rpc.get_balance(chain_id, owner)
        if balance == 0:
            symbol = get_native_symbol(chain_id)
            raise InsufficientBalanceError(
                f"Wallet has no {symbol} for gas fees",
                required="> 0",
                available="0",
                token=symbol,
            )

        approval_tx_hash = None
        if payload.approval is not None:
            self._transition(ExecutionState.CHECKING_APPROVAL)
            approval_tx_hash = await self.approvals.ensure_approval(
                payload.approval,
                self.signer,
                chain_id,
                on_approving=lambda: self._transition(ExecutionState.APPROVING),
            )

        self._transition(ExecutionState.SIGNING)
        authorization = sign_permit(self.signer, payload)

        self._transition(ExecutionState.SUBMITTING)
        settlement_id = await self.submission.submit(
            quote.request_type,
            authorization.witness,
            authorization.signature,
            quote.quote_id,
        )

        status = await self._poll(settlement_id)
        return SwapOutcome(
            settlement_id=settlement_id,
            status=status,
            flow_kind=quote.flow_kind,
            origin_tx_hash=status.origin_tx_hash,
            approval_tx_hash=approval_tx_hash,
            tracking_url=tracking_url_for(settlement_id, self.poller.tracking_base_url),
        )

    async def _poll(self, settlement_id: str):
        self._transition(ExecutionState.POLLING)
        with swap_log_context(settlement_id=settlement_id):
            logger.info(f"Waiting for settlement of {settlement_id}")
            return await self.poller.poll(settlement_id)
