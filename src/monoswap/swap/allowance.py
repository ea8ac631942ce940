"""ERC20 allowance handshake for non-native swaps.

State machine per (owner, spender, token):

    UNKNOWN -> CHECKING -> SUFFICIENT
                        -> INSUFFICIENT_NEEDS_APPROVAL -> APPROVING
                           -> AWAITING_CONFIRMATION -> CONFIRMED | FAILED | TIMED_OUT

Allowances are re-read on every check; other activity can change them
between calls. Approvals are never retried internally: a pending approval
re-sent blindly could approve twice, so callers check again first.

The manager keeps nothing per pair: each call reports its outcome through
the returned AllowanceState or the raised error.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from monoswap.amounts import parse_quantity
from monoswap.chain.base import ChainClient
from monoswap.config import Settings, get_settings
from monoswap.errors import (
    ApprovalFailed,
    ApprovalSubmissionFailed,
    ChainRpcError,
    ConfirmationTimeout,
    InvalidAmount,
)
from monoswap.tokens import is_native, is_valid_address
from monoswap.web.contracts.transactions import TransactionStatusResponse
from monoswap.web.services.transaction_builder import (
    TransactionBuilder,
    decode_uint256,
    encode_allowance_call,
)

logger = logging.getLogger(__name__)


class AllowanceStatus(str, Enum):
    """Approval handshake state."""
    UNKNOWN = "unknown"
    CHECKING = "checking"
    SUFFICIENT = "sufficient"
    INSUFFICIENT_NEEDS_APPROVAL = "insufficient_needs_approval"
    APPROVING = "approving"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class AllowanceState:
    """Result of a single allowance read. Never cached."""

    owner: str
    spender: str
    token: str
    current_allowance: int
    required_amount: int
    status: AllowanceStatus

    @property
    def is_sufficient(self) -> bool:
        return self.status == AllowanceStatus.SUFFICIENT

    @property
    def shortfall(self) -> int:
        return max(self.required_amount - self.current_allowance, 0)


def _validate_pair(owner: str, spender: str, token: str) -> None:
    for label, address in (("owner", owner), ("spender", spender), ("token", token)):
        if not is_valid_address(address):
            raise ValueError(f"Invalid {label} address: {address!r}")
    if is_native(token):
        raise ValueError("The native asset has no allowance")


class AllowanceManager:
    """Checks allowances and drives bounded approvals to confirmation."""

    def __init__(
        self,
        chain: ChainClient,
        settings: Optional[Settings] = None,
        builder: Optional[TransactionBuilder] = None,
    ):
        self.chain = chain
        self.settings = settings or get_settings()
        self.builder = builder or TransactionBuilder(chain_id=self.settings.monad_chain_id)

    def _log_transition(self, owner: str, spender: str, token: str, status: AllowanceStatus) -> None:
        logger.debug(f"Allowance {token} {owner[:10]}... -> {spender[:10]}...: {status.value}")

    async def check_allowance(
        self,
        owner: str,
        spender: str,
        token: str,
        required_amount: int,
    ) -> AllowanceState:
        """Read the current on-chain allowance and classify it.

        Args:
            owner: Token holder
            spender: Contract that will pull the tokens
            token: ERC20 token address
            required_amount: Amount the swap needs, in minimal units

        Returns:
            AllowanceState with SUFFICIENT or INSUFFICIENT_NEEDS_APPROVAL
        """
        _validate_pair(owner, spender, token)
        if isinstance(required_amount, bool) or not isinstance(required_amount, int) or required_amount < 0:
            raise InvalidAmount(f"Required amount must be a non-negative integer, got {required_amount!r}")

        self._log_transition(owner, spender, token, AllowanceStatus.CHECKING)
        result = await self.chain.call(token, encode_allowance_call(owner, spender))
        current = decode_uint256(result)

        if current >= required_amount:
            status = AllowanceStatus.SUFFICIENT
        else:
            status = AllowanceStatus.INSUFFICIENT_NEEDS_APPROVAL
        self._log_transition(owner, spender, token, status)

        logger.info(f"Allowance for {token}: current={current} required={required_amount} ({status.value})")
        return AllowanceState(
            owner=owner,
            spender=spender,
            token=token,
            current_allowance=current,
            required_amount=required_amount,
            status=status,
        )

    async def approve(self, owner: str, spender: str, token: str, amount: int) -> str:
        """Submit an approval for exactly ``amount``.

        Returns:
            Approval transaction hash

        Raises:
            ApprovalSubmissionFailed: Signer or network rejected the transaction
        """
        _validate_pair(owner, spender, token)
        tx = self.builder.build_approval(token, spender, amount)

        self._log_transition(owner, spender, token, AllowanceStatus.APPROVING)
        logger.info(f"Approving {amount} of {token} for {spender}")

        tx_params = {"from": owner, **tx.to_rpc_dict()}
        try:
            tx_hash = await self.chain.send_transaction(tx_params)
        except Exception as e:
            self._log_transition(owner, spender, token, AllowanceStatus.FAILED)
            logger.error(f"Approval submission failed: {type(e).__name__}: {e}")
            raise ApprovalSubmissionFailed(f"Approval of {token} for {spender} was rejected: {e}") from e

        if not tx_hash:
            self._log_transition(owner, spender, token, AllowanceStatus.FAILED)
            raise ApprovalSubmissionFailed("Approval submission returned no transaction hash")

        self._log_transition(owner, spender, token, AllowanceStatus.AWAITING_CONFIRMATION)
        logger.info(f"Approval tx broadcast: {tx_hash}")
        return tx_hash

    async def wait_for_confirmation(
        self,
        tx_hash: str,
        max_attempts: Optional[int] = None,
        poll_interval_ms: Optional[int] = None,
    ) -> bool:
        """Poll for a receipt, at most ``max_attempts`` lookups.

        Returns:
            True if the receipt reports success, False if it reverted

        Raises:
            ConfirmationTimeout: No receipt after ``max_attempts`` lookups
        """
        if max_attempts is None:
            max_attempts = self.settings.approval_max_attempts
        if poll_interval_ms is None:
            poll_interval_ms = self.settings.approval_poll_interval_ms
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

        for attempt in range(1, max_attempts + 1):
            try:
                receipt = await self.chain.get_transaction_receipt(tx_hash)
            except ChainRpcError as e:
                logger.warning(f"Receipt lookup for {tx_hash} failed (attempt {attempt}/{max_attempts}): {e}")
                receipt = None

            if receipt is not None:
                success = _receipt_succeeded(receipt)
                logger.info(
                    f"Transaction {tx_hash} {'confirmed' if success else 'reverted'} after {attempt} attempt(s)"
                )
                return success

            if attempt < max_attempts:
                await asyncio.sleep(poll_interval_ms / 1000)

        logger.error(f"Transaction {tx_hash} not confirmed after {max_attempts} attempts")
        raise ConfirmationTimeout(
            f"Transaction {tx_hash} not confirmed after {max_attempts} attempts",
            tx_hash=tx_hash,
            attempts=max_attempts,
        )

    async def ensure_allowance(
        self,
        owner: str,
        spender: str,
        token: str,
        required_amount: int,
        max_attempts: Optional[int] = None,
        poll_interval_ms: Optional[int] = None,
    ) -> AllowanceState:
        """Make sure ``spender`` may pull ``required_amount`` of ``token``.

        Returns only once the allowance is confirmed sufficient on-chain.

        Raises:
            ApprovalSubmissionFailed: Approval could not be submitted
            ApprovalFailed: Approval reverted, or allowance still short afterwards
            ConfirmationTimeout: Approval not mined within the polling budget
        """
        state = await self.check_allowance(owner, spender, token, required_amount)
        if state.is_sufficient:
            return state

        tx_hash = await self.approve(owner, spender, token, required_amount)

        try:
            confirmed = await self.wait_for_confirmation(tx_hash, max_attempts, poll_interval_ms)
        except ConfirmationTimeout:
            self._log_transition(owner, spender, token, AllowanceStatus.TIMED_OUT)
            raise

        if not confirmed:
            self._log_transition(owner, spender, token, AllowanceStatus.FAILED)
            raise ApprovalFailed(f"Approval transaction {tx_hash} reverted", tx_hash=tx_hash)
        self._log_transition(owner, spender, token, AllowanceStatus.CONFIRMED)

        state = await self.check_allowance(owner, spender, token, required_amount)
        if not state.is_sufficient:
            raise ApprovalFailed(
                f"Allowance still {state.current_allowance} after approval {tx_hash}; "
                f"{required_amount} required",
                tx_hash=tx_hash,
            )
        return state

    async def get_transaction_status(self, tx_hash: str) -> TransactionStatusResponse:
        """Look up a submitted transaction once, without polling."""
        receipt = await self.chain.get_transaction_receipt(tx_hash)
        if receipt is None:
            return TransactionStatusResponse(tx_hash=tx_hash, status="pending")

        success = _receipt_succeeded(receipt)
        return TransactionStatusResponse(
            tx_hash=tx_hash,
            status="confirmed" if success else "failed",
            block_number=_optional_quantity(receipt.get("blockNumber")),
            gas_used=_optional_quantity(receipt.get("gasUsed")),
            error=None if success else "Transaction reverted",
        )


def _receipt_succeeded(receipt: dict) -> bool:
    status = receipt.get("status")
    if status is None:
        logger.warning(f"Receipt without status field: {receipt.get('transactionHash')}")
        return False
    try:
        return parse_quantity(status) == 1
    except InvalidAmount:
        logger.warning(f"Unparseable receipt status: {status!r}")
        return False


def _optional_quantity(value) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_quantity(value)
    except InvalidAmount:
        return None
