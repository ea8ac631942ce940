"""Transaction builder for preparing executable transactions.

This service only assembles transaction fields. NO signing or broadcasting
happens here, and it never looks at token allowances.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from monoswap.amounts import parse_quantity
from monoswap.errors import ChainRpcError, InvalidAmount, MalformedQuote
from monoswap.routing.base import Quote
from monoswap.tokens import is_valid_address
from monoswap.web.contracts.transactions import ExecutableTransaction

logger = logging.getLogger(__name__)


# ERC-20 ABI fragments
ERC20_APPROVE_SELECTOR = "0x095ea7b3"  # approve(address,uint256)
ERC20_ALLOWANCE_SELECTOR = "0xdd62ed3e"  # allowance(address,address)

APPROVAL_GAS_LIMIT = 90000
MAX_UINT256 = 2**256 - 1


def encode_address(address: str) -> str:
    """ABI-encode an address as a 32-byte word (no 0x prefix)."""
    return address.lower().replace("0x", "").zfill(64)


def encode_uint256(amount: int) -> str:
    """ABI-encode an unsigned integer as a 32-byte word (no 0x prefix)."""
    if amount < 0 or amount > MAX_UINT256:
        raise ValueError(f"Value out of uint256 range: {amount}")
    return hex(amount)[2:].zfill(64)


def encode_allowance_call(owner: str, spender: str) -> str:
    """Calldata for ``allowance(owner, spender)``."""
    return f"{ERC20_ALLOWANCE_SELECTOR}{encode_address(owner)}{encode_address(spender)}"


class TransactionBuilder:
    """Builds executable transactions for the caller to submit.

    This service NEVER:
    - Accesses private keys
    - Signs or broadcasts transactions
    - Reads or changes token allowances
    """

    def __init__(self, chain_id: Optional[int] = None):
        self.chain_id = chain_id

    def build_transaction(self, quote: Quote) -> ExecutableTransaction:
        """Build the swap transaction from a reconciled quote.

        The gas limit is the aggregator's estimate; any safety margin is the
        caller's policy (see ``apply_gas_buffer``).

        Raises:
            MalformedQuote: If target or calldata is missing, or the value
                was never reconciled into a decimal wei string
        """
        tx = quote.transaction

        if not tx.to or not tx.has_calldata:
            logger.error(
                f"Refusing to build transaction from non-executable quote: {quote.to_dict()}"
            )
            raise MalformedQuote("Quote has no transaction target or calldata")

        if tx.value is None or not tx.value.isascii() or not tx.value.isdigit():
            logger.error(f"Quote value was not reconciled before building: {tx.value!r}")
            raise MalformedQuote(f"Transaction value is not a reconciled wei amount: {tx.value!r}")

        try:
            return ExecutableTransaction(
                to=tx.to,
                data=tx.data,
                value=tx.value,
                gas_limit=quote.estimated_gas,
                chain_id=self.chain_id,
                description=f"Swap {quote.from_amount} {quote.from_token} for ~{quote.to_amount} {quote.to_token}",
            )
        except ValidationError as e:
            logger.error(f"Quote fields failed transaction validation: {e}")
            raise MalformedQuote(f"Quote fields are not a valid transaction: {e}") from e

    def build_approval(
        self,
        token_address: str,
        spender: str,
        amount: int,
    ) -> ExecutableTransaction:
        """Build an ERC-20 approval for exactly ``amount``.

        Unlimited approvals are not offered; the approval is bounded to what
        the swap needs.

        Args:
            token_address: Token contract address
            spender: Address to approve (usually the aggregator router)
            amount: Amount in minimal units

        Returns:
            ExecutableTransaction calling ``approve(spender, amount)``
        """
        if not is_valid_address(token_address):
            raise ValueError(f"Invalid token address: {token_address!r}")
        if not is_valid_address(spender):
            raise ValueError(f"Invalid spender address: {spender!r}")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmount(f"Approval amount must be a positive integer, got {amount!r}")
        if amount >= MAX_UINT256:
            raise InvalidAmount("Unlimited approvals are not allowed")

        data = f"{ERC20_APPROVE_SELECTOR}{encode_address(spender)}{encode_uint256(amount)}"

        return ExecutableTransaction(
            to=token_address,
            data=data,
            value="0",
            gas_limit=APPROVAL_GAS_LIMIT,
            chain_id=self.chain_id,
            description=f"Approve {spender[:10]}... to spend {amount} units",
        )


def apply_gas_buffer(tx: ExecutableTransaction, percent: int = 10) -> ExecutableTransaction:
    """Return a copy of ``tx`` with ``percent`` added to the gas limit."""
    if percent < 0:
        raise ValueError(f"Gas buffer must be non-negative, got {percent}")
    return tx.model_copy(update={"gas_limit": tx.gas_limit * (100 + percent) // 100})


def decode_uint256(result: str) -> int:
    """Decode a single uint256 return value from ``eth_call``."""
    try:
        return parse_quantity(result)
    except InvalidAmount as e:
        raise ChainRpcError(f"Unexpected eth_call result: {result!r}") from e
