"""Swap preparation pipeline.

quote -> value reconciliation -> (ERC20 only) allowance handshake ->
executable transaction. The caller submits the returned transaction.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from monoswap.amounts import to_minimal_units
from monoswap.config import Settings, get_settings
from monoswap.routing.base import Quote
from monoswap.routing.monorail import MonorailQuoteClient
from monoswap.swap.allowance import AllowanceManager, AllowanceState
from monoswap.swap.reconciler import reconcile_value
from monoswap.tokens import Token, TokenRegistry
from monoswap.web.contracts.transactions import ExecutableTransaction
from monoswap.web.services.transaction_builder import TransactionBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedSwap:
    """Everything produced while preparing one swap."""

    quote: Quote  # as normalized from the aggregator, kept for auditing
    reconciled_quote: Quote
    transaction: ExecutableTransaction
    allowance: Optional[AllowanceState] = None  # None for native swaps


@dataclass(frozen=True)
class PriceQuote:
    """Pricing-only view of a quote."""

    from_token: Token
    to_token: Token
    from_amount: str
    to_amount: str
    rate: Decimal
    estimated_gas: int
    gas_estimate_is_fallback: bool


class SwapPipeline:
    """Prepares swaps end to end.

    All collaborators are injected; nothing here holds state between swaps.
    """

    def __init__(
        self,
        quote_client: MonorailQuoteClient,
        allowance_manager: Optional[AllowanceManager] = None,
        tokens: Optional[TokenRegistry] = None,
        builder: Optional[TransactionBuilder] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.quote_client = quote_client
        self.allowance_manager = allowance_manager
        self.tokens = tokens or TokenRegistry()
        self.builder = builder or TransactionBuilder(chain_id=self.settings.monad_chain_id)

    async def get_price(self, from_token: str, to_token: str, amount: str) -> PriceQuote:
        """Price a swap without requesting executable calldata."""
        source = self.tokens.resolve(from_token)
        target = self.tokens.resolve(to_token)

        quote = await self.quote_client.get_quote(
            source.address, target.address, amount, require_executable=False
        )
        return PriceQuote(
            from_token=source,
            to_token=target,
            from_amount=quote.from_amount,
            to_amount=quote.to_amount,
            rate=quote.effective_rate,
            estimated_gas=quote.estimated_gas,
            gas_estimate_is_fallback=quote.gas_estimate_is_fallback,
        )

    async def prepare_swap(
        self,
        from_token: str,
        to_token: str,
        amount: str,
        sender: str,
        max_slippage_bps: Optional[int] = None,
        deadline_seconds: Optional[int] = None,
        destination: Optional[str] = None,
        spender: Optional[str] = None,
    ) -> PreparedSwap:
        """Quote, reconcile, approve if needed and build the swap transaction.

        Args:
            from_token: Address or symbol of the token to sell
            to_token: Address or symbol of the token to buy
            amount: Human-readable amount of ``from_token``
            sender: Account that will submit the swap
            max_slippage_bps: Optional slippage cap in basis points
            deadline_seconds: Optional validity window
            destination: Optional recipient of the output tokens
            spender: Contract to approve; defaults to the quote's router

        Returns:
            PreparedSwap whose transaction is safe to submit. For ERC20 input
            the approval is already confirmed on-chain.
        """
        source = self.tokens.resolve(from_token)
        target = self.tokens.resolve(to_token)

        logger.info(f"Preparing swap: {amount} {source.symbol} -> {target.symbol} for {sender}")

        quote = await self.quote_client.get_quote(
            source.address,
            target.address,
            amount,
            sender=sender,
            max_slippage_bps=max_slippage_bps,
            deadline_seconds=deadline_seconds,
            destination=destination,
        )

        reconciled = reconcile_value(quote, source, self.settings.native_decimals)

        allowance = None
        if not source.is_native:
            if self.allowance_manager is None:
                raise RuntimeError("An allowance manager is required for ERC20 swaps")
            required = to_minimal_units(reconciled.from_amount, source.decimals)
            allowance = await self.allowance_manager.ensure_allowance(
                owner=sender,
                spender=spender or reconciled.transaction.to,
                token=source.address,
                required_amount=required,
            )

        transaction = self.builder.build_transaction(reconciled)
        logger.info(
            f"Swap ready: to={transaction.to} value={transaction.value} gas={transaction.gas_limit}"
        )
        return PreparedSwap(
            quote=quote,
            reconciled_quote=reconciled,
            transaction=transaction,
            allowance=allowance,
        )
