"""Reconciliation of the transaction ``value`` field of a quote.

Native swaps carry the input amount in ``value``; the aggregator has been
seen to omit it or send zero, and such a transaction reverts on-chain.
ERC20 swaps move funds through calldata, so their ``value`` must be zero.
The rule is applied to every quote, whatever the aggregator returned.
"""

import dataclasses
import logging

from monoswap.amounts import parse_quantity, to_minimal_units
from monoswap.errors import InvalidAmount, MalformedQuote, UnexpectedNativeValue
from monoswap.routing.base import Quote
from monoswap.tokens import NATIVE_DECIMALS, Token, same_address

logger = logging.getLogger(__name__)


def reconcile_value(quote: Quote, from_token: Token, native_decimals: int = NATIVE_DECIMALS) -> Quote:
    """Return a copy of ``quote`` whose transaction value is authoritative.

    Native input: value becomes ``to_minimal_units(from_amount)`` whenever
    the supplied value is missing, zero, unparseable or different.

    ERC20 input: value becomes ``"0"``; a non-zero supplied value raises.

    Raises:
        MalformedQuote: If ``from_token`` does not match the quote
        UnexpectedNativeValue: If an ERC20 swap carries a native value
    """
    if not same_address(quote.from_token, from_token.address):
        raise MalformedQuote(
            f"Quote spends {quote.from_token} but reconciliation was asked for {from_token.address}"
        )

    supplied = quote.transaction.value

    if from_token.is_native:
        expected = to_minimal_units(quote.from_amount, native_decimals)
        reconciled = str(expected)

        try:
            supplied_wei = parse_quantity(supplied) if supplied not in (None, "") else None
        except InvalidAmount:
            supplied_wei = None

        if supplied_wei != expected:
            logger.warning(
                f"Correcting native swap value: aggregator sent {supplied!r}, "
                f"expected {expected} wei for {quote.from_amount} {from_token.symbol}"
            )
    else:
        try:
            supplied_wei = parse_quantity(supplied) if supplied not in (None, "") else 0
        except InvalidAmount:
            raise UnexpectedNativeValue(
                f"Unparseable value {supplied!r} on ERC20 swap from {from_token.symbol}"
            ) from None

        if supplied_wei != 0:
            raise UnexpectedNativeValue(
                f"Aggregator attached {supplied_wei} wei to an ERC20 swap from {from_token.symbol}"
            )
        reconciled = "0"

    return dataclasses.replace(
        quote,
        transaction=dataclasses.replace(quote.transaction, value=reconciled),
    )
