"""Command-line interface.

Usage:
    monoswap quote MON USDC 0.05 --sender 0x...
    monoswap price MON USDC 0.05
    monoswap to-wei 1.5 --decimals 18
    monoswap from-wei 1500000000000000000
    monoswap status 0x<tx hash>
    monoswap tokens
    monoswap config
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from monoswap.amounts import to_human, to_minimal_units
from monoswap.chain.rpc import JsonRpcChainClient
from monoswap.config import get_settings
from monoswap.errors import SwapError, describe_error
from monoswap.gas import format_gas_estimate
from monoswap.logging_config import setup_logging
from monoswap.routing.monorail import create_monorail_client
from monoswap.swap.allowance import AllowanceManager
from monoswap.swap.pipeline import SwapPipeline
from monoswap.swap.reconciler import reconcile_value
from monoswap.tokens import TokenRegistry
from monoswap.web.services.transaction_builder import TransactionBuilder, apply_gas_buffer

logger = logging.getLogger(__name__)


async def cmd_quote(args: argparse.Namespace) -> int:
    """Fetch an executable quote and print the reconciled transaction.

    Only native input gets a ready-to-submit transaction. ERC20 input prints
    the approval it needs instead, since no allowance is checked here.
    """
    registry = TokenRegistry()
    source = registry.resolve(args.from_token)
    target = registry.resolve(args.to_token)

    client = create_monorail_client()
    quote = await client.get_quote(
        source.address,
        target.address,
        args.amount,
        sender=args.sender,
        max_slippage_bps=args.slippage_bps,
        deadline_seconds=args.deadline,
    )
    settings = get_settings()
    reconciled = reconcile_value(quote, source, settings.native_decimals)
    tx = TransactionBuilder(chain_id=settings.monad_chain_id).build_transaction(reconciled)

    output = reconciled.to_dict()
    output["gas_cost"] = format_gas_estimate(reconciled.estimated_gas, symbol=settings.native_symbol)
    if source.is_native:
        output["submit"] = apply_gas_buffer(tx, settings.gas_buffer_percent).to_rpc_dict()
    else:
        # Allowance was not checked; the swap transaction is withheld
        output["approval_required"] = {
            "token": source.address,
            "spender": tx.to,
            "amount": str(to_minimal_units(reconciled.from_amount, source.decimals)),
        }
    print(json.dumps(output, indent=2))
    return 0


async def cmd_price(args: argparse.Namespace) -> int:
    """Print a pricing-only quote."""
    pipeline = SwapPipeline(quote_client=create_monorail_client())
    price = await pipeline.get_price(args.from_token, args.to_token, args.amount)

    print(f"{price.from_amount} {price.from_token.symbol} -> {price.to_amount} {price.to_token.symbol}")
    print(f"Rate: {price.rate:.6f}")
    gas_note = " (default estimate)" if price.gas_estimate_is_fallback else ""
    print(f"Gas: {format_gas_estimate(price.estimated_gas, symbol=get_settings().native_symbol)}{gas_note}")
    return 0


async def cmd_status(args: argparse.Namespace) -> int:
    """Print the status of a submitted transaction."""
    manager = AllowanceManager(chain=JsonRpcChainClient())
    status = await manager.get_transaction_status(args.tx_hash)
    print(status.model_dump_json(indent=2))
    return 0


def cmd_to_wei(args: argparse.Namespace) -> int:
    print(to_minimal_units(args.amount, args.decimals))
    return 0


def cmd_from_wei(args: argparse.Namespace) -> int:
    precision = args.precision if args.precision is not None else args.decimals
    print(to_human(int(args.value), args.decimals, precision))
    return 0


def cmd_tokens(args: argparse.Namespace) -> int:
    for token in TokenRegistry():
        print(f"{token.symbol:<6} {token.address}  decimals={token.decimals}")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    print(json.dumps(get_settings().get_safe_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="monoswap", description="Monorail swap preparation on Monad")
    sub = parser.add_subparsers(dest="command", required=True)

    quote = sub.add_parser("quote", help="Get an executable swap quote")
    quote.add_argument("from_token", help="Token address or symbol to sell")
    quote.add_argument("to_token", help="Token address or symbol to buy")
    quote.add_argument("amount", help="Human-readable amount, e.g. 0.05")
    quote.add_argument("--sender", required=True, help="Address that will submit the swap")
    quote.add_argument("--slippage-bps", type=int, default=None, help="Max slippage in basis points")
    quote.add_argument("--deadline", type=int, default=None, help="Deadline in seconds")
    quote.set_defaults(handler=cmd_quote)

    price = sub.add_parser("price", help="Get a pricing-only quote")
    price.add_argument("from_token")
    price.add_argument("to_token")
    price.add_argument("amount")
    price.set_defaults(handler=cmd_price)

    status = sub.add_parser("status", help="Look up a transaction receipt")
    status.add_argument("tx_hash")
    status.set_defaults(handler=cmd_status)

    to_wei = sub.add_parser("to-wei", help="Convert a human amount to minimal units")
    to_wei.add_argument("amount")
    to_wei.add_argument("--decimals", type=int, default=18)
    to_wei.set_defaults(handler=cmd_to_wei)

    from_wei = sub.add_parser("from-wei", help="Convert minimal units to a human amount")
    from_wei.add_argument("value")
    from_wei.add_argument("--decimals", type=int, default=18)
    from_wei.add_argument("--precision", type=int, default=None)
    from_wei.set_defaults(handler=cmd_from_wei)

    tokens = sub.add_parser("tokens", help="List known tokens")
    tokens.set_defaults(handler=cmd_tokens)

    config = sub.add_parser("config", help="Show effective configuration")
    config.set_defaults(handler=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging()

    try:
        result = args.handler(args)
        if asyncio.iscoroutine(result):
            result = asyncio.run(result)
        return result
    except SwapError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        print(f"Error: {describe_error(e)} ({e})", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
