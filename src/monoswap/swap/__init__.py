"""Swap preparation: value reconciliation, allowances and the pipeline."""

from monoswap.swap.allowance import AllowanceManager, AllowanceState, AllowanceStatus
from monoswap.swap.pipeline import PreparedSwap, PriceQuote, SwapPipeline
from monoswap.swap.reconciler import reconcile_value

__all__ = [
    "AllowanceManager",
    "AllowanceState",
    "AllowanceStatus",
    "PreparedSwap",
    "PriceQuote",
    "SwapPipeline",
    "reconcile_value",
]
