"""Gas cost display helpers."""

from monoswap.amounts import to_human, to_minimal_units
from monoswap.tokens import NATIVE_DECIMALS

GWEI_DECIMALS = 9
DEFAULT_GAS_PRICE_GWEI = "2"


def gas_cost_wei(gas_units: int, gas_price_gwei: str = DEFAULT_GAS_PRICE_GWEI) -> int:
    """Cost of ``gas_units`` at ``gas_price_gwei`` in wei."""
    if gas_units < 0:
        raise ValueError(f"Gas units must be non-negative, got {gas_units}")
    return gas_units * to_minimal_units(gas_price_gwei, GWEI_DECIMALS)


def format_gas_estimate(
    gas_units: int,
    gas_price_gwei: str = DEFAULT_GAS_PRICE_GWEI,
    symbol: str = "MON",
) -> str:
    """Format an estimated gas cost, e.g. ``"~0.0004 MON"``.

    Smaller costs get more digits: 6 below 0.001, 4 below 0.01, else 3.
    """
    cost = gas_cost_wei(gas_units, gas_price_gwei)
    if cost < 10**15:
        precision = 6
    elif cost < 10**16:
        precision = 4
    else:
        precision = 3
    return f"~{to_human(cost, NATIVE_DECIMALS, precision)} {symbol}"


def gas_breakdown(gas_units: int, gas_price_gwei: str = DEFAULT_GAS_PRICE_GWEI) -> dict:
    """Units and native cost, for display."""
    estimate = format_gas_estimate(gas_units, gas_price_gwei)
    return {
        "units": f"{gas_units:,}",
        "estimate": estimate,
        "display": f"{estimate} ({gas_units:,} units)",
    }
