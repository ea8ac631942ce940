"""Exact conversion between human-readable and minimal-unit token amounts.

Token amounts routinely exceed float precision (1 MON is 10**18 wei), so
every conversion here is done on digit strings and Python integers.
Floats are rejected outright.
"""

import re
from decimal import Decimal
from typing import Union

from monoswap.errors import InvalidAmount

MAX_DECIMALS = 36

_DECIMAL_RE = re.compile(r"^(?P<int>[0-9]*)(?:\.(?P<frac>[0-9]*))?$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")
_DIGITS_RE = re.compile(r"^[0-9]+$")


def _check_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise InvalidAmount(f"Decimals must be an integer, got {decimals!r}")
    if decimals < 0 or decimals > MAX_DECIMALS:
        raise InvalidAmount(f"Decimals must be between 0 and {MAX_DECIMALS}, got {decimals}")


def _split(human: Union[str, Decimal]) -> tuple[str, str]:
    """Split a decimal string into integer and fractional digit strings."""
    if isinstance(human, Decimal):
        if not human.is_finite():
            raise InvalidAmount(f"Amount must be finite, got {human}")
        human = format(human, "f")
    if not isinstance(human, str):
        raise InvalidAmount(f"Amount must be a decimal string, got {type(human).__name__}")

    match = _DECIMAL_RE.match(human.strip())
    if match is None:
        raise InvalidAmount(f"Invalid amount: {human!r}")

    int_part = match.group("int")
    frac_part = match.group("frac") or ""
    if not int_part and not frac_part:
        raise InvalidAmount(f"Invalid amount: {human!r}")
    return int_part or "0", frac_part


def to_minimal_units(human: Union[str, Decimal], decimals: int) -> int:
    """Convert a human-readable amount to minimal units.

    The fractional part is right-padded with zeros, or truncated, to exactly
    ``decimals`` digits.

    Args:
        human: Non-negative decimal string, e.g. "1.5"
        decimals: Token decimals

    Returns:
        Amount in minimal units

    Raises:
        InvalidAmount: If the amount or decimals are malformed
    """
    _check_decimals(decimals)
    int_part, frac_part = _split(human)
    padded = frac_part[:decimals].ljust(decimals, "0")
    return int(int_part) * 10**decimals + int(padded or "0")


def to_human(minimal: int, decimals: int, precision: int = 6) -> str:
    """Convert minimal units to a human-readable string.

    The fraction is truncated (never rounded) to ``precision`` digits and
    trailing zeros are stripped. A value with no remaining fraction is
    returned as a bare integer.
    """
    _check_decimals(decimals)
    if isinstance(minimal, bool) or not isinstance(minimal, int):
        raise InvalidAmount(f"Minimal amount must be an integer, got {minimal!r}")
    if minimal < 0:
        raise InvalidAmount(f"Minimal amount must be non-negative, got {minimal}")
    if precision < 0:
        raise InvalidAmount(f"Precision must be non-negative, got {precision}")

    integer, remainder = divmod(minimal, 10**decimals)
    if remainder == 0:
        return str(integer)

    fraction = str(remainder).zfill(decimals)[:precision].rstrip("0")
    if not fraction:
        return str(integer)
    return f"{integer}.{fraction}"


def canonical_form(human: Union[str, Decimal]) -> str:
    """Normalize a decimal string: no redundant leading or trailing zeros."""
    int_part, frac_part = _split(human)
    int_part = int_part.lstrip("0") or "0"
    frac_part = frac_part.rstrip("0")
    if not frac_part:
        return int_part
    return f"{int_part}.{frac_part}"


def is_valid_amount(human: object) -> bool:
    """Check whether ``human`` is a well-formed non-negative decimal string."""
    try:
        _split(human)  # type: ignore[arg-type]
    except InvalidAmount:
        return False
    return True


def is_zero(human: str) -> bool:
    """Check whether a well-formed decimal string denotes zero."""
    return canonical_form(human) == "0"


def parse_quantity(value: Union[str, int, None]) -> int:
    """Parse an on-chain quantity given as hex string, decimal string or int.

    ``"0x"`` is the empty quantity and parses as zero. ``None`` and floats
    are rejected so a missing value is never read as zero by accident.
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"Invalid quantity: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise InvalidAmount(f"Quantity must be non-negative, got {value}")
        return value
    if not isinstance(value, str):
        raise InvalidAmount(f"Invalid quantity: {value!r}")

    text = value.strip()
    if text.lower().startswith("0x"):
        digits = text[2:]
        if not digits:
            return 0
        if not _HEX_RE.match(digits):
            raise InvalidAmount(f"Invalid hex quantity: {value!r}")
        return int(digits, 16)

    if not _DIGITS_RE.match(text):
        raise InvalidAmount(f"Invalid quantity: {value!r}")
    return int(text)
