"""Normalized quote types shared by the quote client and the swap pipeline."""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class QuoteTransaction:
    """Transaction fields of a quote.

    ``value`` is kept exactly as the aggregator sent it (``None`` when
    absent) until the value reconciler rewrites it as a decimal wei string.
    """

    to: Optional[str]
    data: Optional[str]
    value: Optional[str]
    gas_limit: int

    @property
    def has_calldata(self) -> bool:
        """Check for real calldata, not the bare ``0x`` prefix."""
        return bool(self.data) and self.data.lower() != "0x"

    @property
    def is_executable(self) -> bool:
        return bool(self.to) and self.has_calldata


@dataclass(frozen=True)
class Quote:
    """An aggregator quote, normalized and immutable.

    A quote is a price snapshot: build at most one transaction from it and
    fetch a new one for the next attempt.
    """

    from_token: str
    to_token: str
    from_amount: str  # human-readable, e.g. "0.05"
    to_amount: str  # human-readable
    estimated_gas: int
    transaction: QuoteTransaction
    gas_estimate_is_fallback: bool = False
    routes: tuple = ()
    provider: str = "monorail"
    timestamp: float = field(default_factory=time.time)  # when the quote was fetched

    @property
    def effective_rate(self) -> Decimal:
        """Output per unit of input."""
        from_amount = Decimal(self.from_amount)
        if from_amount == 0:
            return Decimal("0")
        return Decimal(self.to_amount) / from_amount

    @property
    def is_executable(self) -> bool:
        return self.transaction.is_executable

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dict for logging and display."""
        return {
            "provider": self.provider,
            "timestamp": self.timestamp,
            "from_token": self.from_token,
            "to_token": self.to_token,
            "from_amount": self.from_amount,
            "to_amount": self.to_amount,
            "estimated_gas": self.estimated_gas,
            "gas_estimate_is_fallback": self.gas_estimate_is_fallback,
            "route_count": len(self.routes),
            "transaction": {
                "to": self.transaction.to,
                "data_length": len(self.transaction.data or ""),
                "value": self.transaction.value,
                "gas_limit": self.transaction.gas_limit,
            },
        }
