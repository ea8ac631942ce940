"""Token metadata for Monad testnet.

The zero address stands for the native asset (MON) in every token field,
matching the aggregator's convention.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from web3 import Web3

from monoswap.amounts import MAX_DECIMALS
from monoswap.errors import UnknownToken

logger = logging.getLogger(__name__)

NATIVE_TOKEN_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_DECIMALS = 18

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

# Monad testnet tokens
MONAD_TOKENS = {
    "MON": NATIVE_TOKEN_ADDRESS,
    "WMON": "0x760afe86e5de5fa0ee542fc7b7b713e1c5425701",
    "USDC": "0xf817257fed379853cde0fa4f97ab987181b1e5ea",
}


def is_valid_address(address: object) -> bool:
    """Check for a 0x-prefixed 20-byte hex address."""
    return isinstance(address, str) and bool(_ADDRESS_RE.match(address))


def is_native(address: str) -> bool:
    """Check whether an address denotes the native asset."""
    return address.lower() == NATIVE_TOKEN_ADDRESS


def checksum(address: str) -> str:
    """Return the EIP-55 checksummed form of an address."""
    if not is_valid_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    return Web3.to_checksum_address(address)


def same_address(a: str, b: str) -> bool:
    return a.lower() == b.lower()


@dataclass(frozen=True)
class Token:
    """An ERC20 token, or the native asset at the zero address."""

    address: str
    decimals: int
    symbol: str
    name: Optional[str] = None

    def __post_init__(self):
        if not is_valid_address(self.address):
            raise ValueError(f"Invalid token address: {self.address!r}")
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
            raise ValueError(f"Token decimals must be an integer, got {self.decimals!r}")
        if not 0 <= self.decimals <= MAX_DECIMALS:
            raise ValueError(
                f"Token decimals must be between 0 and {MAX_DECIMALS}, got {self.decimals}"
            )

    @property
    def is_native(self) -> bool:
        return is_native(self.address)


NATIVE_TOKEN = Token(NATIVE_TOKEN_ADDRESS, NATIVE_DECIMALS, "MON", "Monad")

DEFAULT_TOKENS = (
    NATIVE_TOKEN,
    Token(MONAD_TOKENS["WMON"], 18, "WMON", "Wrapped Monad"),
    Token(MONAD_TOKENS["USDC"], 6, "USDC", "USD Coin"),
)


class TokenRegistry:
    """Lookup of known tokens by address or symbol."""

    def __init__(self, tokens: Optional[Iterable[Token]] = None):
        self._by_address: dict[str, Token] = {}
        for token in DEFAULT_TOKENS if tokens is None else tokens:
            self.register(token)

    def register(self, token: Token) -> None:
        """Add a token, replacing any entry at the same address."""
        key = token.address.lower()
        if key in self._by_address:
            logger.debug(f"Replacing registry entry for {token.symbol} at {token.address}")
        self._by_address[key] = token

    def get(self, address: str) -> Token:
        """Get token by address.

        Raises:
            UnknownToken: If the address is not registered
        """
        token = self._by_address.get(address.lower())
        if token is None:
            raise UnknownToken(f"Unknown token: {address}")
        return token

    def by_symbol(self, symbol: str) -> Token:
        """Get token by symbol (case-insensitive)."""
        for token in self._by_address.values():
            if token.symbol.upper() == symbol.upper():
                return token
        raise UnknownToken(f"Unknown token symbol: {symbol}")

    def resolve(self, value: str) -> Token:
        """Resolve an address or a symbol."""
        if is_valid_address(value):
            return self.get(value)
        return self.by_symbol(value)

    def __contains__(self, address: str) -> bool:
        return address.lower() in self._by_address

    def __iter__(self):
        return iter(self._by_address.values())

    def __len__(self) -> int:
        return len(self._by_address)
