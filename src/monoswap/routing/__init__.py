"""Routing module for swap quotes.

Providers:
- Monorail: Monad DEX aggregator (pathfinder v4)
"""

from monoswap.routing.base import Quote, QuoteTransaction
from monoswap.routing.monorail import MonorailQuoteClient, create_monorail_client

__all__ = [
    "Quote",
    "QuoteTransaction",
    "MonorailQuoteClient",
    "create_monorail_client",
]
