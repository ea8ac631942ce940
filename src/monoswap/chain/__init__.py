"""Chain access for allowance reads, approval submission and receipts."""

from monoswap.chain.base import ChainClient
from monoswap.chain.rpc import JsonRpcChainClient

__all__ = ["ChainClient", "JsonRpcChainClient"]
