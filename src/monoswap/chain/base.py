"""Abstract chain access used by the allowance manager.

Implementations decide how transactions are signed: a wallet, a node-managed
account, or the local eth_account signer in ``JsonRpcChainClient``.
"""

from abc import ABC, abstractmethod
from typing import Optional


class ChainClient(ABC):
    """Read calls, transaction submission and receipt lookup."""

    @abstractmethod
    async def call(self, to: str, data: str) -> str:
        """Execute a read-only contract call.

        Args:
            to: Contract address
            data: ABI-encoded calldata

        Returns:
            Hex-encoded return data
        """
        pass

    @abstractmethod
    async def send_transaction(self, tx: dict) -> str:
        """Submit a transaction from the configured account.

        Args:
            tx: Transaction fields (to, data, value, gas) as hex quantities

        Returns:
            Transaction hash
        """
        pass

    @abstractmethod
    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        """Get a transaction receipt, or None while the transaction is pending."""
        pass
